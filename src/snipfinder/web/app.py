"""FastAPI application exposing snippet search and management."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, NoReturn

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from snipfinder.config import AppConfig
from snipfinder.errors import (
    ContentLoadError,
    InvalidSnippetNameError,
    SnippetNotFoundError,
    StorageError,
)
from snipfinder.index.storage import LocalSnippetStore
from snipfinder.models import Snippet
from snipfinder.search.fuzzy import RESULTS_LIMIT
from snipfinder.search.pipeline import search_once

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="SnipFinder Web", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.snippets_dir = None


class SearchPayload(BaseModel):
    query: str
    dir: Path | None = None
    limit: int = RESULTS_LIMIT
    style: str = "light"


class SnippetPayload(BaseModel):
    folder: str
    name: str
    content: str
    dir: Path | None = None


class SnippetRef(BaseModel):
    folder: str
    name: str
    dir: Path | None = None


class RenamePayload(BaseModel):
    folder: str
    name: str
    new_folder: str
    new_name: str
    content: str | None = None
    dir: Path | None = None


class SearchHit(BaseModel):
    folder: str
    name: str
    fuzzy_index: str
    score: int | None = None
    name_spans: List[List[int]] = []
    content_spans: List[List[int]] = []


def configure(config: AppConfig) -> Path:
    """Set the snippets directory used when a request does not name one."""
    resolved = config.resolve_snippets_dir(Path.cwd())
    app.state.snippets_dir = resolved
    return resolved


def _resolve_snippets_dir(snippets_dir: Path | None) -> Path:
    if snippets_dir is not None:
        return snippets_dir
    if app.state.snippets_dir is not None:
        return app.state.snippets_dir
    return AppConfig().resolve_snippets_dir(Path.cwd())


def _store(snippets_dir: Path | None) -> LocalSnippetStore:
    return LocalSnippetStore(_resolve_snippets_dir(snippets_dir))


def _raise_storage_error(exc: StorageError) -> NoReturn:
    if isinstance(exc, SnippetNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, InvalidSnippetNameError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    LOGGER.error("Storage failure: %s", exc)
    raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/search")
async def search_snippets(payload: SearchPayload) -> dict[str, List[SearchHit]]:
    limit = max(1, min(payload.limit, RESULTS_LIMIT))
    try:
        config = AppConfig(snippets_dir=_resolve_snippets_dir(payload.dir), results_limit=limit, style=payload.style)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        index = LocalSnippetStore(config.resolve_snippets_dir()).list_snippets()
    except StorageError as exc:
        _raise_storage_error(exc)

    snapshot = search_once(index, payload.query, limit=config.results_limit, style=config.highlight_style)
    fuzzy = {match.snippet: match for match in snapshot.fuzzy_matches}
    content = {match.snippet: match for match in snapshot.content_matches}
    hits = []
    for snippet in snapshot.results:
        name_match = fuzzy.get(snippet)
        content_match = content.get(snippet)
        hits.append(
            SearchHit(
                folder=snippet.folder,
                name=snippet.name,
                fuzzy_index=snippet.fuzzy_index,
                score=name_match.score if name_match else None,
                name_spans=[list(span) for span in name_match.spans] if name_match else [],
                content_spans=[list(span) for span in content_match.spans] if content_match else [],
            )
        )
    return {"results": hits}


@app.get("/snippets")
async def list_snippets(dir: Path | None = None) -> dict[str, Any]:
    """List every stored snippet."""
    try:
        snippets = _store(dir).list_snippets()
    except StorageError as exc:
        _raise_storage_error(exc)
    return {
        "snippets": [
            {"folder": s.folder, "name": s.name, "fuzzy_index": s.fuzzy_index} for s in snippets
        ]
    }


@app.get("/snippets/{folder}/{name}")
async def get_snippet(folder: str, name: str, dir: Path | None = None) -> dict[str, str]:
    store = _store(dir)
    try:
        found = store.exists(folder, name)
    except InvalidSnippetNameError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not found:
        raise HTTPException(status_code=404, detail=f"Snippet not found: {folder}/{name}")
    try:
        content = store.read_content(folder, name)
    except ContentLoadError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"folder": folder, "name": name, "content": content}


@app.post("/snippets")
async def save_snippet(payload: SnippetPayload) -> dict[str, str]:
    try:
        snippet = _store(payload.dir).save(payload.folder, payload.name, payload.content)
    except StorageError as exc:
        _raise_storage_error(exc)
    return {"status": "ok", "fuzzy_index": snippet.fuzzy_index}


@app.post("/snippets/delete")
async def delete_snippet(payload: SnippetRef) -> dict[str, str]:
    try:
        _store(payload.dir).delete(Snippet(payload.folder, payload.name))
    except StorageError as exc:
        _raise_storage_error(exc)
    return {"status": "ok"}


@app.post("/snippets/rename")
async def rename_snippet(payload: RenamePayload) -> dict[str, str]:
    store = _store(payload.dir)
    try:
        content = payload.content
        if content is None:
            if not store.exists(payload.folder, payload.name):
                raise SnippetNotFoundError(f"Snippet not found: {payload.folder}/{payload.name}")
            content = store.read_content(payload.folder, payload.name)
        renamed = store.rename(
            Snippet(payload.folder, payload.name), payload.new_folder, payload.new_name, content
        )
    except ContentLoadError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except StorageError as exc:
        _raise_storage_error(exc)
    return {"status": "ok", "fuzzy_index": renamed.fuzzy_index}
