"""Plain-file snippet store."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import List

from snipfinder.errors import (
    ContentLoadError,
    InvalidSnippetNameError,
    SnippetNotFoundError,
    StorageError,
)
from snipfinder.models import Snippet
from snipfinder.utils.files import iter_folders, iter_snippet_files, prune_empty_dir

LOGGER = logging.getLogger(__name__)


def validate_name(value: str, *, kind: str = "name") -> str:
    """Reject names that cannot be a single path component."""
    cleaned = value.strip()
    if not cleaned or cleaned in {".", ".."}:
        raise InvalidSnippetNameError(f"Invalid snippet {kind}: {value!r}")
    if "/" in cleaned or "\\" in cleaned or "\0" in cleaned:
        raise InvalidSnippetNameError(f"Snippet {kind} must not contain path separators: {value!r}")
    return cleaned


class LocalSnippetStore:
    """Snippets stored as UTF-8 files under ``root/<folder>/<name>``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, folder: str, name: str) -> Path:
        return self.root / validate_name(folder, kind="folder") / validate_name(name)

    def snippet(self, folder: str, name: str) -> Snippet:
        """Lazily-loading handle for a stored snippet."""
        return Snippet(folder, name, loader=partial(self.read_content, folder, name))

    def exists(self, folder: str, name: str) -> bool:
        return self._path(folder, name).is_file()

    def list_snippets(self) -> List[Snippet]:
        """Every stored snippet, ordered by folder then name."""
        snippets = []
        try:
            for folder in iter_folders(self.root):
                for path in iter_snippet_files(folder):
                    snippets.append(self.snippet(folder.name, path.name))
        except OSError as exc:
            raise StorageError(f"Unable to list snippets in {self.root}: {exc}") from exc
        return list(dict.fromkeys(snippets))

    def read_content(self, folder: str, name: str) -> str:
        try:
            return self._path(folder, name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, InvalidSnippetNameError) as exc:
            raise ContentLoadError(f"{folder}/{name}", str(exc)) from exc

    def save(self, folder: str, name: str, content: str) -> Snippet:
        path = self._path(folder, name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Unable to save {folder}/{name}: {exc}") from exc
        LOGGER.debug("Saved snippet %s/%s", folder, name)
        return self.snippet(path.parent.name, path.name)

    def delete(self, snippet: Snippet) -> None:
        path = self._path(snippet.folder, snippet.name)
        if not path.is_file():
            raise SnippetNotFoundError(f"Snippet not found: {snippet.fuzzy_index}")
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError(f"Unable to delete {snippet.fuzzy_index}: {exc}") from exc
        prune_empty_dir(path.parent)
        LOGGER.debug("Deleted snippet %s", snippet.fuzzy_index)

    def rename(self, snippet: Snippet, folder: str, name: str, content: str) -> Snippet:
        """Store ``content`` under the new identity and drop the old file."""
        old_path = self._path(snippet.folder, snippet.name)
        if not old_path.is_file():
            raise SnippetNotFoundError(f"Snippet not found: {snippet.fuzzy_index}")
        renamed = self.save(folder, name, content)
        if renamed != snippet:
            self.delete(snippet)
        return renamed
