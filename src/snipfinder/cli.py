"""Command line interface for SnipFinder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from snipfinder.config import AppConfig
from snipfinder.errors import ContentLoadError, StorageError
from snipfinder.index.defaults import seed_default_snippets
from snipfinder.index.indexer import SnippetIndexer
from snipfinder.index.storage import LocalSnippetStore
from snipfinder.models import FuzzyMatch, Snippet
from snipfinder.render import HighlightStyle, render_content, render_name, render_preview
from snipfinder.search.pipeline import SearchSnapshot, search_once
from snipfinder.session import SnippetSession
from snipfinder.web.app import app as web_app
from snipfinder.web.app import configure as configure_web

console = Console()
app = typer.Typer(help="SnipFinder - fuzzy search for command snippets")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    snippets_dir: Path | None, *, limit: int | None = None, style: str | None = None
) -> AppConfig:
    defaults = AppConfig()
    return AppConfig(
        snippets_dir=snippets_dir if snippets_dir is not None else defaults.snippets_dir,
        results_limit=limit if limit is not None else defaults.results_limit,
        style=style or defaults.style,
    )


def _open_store(config: AppConfig) -> LocalSnippetStore:
    return LocalSnippetStore(config.resolve_snippets_dir(Path.cwd()))


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]{escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def _results_table(snapshot: SearchSnapshot, *, cursor: int | None = None) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    if cursor is not None:
        table.add_column("")
    table.add_column("Snippet")
    table.add_column("Match" if snapshot.content_matches else "Preview")

    fuzzy_by_snippet: dict[Snippet, FuzzyMatch] = {m.snippet: m for m in snapshot.fuzzy_matches}
    content_by_snippet = {m.snippet: m for m in snapshot.content_matches}
    for row, snippet in enumerate(snapshot.results):
        fuzzy = fuzzy_by_snippet.get(snippet)
        name = render_name(fuzzy, snapshot.style) if fuzzy else Text(snippet.fuzzy_index)
        content = content_by_snippet.get(snippet)
        detail = render_content(content, snapshot.style) if content else Text(render_preview(snippet))
        cells = [name, detail]
        if cursor is not None:
            cells.insert(0, Text(">" if row == cursor else ""))
        table.add_row(*cells)
    return table


style_option = typer.Option(HighlightStyle.LIGHT.value, help="Highlight style (light or dark)")
dir_option = typer.Option(None, "--dir", help="Snippets directory")


@app.command()
def search(
    query: List[str] = typer.Argument(..., help="Name query, optionally followed by a content filter"),
    snippets_dir: Optional[Path] = dir_option,
    limit: int = typer.Option(AppConfig().results_limit, help="Maximum fuzzy results"),
    style: str = style_option,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search snippets by name, then filter by content."""
    _setup_logging(verbose)
    try:
        config = _build_config(snippets_dir, limit=limit, style=style)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    store = _open_store(config)
    try:
        index = store.list_snippets()
    except StorageError as exc:
        _fail(exc)

    snapshot = search_once(index, " ".join(query), limit=config.results_limit, style=config.highlight_style)
    if not snapshot.results:
        console.print("[yellow]No matches found.[/yellow]")
        return
    console.print(_results_table(snapshot))


@app.command(name="list")
def list_snippets(snippets_dir: Optional[Path] = dir_option) -> None:
    """List every stored snippet."""
    store = _open_store(_build_config(snippets_dir))
    try:
        snippets = store.list_snippets()
    except StorageError as exc:
        _fail(exc)

    if not snippets:
        console.print("[yellow]No snippets found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Folder")
    table.add_column("Name")
    table.add_column("Preview")
    for snippet in snippets:
        table.add_row(Text(snippet.folder), Text(snippet.name), Text(render_preview(snippet)))
    console.print(table)


@app.command()
def show(
    folder: str = typer.Argument(..., help="Snippet folder"),
    name: str = typer.Argument(..., help="Snippet name"),
    snippets_dir: Optional[Path] = dir_option,
) -> None:
    """Print a snippet's content."""
    store = _open_store(_build_config(snippets_dir))
    try:
        content = store.read_content(folder, name)
    except ContentLoadError as exc:
        _fail(exc)
    console.print(content, markup=False, highlight=False)


@app.command()
def add(
    folder: str = typer.Argument(..., help="Snippet folder"),
    name: str = typer.Argument(..., help="Snippet name"),
    content: Optional[str] = typer.Argument(None, help="Snippet content"),
    from_file: Optional[Path] = typer.Option(None, "--file", help="Read content from a file", exists=True),
    snippets_dir: Optional[Path] = dir_option,
) -> None:
    """Create or overwrite a snippet."""
    if content is None and from_file is None:
        raise typer.BadParameter("Provide CONTENT or --file")
    body = from_file.read_text(encoding="utf-8") if from_file is not None else content or ""

    store = _open_store(_build_config(snippets_dir))
    try:
        snippet = store.save(folder, name, body)
    except StorageError as exc:
        _fail(exc)
    console.print(f"Saved [bold]{escape(snippet.fuzzy_index)}[/bold]")


@app.command()
def remove(
    folder: str = typer.Argument(..., help="Snippet folder"),
    name: str = typer.Argument(..., help="Snippet name"),
    snippets_dir: Optional[Path] = dir_option,
) -> None:
    """Delete a snippet."""
    store = _open_store(_build_config(snippets_dir))
    try:
        store.delete(Snippet(folder, name))
    except StorageError as exc:
        _fail(exc)
    console.print(f"Removed [bold]{escape(f'{folder}/{name}')}[/bold]")


@app.command()
def rename(
    folder: str = typer.Argument(..., help="Current folder"),
    name: str = typer.Argument(..., help="Current name"),
    new_folder: str = typer.Argument(..., help="New folder"),
    new_name: str = typer.Argument(..., help="New name"),
    snippets_dir: Optional[Path] = dir_option,
) -> None:
    """Move a snippet to a new folder and/or name."""
    store = _open_store(_build_config(snippets_dir))
    try:
        content = store.read_content(folder, name)
        renamed = store.rename(Snippet(folder, name), new_folder, new_name, content)
    except (ContentLoadError, StorageError) as exc:
        _fail(exc)
    console.print(f"Renamed {escape(f'{folder}/{name}')} to [bold]{escape(renamed.fuzzy_index)}[/bold]")


@app.command()
def seed(
    snippets_dir: Optional[Path] = dir_option,
    overwrite: bool = typer.Option(False, help="Replace existing starter snippets"),
) -> None:
    """Install the starter snippet collection."""
    store = _open_store(_build_config(snippets_dir))
    try:
        written = seed_default_snippets(store, overwrite=overwrite)
    except StorageError as exc:
        _fail(exc)
    console.print(f"Wrote {written} snippets into [bold]{escape(str(store.root))}[/bold]")


class _ConsoleReceiver:
    def receive(self, content: str) -> None:
        console.print(content, markup=False, highlight=False)


class _ConsoleContext:
    def __init__(self) -> None:
        self.receiver = _ConsoleReceiver()

    def present_snippets(self) -> None:
        console.print("[dim]Type a query; :n/:p move, empty line or :pick sends, :q quits.[/dim]")

    def dismiss_snippets(self) -> None:
        pass

    def provide_receiver(self) -> _ConsoleReceiver:
        return self.receiver


def _run_pick_loop(session: SnippetSession) -> None:
    while session.is_on:
        try:
            line = console.input("[bold]> [/bold]")
        except (EOFError, KeyboardInterrupt):
            session.close()
            break

        command = line.strip()
        if command == ":q":
            session.close()
        elif command in ("", ":pick"):
            if not session.commit_selection():
                console.print("[yellow]Nothing selected.[/yellow]")
        elif command == ":n":
            session.select_next()
        elif command == ":p":
            session.select_previous()
        else:
            session.update_with(line)
            session.wait()

        if session.is_on and session.results:
            console.print(_results_table(session.pipeline.snapshot(), cursor=session.navigator.cursor))


@app.command()
def pick(
    snippets_dir: Optional[Path] = dir_option,
    style: str = style_option,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Interactively search and print a snippet."""
    _setup_logging(verbose)
    try:
        config = _build_config(snippets_dir, style=style)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    indexer = SnippetIndexer(_open_store(config))
    session = SnippetSession(
        indexer,
        context=_ConsoleContext(),
        config=config,
        on_error=lambda exc: console.print(f"[red]{escape(str(exc))}[/red]"),
    )
    try:
        indexer.refresh()
    except StorageError as exc:
        session.close_session()
        _fail(exc)

    session.poll()
    session.open()
    try:
        _run_pick_loop(session)
    finally:
        session.close_session()


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    snippets_dir: Optional[Path] = dir_option,
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = _build_config(snippets_dir)
    resolved = configure_web(config)
    if not resolved.exists():
        console.print("[yellow]Warning: snippets directory not found, searches will be empty.[/yellow]")

    console.print(f"Starting web interface on http://{host}:{port} (snippets: {resolved})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
