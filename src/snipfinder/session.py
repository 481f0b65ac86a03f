"""Search surface model tying the index, the pipeline and the selection together."""

from __future__ import annotations

import logging
from typing import Callable, Protocol, Tuple

from snipfinder.config import AppConfig
from snipfinder.errors import ContentLoadError, StorageError
from snipfinder.index.indexer import SnippetIndexer
from snipfinder.models import RefreshProgress, SearchMode, Snippet
from snipfinder.render import HighlightStyle
from snipfinder.search.pipeline import SearchPipeline, SearchSnapshot
from snipfinder.search.selection import SelectionNavigator

LOGGER = logging.getLogger(__name__)


class SnippetReceiver(Protocol):
    def receive(self, content: str) -> None: ...


class SnippetContext(Protocol):
    def present_snippets(self) -> None: ...

    def dismiss_snippets(self) -> None: ...

    def provide_receiver(self) -> SnippetReceiver | None: ...


ErrorHandler = Callable[[StorageError], None]


class SnippetSession:
    """State behind the snippet search surface.

    All methods are meant to be called from one thread; index snapshots
    coming from other threads are queued and picked up by :meth:`poll`.
    """

    def __init__(
        self,
        indexer: SnippetIndexer,
        *,
        context: SnippetContext | None = None,
        config: AppConfig | None = None,
        on_error: ErrorHandler | None = None,
        pipeline: SearchPipeline | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.indexer = indexer
        self.context = context
        self.on_error = on_error
        self.pipeline = pipeline or SearchPipeline(
            indexer.snapshot,
            limit=self.config.results_limit,
            style=self.config.highlight_style,
            workers=self.config.workers,
            rerun_on_index_update=self.config.rerun_on_index_update,
        )
        self.navigator = SelectionNavigator()
        self.is_on = False
        self.mode = SearchMode.GENERAL
        self.input = ""
        self.editing_snippet: Snippet | None = None
        self.current_snippet_name = ""
        self.new_snippet_presented = False
        self.refresh_progress = indexer.progress

        self._display_generation = -1
        self._unsubscribers = [
            self.pipeline.subscribe(self._on_snapshot),
            indexer.subscribe_index(self.pipeline.post_index),
            indexer.subscribe_progress(self._on_progress),
        ]

    def close_session(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.pipeline.close()

    # pipeline plumbing
    def _on_snapshot(self, snapshot: SearchSnapshot) -> None:
        if snapshot.generation != self._display_generation:
            self._display_generation = snapshot.generation
            self.navigator.reset(snapshot.results)

    def _on_progress(self, progress: RefreshProgress) -> None:
        self.refresh_progress = progress

    def poll(self, timeout: float = 0.0) -> bool:
        return self.pipeline.poll(timeout)

    def wait(self, timeout: float | None = None) -> SearchSnapshot:
        return self.pipeline.wait(timeout)

    @property
    def results(self) -> Tuple[Snippet, ...]:
        return self.pipeline.displayed

    @property
    def style(self) -> HighlightStyle:
        return self.pipeline.style

    @style.setter
    def style(self, value: HighlightStyle) -> None:
        self.pipeline.set_style(value)

    # input
    def update_with(self, text: str) -> None:
        self.mode = SearchMode.INSERT
        self._set_input(text)

    def _set_input(self, text: str) -> None:
        self.input = text
        self.pipeline.update(text, self.mode)

    def clear(self) -> None:
        self._set_input("")

    # selection
    @property
    def current_selection(self) -> Snippet | None:
        return self.navigator.current_selection()

    def select_next(self) -> int | None:
        return self.navigator.select_next()

    def select_previous(self) -> int | None:
        return self.navigator.select_previous()

    def tap(self, snippet: Snippet) -> Snippet | None:
        """Select ``snippet`` and start editing it."""
        if not self.navigator.select(snippet):
            return None
        return self.edit_selection_or_create()

    def edit_selection_or_create(self) -> Snippet | None:
        snippet = self.current_selection
        if snippet is None:
            self.new_snippet_presented = True
            return None
        self.current_snippet_name = snippet.fuzzy_index
        self.editing_snippet = snippet
        return snippet

    def close_editor(self) -> None:
        self.editing_snippet = None
        self.new_snippet_presented = False

    # presentation
    def open(self) -> None:
        self.is_on = True
        if self.context is not None:
            self.context.present_snippets()

    def close(self) -> None:
        self.is_on = False
        if self.context is not None:
            self.context.dismiss_snippets()

    def send_content_to_receiver(self, content: str) -> None:
        receiver = self.context.provide_receiver() if self.context is not None else None
        if receiver is not None:
            receiver.receive(content)
        self.is_on = False
        self.editing_snippet = None
        self.clear()
        if self.context is not None:
            self.context.dismiss_snippets()

    def commit_selection(self) -> bool:
        """Send the selected snippet's content to the receiver."""
        snippet = self.current_selection
        if snippet is None:
            return False
        try:
            content = snippet.searchable_content
        except ContentLoadError as exc:
            LOGGER.warning("Cannot send snippet: %s", exc)
            return False
        self.send_content_to_receiver(content)
        return True

    # storage
    def _report(self, exc: StorageError) -> None:
        LOGGER.error("%s", exc)
        if self.on_error is not None:
            self.on_error(exc)

    def save_snippet(self, folder: str, name: str, content: str) -> Snippet | None:
        try:
            snippet = self.indexer.save(folder, name, content)
        except StorageError as exc:
            self._report(exc)
            return None
        self.close_editor()
        return snippet

    def rename_snippet(self, snippet: Snippet, folder: str, name: str, content: str) -> Snippet | None:
        try:
            renamed = self.indexer.rename(snippet, folder, name, content)
        except StorageError as exc:
            self._report(exc)
            return None
        self.editing_snippet = renamed
        self.current_snippet_name = renamed.fuzzy_index
        return renamed

    def delete_snippet(self) -> bool:
        """Delete the snippet being edited and reset the search."""
        snippet = self.editing_snippet
        if snippet is None:
            return False
        deleted = True
        try:
            self.indexer.delete(snippet)
        except StorageError as exc:
            self._report(exc)
            deleted = False
            # Local copy only; the next refresh brings it back if it still exists
            self.pipeline.set_index([s for s in self.pipeline.index if s != snippet])
        self.pipeline.poll()
        self.clear()
        self.editing_snippet = None
        return deleted
