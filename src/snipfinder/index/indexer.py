"""Snippet index construction and change notification."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Tuple

from snipfinder.errors import StorageError
from snipfinder.index.storage import LocalSnippetStore
from snipfinder.models import RefreshProgress, Snippet
from snipfinder.utils.files import iter_folders, iter_snippet_files

LOGGER = logging.getLogger(__name__)

IndexListener = Callable[[Tuple[Snippet, ...]], None]
ProgressListener = Callable[[RefreshProgress], None]


@dataclass(slots=True)
class IndexStats:
    snippets: int = 0
    folders: int = 0
    failed: int = 0


class SnippetIndexer:
    """Builds index snapshots from a store and publishes them to subscribers.

    Listeners are called on whichever thread ran the refresh, so consumers
    that own single-threaded state should hand snapshots over through a
    queue (see ``SearchPipeline.post_index``).
    """

    def __init__(self, store: LocalSnippetStore) -> None:
        self.store = store
        self._snapshot: Tuple[Snippet, ...] = ()
        self._progress = RefreshProgress.none()
        self._index_listeners: List[IndexListener] = []
        self._progress_listeners: List[ProgressListener] = []
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Tuple[Snippet, ...]:
        return self._snapshot

    @property
    def progress(self) -> RefreshProgress:
        return self._progress

    @staticmethod
    def _subscribe(listeners: list, listener: Callable) -> Callable[[], None]:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def subscribe_index(self, listener: IndexListener) -> Callable[[], None]:
        return self._subscribe(self._index_listeners, listener)

    def subscribe_progress(self, listener: ProgressListener) -> Callable[[], None]:
        return self._subscribe(self._progress_listeners, listener)

    def _publish_progress(self, progress: RefreshProgress) -> None:
        self._progress = progress
        for listener in list(self._progress_listeners):
            listener(progress)

    def _publish_snapshot(self, snapshot: Tuple[Snippet, ...]) -> None:
        self._snapshot = snapshot
        for listener in list(self._index_listeners):
            listener(snapshot)

    def refresh(self) -> IndexStats:
        """Rebuild the index from the store, folder by folder."""
        with self._lock:
            stats = IndexStats()
            self._publish_progress(RefreshProgress.in_progress(0.0))
            try:
                folders = list(iter_folders(self.store.root))
            except OSError as exc:
                self._publish_progress(RefreshProgress.none())
                raise StorageError(f"Unable to read {self.store.root}: {exc}") from exc

            snippets: List[Snippet] = []
            for position, folder in enumerate(folders, start=1):
                try:
                    names = [path.name for path in iter_snippet_files(folder)]
                except OSError as exc:
                    LOGGER.error("Failed to list %s: %s", folder, exc)
                    stats.failed += 1
                    continue
                snippets.extend(self.store.snippet(folder.name, name) for name in names)
                stats.folders += 1
                self._publish_progress(RefreshProgress.in_progress(position / len(folders)))

            snapshot = tuple(dict.fromkeys(snippets))
            stats.snippets = len(snapshot)
            self._publish_snapshot(snapshot)
            self._publish_progress(RefreshProgress.complete())
            LOGGER.info(
                "Indexed %d snippets in %d folders (%d failed)",
                stats.snippets,
                stats.folders,
                stats.failed,
            )
            return stats

    def refresh_in_background(self) -> threading.Thread:
        def run() -> None:
            try:
                self.refresh()
            except StorageError as exc:
                LOGGER.error("Index refresh failed: %s", exc)

        thread = threading.Thread(target=run, name="snipfinder-index", daemon=True)
        thread.start()
        return thread

    def _refresh_after_change(self) -> None:
        # The store change already happened; a failed rebuild only leaves the snapshot stale
        try:
            self.refresh()
        except StorageError as exc:
            LOGGER.error("Index refresh after change failed: %s", exc)

    def save(self, folder: str, name: str, content: str) -> Snippet:
        snippet = self.store.save(folder, name, content)
        self._refresh_after_change()
        return snippet

    def delete(self, snippet: Snippet) -> None:
        self.store.delete(snippet)
        self._refresh_after_change()

    def rename(self, snippet: Snippet, folder: str, name: str, content: str) -> Snippet:
        renamed = self.store.rename(snippet, folder, name, content)
        self._refresh_after_change()
        return renamed
