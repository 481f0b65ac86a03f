"""Tests for index refresh and change notification."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from snipfinder.errors import StorageError
from snipfinder.index.indexer import SnippetIndexer
from snipfinder.index.storage import LocalSnippetStore
from snipfinder.models import RefreshProgress, RefreshState, Snippet


@pytest.fixture
def indexer(store: LocalSnippetStore) -> SnippetIndexer:
    store.save("Find", "in directory", "find . -maxdepth 1")
    store.save("Git", "status", "git status")
    store.save("SSH", "connect", "ssh ${user}@${host}")
    return SnippetIndexer(store)


class TestRefresh:
    """Test rebuilding the index."""

    def test_snapshot_and_stats(self, indexer: SnippetIndexer) -> None:
        stats = indexer.refresh()

        assert stats.snippets == 3
        assert stats.folders == 3
        assert stats.failed == 0
        assert [s.fuzzy_index for s in indexer.snapshot] == [
            "Find/in directory",
            "Git/status",
            "SSH/connect",
        ]

    def test_snapshot_loads_content_lazily(self, indexer: SnippetIndexer) -> None:
        indexer.refresh()

        assert indexer.snapshot[2].searchable_content == "ssh ${user}@${host}"

    def test_progress_sequence(self, indexer: SnippetIndexer) -> None:
        """Should report start, one step per folder and completion."""
        seen: list[RefreshProgress] = []
        indexer.subscribe_progress(seen.append)

        indexer.refresh()

        assert seen[0] == RefreshProgress.in_progress(0.0)
        assert [p.fraction for p in seen[1:-1]] == pytest.approx([1 / 3, 2 / 3, 1.0])
        assert seen[-1].state is RefreshState.COMPLETE
        assert indexer.progress.state is RefreshState.COMPLETE

    def test_index_listeners(self, indexer: SnippetIndexer) -> None:
        listener = MagicMock()
        unsubscribe = indexer.subscribe_index(listener)

        indexer.refresh()
        unsubscribe()
        indexer.refresh()

        listener.assert_called_once()
        assert len(listener.call_args.args[0]) == 3

    def test_failed_folder_is_skipped(self, indexer: SnippetIndexer) -> None:
        """Should keep indexing when one folder cannot be listed."""
        def fake_iter(folder):
            if folder.name == "Git":
                raise PermissionError("denied")
            return iter(sorted(p for p in folder.iterdir() if p.is_file()))

        with patch("snipfinder.index.indexer.iter_snippet_files", side_effect=fake_iter):
            stats = indexer.refresh()

        assert stats.failed == 1
        assert stats.folders == 2
        assert Snippet("Git", "status") not in indexer.snapshot

    def test_unreadable_root(self, indexer: SnippetIndexer) -> None:
        """Should reset progress and raise when the root cannot be read."""
        with patch("snipfinder.index.indexer.iter_folders", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError, match="denied"):
                indexer.refresh()

        assert indexer.progress.state is RefreshState.NONE

    def test_missing_root_is_empty(self, store: LocalSnippetStore) -> None:
        indexer = SnippetIndexer(store)

        stats = indexer.refresh()

        assert stats.snippets == 0
        assert indexer.snapshot == ()
        assert indexer.progress.state is RefreshState.COMPLETE

    def test_refresh_in_background(self, indexer: SnippetIndexer) -> None:
        thread = indexer.refresh_in_background()
        thread.join(5)

        assert not thread.is_alive()
        assert thread.name == "snipfinder-index"
        assert len(indexer.snapshot) == 3

    def test_background_failure_is_logged(self, indexer: SnippetIndexer, caplog) -> None:
        with patch("snipfinder.index.indexer.iter_folders", side_effect=PermissionError("denied")):
            thread = indexer.refresh_in_background()
            thread.join(5)

        assert "Index refresh failed" in caplog.text


class TestMutations:
    """Test store operations followed by a refresh."""

    def test_save_refreshes(self, indexer: SnippetIndexer) -> None:
        indexer.save("Git", "log", "git log --oneline")

        assert Snippet("Git", "log") in indexer.snapshot

    def test_delete_refreshes(self, indexer: SnippetIndexer) -> None:
        indexer.refresh()

        indexer.delete(Snippet("Git", "status"))

        assert [s.fuzzy_index for s in indexer.snapshot] == ["Find/in directory", "SSH/connect"]

    def test_rename_refreshes(self, indexer: SnippetIndexer) -> None:
        renamed = indexer.rename(Snippet("Git", "status"), "Git", "st", "git status -sb")

        assert renamed in indexer.snapshot
        assert Snippet("Git", "status") not in indexer.snapshot

    def test_failed_delete_keeps_snapshot(self, indexer: SnippetIndexer) -> None:
        indexer.refresh()
        before = indexer.snapshot

        with pytest.raises(StorageError):
            indexer.delete(Snippet("Git", "missing"))

        assert indexer.snapshot == before

    def test_refresh_failure_after_save_keeps_snippet(self, indexer: SnippetIndexer, caplog) -> None:
        """Should return the saved snippet when only the rebuild fails."""
        with patch.object(indexer, "refresh", side_effect=StorageError("denied")):
            saved = indexer.save("Git", "log", "git log --oneline")

        assert saved == Snippet("Git", "log")
        assert indexer.store.read_content("Git", "log") == "git log --oneline"
        assert "Index refresh after change failed" in caplog.text


class TestSubscriptions:
    """Test listener registration."""

    def test_unsubscribe_twice(self, indexer: SnippetIndexer) -> None:
        """Should tolerate repeated unsubscribe calls."""
        unsubscribe_index = indexer.subscribe_index(MagicMock())
        unsubscribe_progress = indexer.subscribe_progress(MagicMock())

        unsubscribe_index()
        unsubscribe_index()
        unsubscribe_progress()
        unsubscribe_progress()

        indexer.refresh()
