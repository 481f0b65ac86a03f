"""Shared fixtures for SnipFinder tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from snipfinder.index.storage import LocalSnippetStore
from snipfinder.models import Snippet


@pytest.fixture
def example_index() -> list[Snippet]:
    return [
        Snippet.from_text("Find", "in directory", "find . -maxdepth 1 -type d"),
        Snippet.from_text("Find", "from directory", "find ${dir} -iname ${name}"),
        Snippet.from_text("SSH", "connect", "ssh ${user}@${host}"),
    ]


@pytest.fixture
def store(tmp_path: Path) -> LocalSnippetStore:
    return LocalSnippetStore(tmp_path / "snippets")
