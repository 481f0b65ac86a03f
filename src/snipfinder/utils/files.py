"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def iter_folders(root: Path) -> Iterator[Path]:
    """Yield the visible sub-directories of ``root`` in name order."""
    if not root.is_dir():
        return
    for child in sorted(root.iterdir()):
        if child.is_dir() and not _is_hidden(child):
            yield child


def iter_snippet_files(folder: Path) -> Iterator[Path]:
    """Yield the visible regular files directly inside ``folder`` in name order."""
    for child in sorted(folder.iterdir()):
        if child.is_file() and not _is_hidden(child):
            yield child


def prune_empty_dir(path: Path) -> bool:
    """Remove ``path`` if it is an empty directory."""
    try:
        path.rmdir()
    except OSError:
        return False
    return True
