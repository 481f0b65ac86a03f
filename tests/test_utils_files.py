"""Tests for file helpers."""

from __future__ import annotations

from pathlib import Path

from snipfinder.utils.files import iter_folders, iter_snippet_files, prune_empty_dir


def test_iter_folders_sorted_and_visible(tmp_path: Path) -> None:
    for name in ("SSH", "Find", ".hidden"):
        (tmp_path / name).mkdir()
    (tmp_path / "loose.txt").write_text("x", encoding="utf-8")

    assert [p.name for p in iter_folders(tmp_path)] == ["Find", "SSH"]


def test_iter_folders_missing_root(tmp_path: Path) -> None:
    assert list(iter_folders(tmp_path / "missing")) == []


def test_iter_snippet_files(tmp_path: Path) -> None:
    (tmp_path / "b").write_text("x", encoding="utf-8")
    (tmp_path / "a").write_text("x", encoding="utf-8")
    (tmp_path / ".swp").write_text("x", encoding="utf-8")
    (tmp_path / "nested").mkdir()

    assert [p.name for p in iter_snippet_files(tmp_path)] == ["a", "b"]


def test_prune_empty_dir(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    full = tmp_path / "full"
    full.mkdir()
    (full / "a").write_text("x", encoding="utf-8")

    assert prune_empty_dir(empty)
    assert not empty.exists()
    assert not prune_empty_dir(full)
    assert full.exists()
