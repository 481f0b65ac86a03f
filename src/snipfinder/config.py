"""Application configuration defaults."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

from snipfinder.render import HighlightStyle
from snipfinder.search.fuzzy import RESULTS_LIMIT


def _get_default_snippets_dir() -> Path:
    """Get the default snippets directory based on execution context."""
    user_dir = Path.home() / "Documents" / "SnipFinder" / "snippets"

    if getattr(sys, "frozen", False):
        return user_dir

    # When running from source, prefer local data/ if it exists
    local_dir = Path("data/snippets")
    if local_dir.exists():
        return local_dir

    return user_dir


@dataclass(slots=True)
class AppConfig:
    snippets_dir: Path | None = None
    results_limit: int = RESULTS_LIMIT
    style: str = HighlightStyle.LIGHT.value
    workers: int = 2
    rerun_on_index_update: bool = False

    def __post_init__(self) -> None:
        if self.snippets_dir is None:
            self.snippets_dir = _get_default_snippets_dir()
        if self.results_limit < 1:
            raise ValueError("results_limit must be at least 1")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        # Raises ValueError for unknown names
        HighlightStyle(self.style)

    @property
    def highlight_style(self) -> HighlightStyle:
        return HighlightStyle(self.style)

    def resolve_snippets_dir(self, base_dir: Path | None = None) -> Path:
        if self.snippets_dir is None:
            self.snippets_dir = _get_default_snippets_dir()
        if Path(self.snippets_dir).is_absolute() or base_dir is None:
            return Path(self.snippets_dir)
        return base_dir / self.snippets_dir
