"""Core SnipFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Tuple

from snipfinder.errors import ContentLoadError
from snipfinder.utils.text import Span


class SearchMode(Enum):
    """Context the search surface is operating in."""

    GENERAL = "general"
    INSERT = "insert"


@dataclass(frozen=True, slots=True)
class Snippet:
    """A named, foldered text template.

    Identity is the ``(folder, name)`` pair; the body is only read on demand
    through ``loader`` so an index can hold thousands of snippets cheaply.
    """

    folder: str
    name: str
    loader: Callable[[], str] | None = field(default=None, compare=False, hash=False, repr=False)

    @classmethod
    def from_text(cls, folder: str, name: str, content: str) -> "Snippet":
        return cls(folder, name, loader=lambda: content)

    @property
    def fuzzy_index(self) -> str:
        return f"{self.folder}/{self.name}"

    @property
    def searchable_content(self) -> str:
        if self.loader is None:
            raise ContentLoadError(self.fuzzy_index, "no content source")
        try:
            return self.loader()
        except ContentLoadError:
            raise
        except Exception as exc:
            # Loaders come from index providers; any failure only affects this snippet
            raise ContentLoadError(self.fuzzy_index, str(exc) or type(exc).__name__) from exc


def merge_positions(positions: Tuple[int, ...]) -> Tuple[Span, ...]:
    """Collapse sorted character positions into half-open runs."""
    spans: list[Span] = []
    for pos in positions:
        if spans and spans[-1][1] == pos:
            spans[-1] = (spans[-1][0], pos + 1)
        else:
            spans.append((pos, pos + 1))
    return tuple(spans)


@dataclass(frozen=True, slots=True)
class FuzzyMatch:
    """Snippet scored against a name query."""

    snippet: Snippet
    score: int
    positions: Tuple[int, ...]
    order: int

    @property
    def spans(self) -> Tuple[Span, ...]:
        return merge_positions(self.positions)


@dataclass(frozen=True, slots=True)
class ContentMatch:
    """Snippet whose body contains the filter query."""

    snippet: Snippet
    spans: Tuple[Span, ...]
    order: int
    content: str = field(default="", compare=False, repr=False)

    @property
    def first_span(self) -> Span | None:
        return self.spans[0] if self.spans else None


class RefreshState(Enum):
    NONE = "none"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class RefreshProgress:
    """Progress of an index rebuild."""

    state: RefreshState
    fraction: float = 0.0

    @classmethod
    def none(cls) -> "RefreshProgress":
        return cls(RefreshState.NONE)

    @classmethod
    def in_progress(cls, fraction: float) -> "RefreshProgress":
        return cls(RefreshState.IN_PROGRESS, min(max(fraction, 0.0), 1.0))

    @classmethod
    def complete(cls) -> "RefreshProgress":
        return cls(RefreshState.COMPLETE, 1.0)
