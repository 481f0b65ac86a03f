"""Split raw input into a fuzzy name term and a content filter term."""

from __future__ import annotations

from dataclasses import dataclass

from snipfinder.models import SearchMode


@dataclass(frozen=True, slots=True)
class Query:
    fuzzy: str
    filter: str = ""


def split_query(text: str, mode: SearchMode = SearchMode.INSERT) -> Query | None:
    """Parse ``text`` into a :class:`Query`.

    The first run of whitespace separates the fuzzy term from the filter
    term; both come back trimmed. Returns ``None`` when there is nothing to
    search for: general mode or blank input.
    """
    if mode is SearchMode.GENERAL:
        return None
    parts = text.strip().split(None, 1)
    if not parts:
        return None
    filter_term = parts[1].strip() if len(parts) == 2 else ""
    return Query(fuzzy=parts[0], filter=filter_term)
