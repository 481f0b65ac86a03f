"""Full-text filtering of fuzzy candidates."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from snipfinder.errors import ContentLoadError
from snipfinder.models import ContentMatch, Snippet
from snipfinder.render import HighlightStyle
from snipfinder.search.fuzzy import IndexEntry
from snipfinder.utils.text import Span, fold_case

LOGGER = logging.getLogger(__name__)

MAX_HIGHLIGHT_SPANS = 16

# (fuzzy query, index version) of the candidate list a content result was built from
SourceKey = Tuple[str, int]


def find_spans(query: str, content: str, *, max_spans: int = MAX_HIGHLIGHT_SPANS) -> Tuple[Span, ...]:
    """Return non-overlapping, case-insensitive occurrences of ``query``."""
    if not query:
        return ()
    spans: list[Span] = []
    for found in re.finditer(re.escape(query), content, re.IGNORECASE):
        spans.append(found.span())
        if len(spans) >= max_spans:
            break
    return tuple(spans)


class ContentSearcher:
    """Keeps the candidates whose body contains the filter query."""

    def __init__(self, *, max_spans: int = MAX_HIGHLIGHT_SPANS) -> None:
        self.max_spans = max_spans

    def search(self, query: str, candidates: Sequence[Snippet]) -> List[ContentMatch]:
        return self.search_entries(query, list(enumerate(candidates)))

    def search_entries(
        self, query: str, entries: Sequence[IndexEntry], *, failed: List[Snippet] | None = None
    ) -> List[ContentMatch]:
        """Filter ``entries``; snippets that fail to load are appended to ``failed``."""
        needle = query.strip()
        if not needle:
            return []

        results: List[ContentMatch] = []
        for order, snippet in entries:
            try:
                content = snippet.searchable_content
            except ContentLoadError as exc:
                LOGGER.warning("Skipping snippet in content search: %s", exc)
                if failed is not None:
                    failed.append(snippet)
                continue
            spans = find_spans(needle, content, max_spans=self.max_spans)
            if spans:
                results.append(ContentMatch(snippet=snippet, spans=spans, order=order, content=content))
        return results


@dataclass(slots=True)
class SearchAccumulator:
    """Query-tagged result of the most recent content phase."""

    query: str = ""
    style: HighlightStyle = HighlightStyle.LIGHT
    matches: List[ContentMatch] = field(default_factory=list)
    source: SourceKey | None = None
    complete: bool = True

    @property
    def snippets(self) -> List[Snippet]:
        return [match.snippet for match in self.matches]

    @property
    def is_empty(self) -> bool:
        return not self.matches

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.source = None
        self.complete = True

    def is_reusable(self, query: str, source: SourceKey) -> bool:
        return bool(self.query) and self.query == query and self.source == source

    def choose_source(
        self, query: str, candidates: Sequence[Snippet], source: SourceKey
    ) -> List[IndexEntry]:
        """Narrow to the previous matches when ``query`` extends the last one.

        Only valid while the candidate list is the one the previous matches
        were drawn from, and only when every candidate could be read: a
        snippet skipped for a load failure may be readable next time.
        """
        previous = fold_case(self.query)
        if (
            previous
            and self.source == source
            and self.complete
            and fold_case(query) != previous
            and fold_case(query).startswith(previous)
        ):
            return [(match.order, match.snippet) for match in self.matches]
        return list(enumerate(candidates))
