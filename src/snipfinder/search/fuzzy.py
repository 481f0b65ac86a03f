"""Subsequence fuzzy matching of snippet names."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from snipfinder.models import FuzzyMatch, Snippet
from snipfinder.render import HighlightStyle
from snipfinder.utils.text import SEPARATORS, fold_case

LOGGER = logging.getLogger(__name__)

RESULTS_LIMIT = 100

SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_CONSECUTIVE = 6
BONUS_FIRST_CHAR_MULTIPLIER = 2
PENALTY_GAP_START = 3
PENALTY_GAP_EXTENSION = 1
MAX_LEADING_PENALTY = 8

IndexEntry = Tuple[int, Snippet]


def _locate(needle: str, haystack: str) -> list[int] | None:
    """Find a tight set of positions where ``needle`` occurs as a subsequence.

    A forward scan finds the earliest end of a full match, a backward scan
    from there finds the latest start, and the positions are then taken
    left-to-right inside that window.
    """
    qi = 0
    end = -1
    for i, char in enumerate(haystack):
        if char == needle[qi]:
            qi += 1
            if qi == len(needle):
                end = i
                break
    if end < 0:
        return None

    qi = len(needle) - 1
    start = end
    for i in range(end, -1, -1):
        if haystack[i] == needle[qi]:
            qi -= 1
            if qi < 0:
                start = i
                break

    positions = []
    qi = 0
    for i in range(start, end + 1):
        if qi < len(needle) and haystack[i] == needle[qi]:
            positions.append(i)
            qi += 1
    return positions


def _score_positions(target: str, positions: Sequence[int]) -> int:
    score = 0
    previous: int | None = None
    for nth, pos in enumerate(positions):
        bonus = BONUS_BOUNDARY if pos == 0 or target[pos - 1] in SEPARATORS else 0
        if nth == 0:
            bonus *= BONUS_FIRST_CHAR_MULTIPLIER
        if previous is not None:
            gap = pos - previous - 1
            if gap == 0:
                bonus += BONUS_CONSECUTIVE
            else:
                score -= PENALTY_GAP_START + (gap - 1) * PENALTY_GAP_EXTENSION
        score += SCORE_MATCH + bonus
        previous = pos
    return score - min(positions[0], MAX_LEADING_PENALTY)


def fuzzy_score(query: str, target: str) -> tuple[int, tuple[int, ...]] | None:
    """Score ``target`` against ``query``.

    Returns ``(score, positions)`` or ``None`` when the query characters do
    not all appear, in order, in the target. Matching ignores case.
    """
    if not query:
        return None
    positions = _locate(fold_case(query), fold_case(target))
    if positions is None:
        return None
    return _score_positions(target, positions), tuple(positions)


class FuzzyMatcher:
    """Ranks index entries by fuzzy score against a name query."""

    def __init__(self, limit: int = RESULTS_LIMIT) -> None:
        self.limit = limit

    def match(self, query: str, index: Sequence[Snippet]) -> List[FuzzyMatch]:
        matches, _truncated = self.match_entries(query, list(enumerate(index)))
        return matches

    def match_entries(
        self, query: str, entries: Sequence[IndexEntry], *, limit: int | None = None
    ) -> tuple[List[FuzzyMatch], bool]:
        """Score ``(order, snippet)`` entries and keep the best ``limit``.

        Ties resolve by ``order``, the snippet's position in the full index.
        The flag tells whether matching entries were dropped by the cap.
        """
        cap = self.limit if limit is None else limit
        needle = fold_case(query.strip())
        if not needle:
            return [], False

        scored: list[FuzzyMatch] = []
        for order, snippet in entries:
            result = fuzzy_score(needle, snippet.fuzzy_index)
            if result is None:
                continue
            score, positions = result
            scored.append(FuzzyMatch(snippet=snippet, score=score, positions=positions, order=order))

        best = heapq.nsmallest(cap, scored, key=lambda m: (-m.score, m.order))
        LOGGER.debug("Fuzzy %r: %d of %d entries matched", needle, len(scored), len(entries))
        return best, len(scored) > cap


@dataclass(slots=True)
class FuzzyAccumulator:
    """Query-tagged result of the most recent fuzzy phase.

    ``query`` holds the case-folded fuzzy term. Matching ignores case, so
    inputs that differ only in case share one result.
    """

    query: str = ""
    style: HighlightStyle = HighlightStyle.LIGHT
    matches: List[FuzzyMatch] = field(default_factory=list)
    truncated: bool = False
    index_version: int = -1

    @property
    def snippets(self) -> List[Snippet]:
        return [match.snippet for match in self.matches]

    @property
    def is_empty(self) -> bool:
        return not self.matches

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.truncated = False
        self.index_version = -1

    def is_reusable(self, query: str, index_version: int) -> bool:
        return bool(self.query) and self.query == query and self.index_version == index_version

    def choose_source(
        self, query: str, index: Sequence[Snippet], index_version: int
    ) -> List[IndexEntry]:
        """Pick the entries a new query has to be matched against.

        A query that extends this accumulator's query can only match a
        subset of what this one matched, so the previous matches are enough
        as long as none were cut by the cap and the index has not changed.
        """
        if (
            self.query
            and query != self.query
            and query.startswith(self.query)
            and not self.truncated
            and self.index_version == index_version
        ):
            return [(match.order, match.snippet) for match in self.matches]
        return list(enumerate(index))
