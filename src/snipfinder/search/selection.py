"""Circular selection cursor over the displayed results."""

from __future__ import annotations

from typing import Sequence

from snipfinder.models import Snippet


class SelectionNavigator:
    """Tracks the selected row of a result list that is replaced under it.

    ``select_next`` walks towards the start of the list and
    ``select_previous`` towards the end, both wrapping around; the names
    follow the on-screen order, where the list is drawn bottom-up.
    """

    def __init__(self, results: Sequence[Snippet] = ()) -> None:
        self._results: tuple[Snippet, ...] = ()
        self._cursor: int | None = None
        self.reset(results)

    @property
    def results(self) -> tuple[Snippet, ...]:
        return self._results

    @property
    def cursor(self) -> int | None:
        return self._cursor

    def reset(self, results: Sequence[Snippet]) -> None:
        self._results = tuple(results)
        self._cursor = 0 if self._results else None

    def select_next(self) -> int | None:
        if not self._results:
            self._cursor = None
        elif self._cursor is None:
            self._cursor = len(self._results) - 1
        else:
            self._cursor = len(self._results) - 1 if self._cursor == 0 else self._cursor - 1
        return self._cursor

    def select_previous(self) -> int | None:
        if not self._results:
            self._cursor = None
        elif self._cursor is None:
            self._cursor = 0
        else:
            self._cursor = (self._cursor + 1) % len(self._results)
        return self._cursor

    def select(self, snippet: Snippet) -> bool:
        """Move the cursor onto ``snippet`` if it is displayed."""
        try:
            self._cursor = self._results.index(snippet)
        except ValueError:
            return False
        return True

    def current_selection(self) -> Snippet | None:
        if self._cursor is None:
            return None
        return self._results[self._cursor]
