"""Two-phase incremental search: fuzzy name match, then content filter.

Matching runs on worker threads. Completions come back through a queue and
are applied by :meth:`SearchPipeline.poll` on the thread that owns the
pipeline, so accumulators, the displayed list and subscribers are only ever
touched from one place. Each phase carries a generation number; a completion
whose generation is no longer the active one is dropped.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from queue import Empty, Queue
from typing import Any, Callable, List, Sequence, Tuple

from snipfinder.models import ContentMatch, FuzzyMatch, SearchMode, Snippet
from snipfinder.render import HighlightStyle
from snipfinder.search.content import ContentSearcher, SearchAccumulator, SourceKey
from snipfinder.search.fuzzy import RESULTS_LIMIT, FuzzyAccumulator, FuzzyMatcher, IndexEntry
from snipfinder.search.query import Query, split_query
from snipfinder.utils.text import fold_case

LOGGER = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


class PipelineState(Enum):
    IDLE = "idle"
    FUZZY_IN_FLIGHT = "fuzzy_in_flight"
    CONTENT_IN_FLIGHT = "content_in_flight"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class SearchSnapshot:
    """Published view of the pipeline.

    ``generation`` increases every time the displayed list is replaced.
    """

    state: PipelineState
    fuzzy_query: str
    filter_query: str
    results: Tuple[Snippet, ...]
    fuzzy_matches: Tuple[FuzzyMatch, ...]
    content_matches: Tuple[ContentMatch, ...]
    style: HighlightStyle
    generation: int


Listener = Callable[[SearchSnapshot], None]


@dataclass(slots=True)
class _FuzzyJob:
    generation: int
    query: str
    index_version: int
    future: Future | None = None


@dataclass(slots=True)
class _ContentJob:
    generation: int
    query: str
    future: Future | None = None


class SearchPipeline:
    """Owns the fuzzy and content phases, their caches and the displayed list."""

    def __init__(
        self,
        index: Sequence[Snippet] = (),
        *,
        matcher: FuzzyMatcher | None = None,
        searcher: ContentSearcher | None = None,
        limit: int = RESULTS_LIMIT,
        style: HighlightStyle = HighlightStyle.LIGHT,
        workers: int = 2,
        executor: Executor | None = None,
        rerun_on_index_update: bool = False,
    ) -> None:
        self.matcher = matcher if matcher is not None else FuzzyMatcher(limit)
        self.searcher = searcher if searcher is not None else ContentSearcher()
        self.rerun_on_index_update = rerun_on_index_update
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="snipfinder-search"
        )
        self._events: Queue[tuple[str, int, Any, BaseException | None]] = Queue()
        self._listeners: List[Listener] = []

        self._index: Tuple[Snippet, ...] = tuple(dict.fromkeys(index))
        self._index_version = 0
        self._style = style
        self.fuzzy_results = FuzzyAccumulator(style=style)
        self.search_results = SearchAccumulator(style=style)

        self._generation = 0
        self._fuzzy_job: _FuzzyJob | None = None
        self._content_job: _ContentJob | None = None
        self._query: Query | None = None
        self._state = PipelineState.IDLE
        self._displayed: Tuple[Snippet, ...] = ()
        self._displayed_content: Tuple[ContentMatch, ...] = ()
        self._display_generation = 0

    # context management
    def __enter__(self) -> "SearchPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._cancel_fuzzy()
        self._cancel_content()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # observation
    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._fuzzy_job is not None or self._content_job is not None

    @property
    def index(self) -> Tuple[Snippet, ...]:
        return self._index

    @property
    def displayed(self) -> Tuple[Snippet, ...]:
        return self._displayed

    @property
    def style(self) -> HighlightStyle:
        return self._style

    def snapshot(self) -> SearchSnapshot:
        return SearchSnapshot(
            state=self._state,
            fuzzy_query=self.fuzzy_results.query,
            filter_query=self._query.filter if self._query is not None else "",
            results=self._displayed,
            fuzzy_matches=tuple(self.fuzzy_results.matches),
            content_matches=self._displayed_content,
            style=self._style,
            generation=self._display_generation,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for snapshots; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # input
    def update(self, text: str, mode: SearchMode = SearchMode.INSERT) -> None:
        self.submit(split_query(text, mode))

    def submit(self, query: Query | None) -> None:
        """Start (or short-circuit) the search for a new input."""
        self._query = query
        if query is None:
            self._cancel_fuzzy()
            self._cancel_content()
            self.fuzzy_results.clear()
            self.search_results.clear()
            self._set_displayed((), PipelineState.IDLE)
            return

        fuzzy_term = fold_case(query.fuzzy)
        job = self._fuzzy_job
        if job is not None:
            if job.query == fuzzy_term and job.index_version == self._index_version:
                # Its completion runs the content phase with the latest filter term
                return
            self._cancel_fuzzy()

        if self.fuzzy_results.is_reusable(fuzzy_term, self._index_version):
            self._run_content_phase()
            return

        self._cancel_content()
        self._start_fuzzy(fuzzy_term)

    def set_style(self, style: HighlightStyle) -> None:
        self._style = style
        self.fuzzy_results.style = style
        self.search_results.style = style
        self._notify()

    def set_index(self, index: Sequence[Snippet]) -> None:
        """Replace the index snapshot. Call from the coordinating thread."""
        self._index = tuple(dict.fromkeys(index))
        self._index_version += 1
        LOGGER.debug("Index snapshot %d with %d snippets", self._index_version, len(self._index))
        if self.rerun_on_index_update and self._query is not None:
            self.submit(self._query)

    def post_index(self, index: Sequence[Snippet]) -> None:
        """Queue an index snapshot from any thread; applied on the next poll."""
        self._events.put(("index", 0, tuple(index), None))

    # coordination
    def poll(self, timeout: float = 0.0) -> bool:
        """Apply queued completions. Returns whether anything was processed."""
        processed = False
        if timeout > 0:
            try:
                first = self._events.get(timeout=timeout)
            except Empty:
                first = None
            if first is not None:
                self._apply(first)
                processed = True

        while True:
            try:
                event = self._events.get_nowait()
            except Empty:
                break
            self._apply(event)
            processed = True
        return processed

    def wait(self, timeout: float | None = None) -> SearchSnapshot:
        """Poll until both phases have settled and return the final snapshot."""
        deadline = None if timeout is None else time.monotonic() + timeout
        self.poll()
        while self.busy:
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("search did not settle in time")
            self.poll(timeout=POLL_INTERVAL_SECONDS)
        return self.snapshot()

    # phases
    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _start_fuzzy(self, query: str) -> None:
        entries = self.fuzzy_results.choose_source(query, self._index, self._index_version)
        job = _FuzzyJob(self._next_generation(), query, self._index_version)
        self._fuzzy_job = job
        self._set_state(PipelineState.FUZZY_IN_FLIGHT)
        job.future = self._executor.submit(
            self._compute_fuzzy, query, entries, job.index_version, self._style
        )
        job.future.add_done_callback(partial(self._deliver, "fuzzy", job.generation))

    def _compute_fuzzy(
        self, query: str, entries: List[IndexEntry], index_version: int, style: HighlightStyle
    ) -> FuzzyAccumulator:
        matches, truncated = self.matcher.match_entries(query, entries)
        return FuzzyAccumulator(
            query=query,
            style=style,
            matches=matches,
            truncated=truncated,
            index_version=index_version,
        )

    def _run_content_phase(self) -> None:
        self._cancel_content()
        filter_term = self._query.filter if self._query is not None else ""

        if self.fuzzy_results.is_empty:
            self.search_results.clear()
            self._set_displayed((), PipelineState.SETTLED)
            return

        if not filter_term:
            self.search_results.clear()
            self._set_displayed(self.fuzzy_results.snippets, PipelineState.SETTLED)
            return

        source: SourceKey = (self.fuzzy_results.query, self.fuzzy_results.index_version)
        if self.search_results.is_reusable(filter_term, source):
            self._set_displayed(
                self.search_results.snippets, PipelineState.SETTLED, self.search_results.matches
            )
            return

        entries = self.search_results.choose_source(
            filter_term, self.fuzzy_results.snippets, source
        )
        job = _ContentJob(self._next_generation(), filter_term)
        self._content_job = job
        self._set_state(PipelineState.CONTENT_IN_FLIGHT)
        job.future = self._executor.submit(
            self._compute_content, filter_term, entries, source, self._style
        )
        job.future.add_done_callback(partial(self._deliver, "content", job.generation))

    def _compute_content(
        self, query: str, entries: List[IndexEntry], source: SourceKey, style: HighlightStyle
    ) -> SearchAccumulator:
        failed: List[Snippet] = []
        matches = self.searcher.search_entries(query, entries, failed=failed)
        return SearchAccumulator(
            query=query, style=style, matches=matches, source=source, complete=not failed
        )

    def _cancel_fuzzy(self) -> None:
        if self._fuzzy_job is not None and self._fuzzy_job.future is not None:
            self._fuzzy_job.future.cancel()
        self._fuzzy_job = None

    def _cancel_content(self) -> None:
        if self._content_job is not None and self._content_job.future is not None:
            self._content_job.future.cancel()
        self._content_job = None

    # delivery
    def _deliver(self, kind: str, generation: int, future: Future) -> None:
        # Runs on the worker (or submitting) thread: only hand the result over.
        if future.cancelled():
            return
        error = future.exception()
        result = None if error is not None else future.result()
        self._events.put((kind, generation, result, error))

    def _apply(self, event: tuple[str, int, Any, BaseException | None]) -> None:
        kind, generation, payload, error = event
        if kind == "index":
            self.set_index(payload)
        elif kind == "fuzzy":
            self._apply_fuzzy(generation, payload, error)
        elif kind == "content":
            self._apply_content(generation, payload, error)

    def _apply_fuzzy(
        self, generation: int, payload: FuzzyAccumulator | None, error: BaseException | None
    ) -> None:
        job = self._fuzzy_job
        if job is None or job.generation != generation:
            LOGGER.debug("Discarding stale fuzzy result (generation %d)", generation)
            return
        self._fuzzy_job = None
        if error is not None or payload is None:
            LOGGER.error("Fuzzy search for %r failed", job.query, exc_info=error)
            self.fuzzy_results.clear()
            self.search_results.clear()
            self._set_displayed((), PipelineState.SETTLED)
            return
        self.fuzzy_results = payload
        self._run_content_phase()

    def _apply_content(
        self, generation: int, payload: SearchAccumulator | None, error: BaseException | None
    ) -> None:
        job = self._content_job
        if job is None or job.generation != generation:
            LOGGER.debug("Discarding stale content result (generation %d)", generation)
            return
        self._content_job = None
        if error is not None or payload is None:
            LOGGER.error("Content search for %r failed", job.query, exc_info=error)
            self.search_results.clear()
            self._set_displayed((), PipelineState.SETTLED)
            return
        self.search_results = payload
        self._set_displayed(payload.snippets, PipelineState.SETTLED, payload.matches)

    # publication
    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        self._notify()

    def _set_displayed(
        self,
        results: Sequence[Snippet],
        state: PipelineState,
        content_matches: Sequence[ContentMatch] = (),
    ) -> None:
        self._displayed = tuple(results)
        self._displayed_content = tuple(content_matches)
        self._display_generation += 1
        self._state = state
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


def search_once(
    index: Sequence[Snippet],
    text: str,
    *,
    limit: int = RESULTS_LIMIT,
    style: HighlightStyle = HighlightStyle.LIGHT,
    timeout: float | None = None,
) -> SearchSnapshot:
    """Run a single query to completion against ``index``."""
    with SearchPipeline(index, limit=limit, style=style, workers=1) as pipeline:
        pipeline.update(text)
        return pipeline.wait(timeout)
