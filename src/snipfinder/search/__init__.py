"""Search engine exports.

Combines query splitting, fuzzy matching, content filtering, the pipeline
controller and selection navigation in one import surface.
"""

from __future__ import annotations

from .content import ContentSearcher, SearchAccumulator, find_spans
from .fuzzy import RESULTS_LIMIT, FuzzyAccumulator, FuzzyMatcher, fuzzy_score
from .pipeline import PipelineState, SearchPipeline, SearchSnapshot, search_once
from .query import Query, split_query
from .selection import SelectionNavigator

__all__ = [
    "ContentSearcher",
    "FuzzyAccumulator",
    "FuzzyMatcher",
    "PipelineState",
    "Query",
    "RESULTS_LIMIT",
    "SearchAccumulator",
    "SearchPipeline",
    "SearchSnapshot",
    "SelectionNavigator",
    "find_spans",
    "fuzzy_score",
    "search_once",
    "split_query",
]
