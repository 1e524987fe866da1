"""Query composition and execution components."""

from .aliases import AliasResolver
from .debounce import DebounceCoordinator, GenerationCounter, TimerState
from .executor import QueryExecutor, QueryOutcome, build_search_params
from .filter_compiler import FilterCompiler, FilterDrafts, FilterMode, RawDraft, StructuredDraft
from .highlighting import ResultReconciler, highlight_text, is_image_url, to_markup
from .pagination import PaginationController, total_pages

__all__ = [
    "AliasResolver",
    "DebounceCoordinator",
    "FilterCompiler",
    "FilterDrafts",
    "FilterMode",
    "GenerationCounter",
    "PaginationController",
    "QueryExecutor",
    "QueryOutcome",
    "RawDraft",
    "ResultReconciler",
    "StructuredDraft",
    "TimerState",
    "build_search_params",
    "highlight_text",
    "is_image_url",
    "to_markup",
    "total_pages",
]
