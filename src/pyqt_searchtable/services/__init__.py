"""
Service layer.

Selection coordination, query execution and signal helpers shared by the
manager and the surface widgets.
"""

from .selection_service import Selection, SelectionMode, SelectionService
from .query_service import (
    DataLoadError,
    LoadingState,
    LoadParams,
    LoadResult,
    Pagination,
    QueryRunner,
    merge_search_params,
)
from .signal_service import SignalService

__all__ = [
    "Selection",
    "SelectionMode",
    "SelectionService",
    "DataLoadError",
    "LoadingState",
    "LoadParams",
    "LoadResult",
    "Pagination",
    "QueryRunner",
    "merge_search_params",
    "SignalService",
]
