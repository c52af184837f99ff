"""
Query parameters and last-issued-request-wins loading.

Every request gets a monotonically increasing sequence number. When a
request resolves or fails, its number is compared with the latest one
issued; anything older is dropped. This keeps the table showing the most
recent query even when an earlier fetch finishes last.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import logging

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_searchtable.core.background_task import TaskExecutor, ThreadedTaskExecutor
from pyqt_searchtable.forms.field_types import SortItem

logger = logging.getLogger(__name__)


def merge_search_params(primary: Optional[Mapping[str, Any]],
                        more: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Combine both search panels. The overflow panel is merged second and wins."""
    merged: Dict[str, Any] = {}
    merged.update(primary or {})
    merged.update(more or {})
    return merged


class LoadingState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class DataLoadError(Exception):
    """A data loader rejected or returned something unusable."""

    def __init__(self, message: str, sequence: int, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.sequence = sequence
        self.cause = cause


@dataclass
class Pagination:
    current: int = 1
    page_size: int = 10

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "page_size": self.page_size}


@dataclass
class LoadParams:
    """Everything a data loader receives."""
    search: Dict[str, Any] = field(default_factory=dict)
    filters: Dict[str, Any] = field(default_factory=dict)
    sorts: List[SortItem] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search": dict(self.search),
            "filters": dict(self.filters),
            "sorts": [s.to_dict() for s in self.sorts],
            "pagination": self.pagination.to_dict(),
        }


@dataclass
class LoadResult:
    rows: List[Mapping[str, Any]] = field(default_factory=list)
    total: int = 0

    @classmethod
    def coerce(cls, value: Union["LoadResult", Mapping[str, Any]]) -> "LoadResult":
        """Accept a LoadResult or a {"rows", "total"} mapping."""
        if isinstance(value, LoadResult):
            return value
        if isinstance(value, Mapping):
            rows = list(value.get("rows") or [])
            total = value.get("total")
            return cls(rows=rows, total=len(rows) if total is None else int(total))
        raise TypeError(f"Loader returned {type(value).__name__}, expected a mapping with 'rows' and 'total'")


DataLoader = Callable[[LoadParams], Union[LoadResult, Mapping[str, Any]]]


class QueryRunner(QObject):
    """
    Issues loader calls and keeps only the latest outcome.

    Usage:
        runner = QueryRunner(loader=fetch_page)
        runner.result_ready.connect(table.show_result)
        runner.issue(params)
    """

    loading_state_changed = pyqtSignal(object)  # LoadingState
    result_ready = pyqtSignal(object)           # LoadResult
    load_failed = pyqtSignal(object)            # DataLoadError

    def __init__(self, loader: Optional[DataLoader] = None,
                 executor: Optional[TaskExecutor] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._loader = loader
        self._executor = executor or ThreadedTaskExecutor()
        self._latest_sequence = 0
        self.state = LoadingState.IDLE

    @property
    def latest_sequence(self) -> int:
        return self._latest_sequence

    def set_loader(self, loader: Optional[DataLoader]) -> None:
        self._loader = loader

    def issue(self, params: LoadParams) -> Optional[int]:
        """
        Start a load for params.

        Returns:
            Sequence number of the request, or None when no loader is set
        """
        if self._loader is None:
            logger.debug("No data loader set, query skipped")
            return None

        self._latest_sequence += 1
        sequence = self._latest_sequence
        logger.debug(f"Issuing query #{sequence}: {params.to_dict()}")
        self._set_state(LoadingState.LOADING)

        loader = self._loader
        self._executor.submit(
            lambda: loader(params),
            partial(self._on_resolved, sequence),
            partial(self._on_rejected, sequence),
        )
        return sequence

    def _is_stale(self, sequence: int) -> bool:
        return sequence != self._latest_sequence

    def _on_resolved(self, sequence: int, value: Any) -> None:
        if self._is_stale(sequence):
            logger.debug(f"Discarding stale result #{sequence} (latest #{self._latest_sequence})")
            return
        try:
            result = LoadResult.coerce(value)
        except (TypeError, ValueError) as e:
            self._on_rejected(sequence, e)
            return
        self._set_state(LoadingState.LOADED)
        self.result_ready.emit(result)

    def _on_rejected(self, sequence: int, error: Exception) -> None:
        if self._is_stale(sequence):
            logger.debug(f"Discarding stale failure #{sequence}: {error!r}")
            return
        logger.warning(f"Query #{sequence} failed: {error}", exc_info=error)
        self._set_state(LoadingState.ERROR)
        self.load_failed.emit(DataLoadError(str(error), sequence, cause=error))

    def _set_state(self, state: LoadingState) -> None:
        self.state = state
        self.loading_state_changed.emit(state)
