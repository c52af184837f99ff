"""
Row selection coordination.

Owns the selected row keys and their cached records. Records are kept
because a selected row can page out of the table while staying selected.
Keys and records live in one ordered mapping, so every key always has its
record and vice versa.

Each mutating call emits selection_changed exactly once, after the
transition has completed, with a snapshot of the whole selection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

from PyQt6.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

RowKeyGetter = Union[str, Callable[[Mapping[str, Any]], Any]]


def row_key_of(record: Any, row_key: RowKeyGetter) -> Any:
    """Return the row key of a record (mapping or object), or None when it has none."""
    if callable(row_key):
        return row_key(record)
    if isinstance(record, Mapping):
        return record.get(row_key)
    return getattr(record, row_key, None)


class SelectionMode(Enum):
    """RADIO keeps at most one row selected; CHECKBOX allows many."""
    RADIO = "radio"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class Selection:
    """Immutable snapshot of a selection."""
    keys: Tuple[Any, ...] = ()
    records: Dict[Any, Mapping[str, Any]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.keys)

    def __contains__(self, key: Any) -> bool:
        return key in self.records

    @property
    def rows(self) -> List[Mapping[str, Any]]:
        return [self.records[k] for k in self.keys]


class SelectionService(QObject):
    """
    Selection state machine.

    Usage:
        selection = SelectionService(row_key="id", mode=SelectionMode.CHECKBOX)
        selection.selection_changed.connect(on_change)
        selection.add([{"id": 1, "name": "a"}])
    """

    selection_changed = pyqtSignal(object)  # Selection snapshot

    def __init__(self, row_key: RowKeyGetter = "id",
                 mode: Union[SelectionMode, str] = SelectionMode.CHECKBOX,
                 on_change: Optional[Callable[[Selection], None]] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._row_key = row_key
        self.mode = SelectionMode(mode)
        self._on_change = on_change
        self._records: Dict[Any, Mapping[str, Any]] = {}

    # ========== ACCESSORS ==========

    @property
    def keys(self) -> List[Any]:
        return list(self._records)

    @property
    def records(self) -> Dict[Any, Mapping[str, Any]]:
        return dict(self._records)

    def snapshot(self) -> Selection:
        return Selection(keys=tuple(self._records), records=dict(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: Any) -> bool:
        return key in self._records

    def key_of(self, record: Mapping[str, Any]) -> Any:
        return row_key_of(record, self._row_key)

    # ========== TRANSITIONS ==========

    def add(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Union in records; a duplicate key overwrites the stored record."""
        keyed = self._keyed(records)
        if self.mode is SelectionMode.RADIO:
            self._records.clear()
            keyed = keyed[-1:]
        for key, record in keyed:
            self._records[key] = record
        self._notify()

    def remove(self, keys: Iterable[Any]) -> None:
        """Drop the given keys; unknown keys are ignored."""
        for key in keys:
            self._records.pop(key, None)
        self._notify()

    def replace(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Overwrite the whole selection."""
        keyed = self._keyed(records)
        if self.mode is SelectionMode.RADIO:
            keyed = keyed[-1:]
        self._records = dict(keyed)
        self._notify()

    def clear(self) -> None:
        self._records = {}
        self._notify()

    def set_mode(self, mode: Union[SelectionMode, str]) -> None:
        """Switch mode; leaving more than one row selected in radio mode keeps the last."""
        self.mode = SelectionMode(mode)
        if self.mode is SelectionMode.RADIO and len(self._records) > 1:
            last_key = list(self._records)[-1]
            self._records = {last_key: self._records[last_key]}
            self._notify()

    # ========== INTERNALS ==========

    def _keyed(self, records: Iterable[Mapping[str, Any]]) -> List[Tuple[Any, Mapping[str, Any]]]:
        keyed = []
        for record in records:
            key = self.key_of(record)
            if key is None:
                logger.warning(f"Skipping selection of a record without row key {self._row_key!r}")
                continue
            keyed.append((key, record))
        return keyed

    def _notify(self) -> None:
        selection = self.snapshot()
        logger.debug(f"Selection changed: {len(selection)} row(s)")
        self.selection_changed.emit(selection)
        if self._on_change is not None:
            self._on_change(selection)
