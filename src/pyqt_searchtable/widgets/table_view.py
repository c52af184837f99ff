"""
PyQt6 table surface.

Renders the visible columns of a TableSchema, one page of rows at a time.
Sorting and paging are not done here: header clicks and the previous/next
buttons are reported to the manager, which re-queries and pushes rows back.
"""

import logging
import math
from typing import Any, Callable, List, Mapping, Optional, Sequence

from PyQt6.QtCore import QItemSelectionModel, Qt
from PyQt6.QtWidgets import (
    QAbstractItemView, QHBoxLayout, QHeaderView, QLabel, QPushButton,
    QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget,
)

from pyqt_searchtable.forms.field_types import SORT_ASCEND, SORT_DESCEND, SortItem, TableFieldSpec, TableSchema
from pyqt_searchtable.protocols.surface_protocols import PyQtABCMeta, TableSurface
from pyqt_searchtable.services.query_service import LoadingState
from pyqt_searchtable.services.selection_service import RowKeyGetter, SelectionMode, row_key_of
from pyqt_searchtable.services.signal_service import SignalService

logger = logging.getLogger(__name__)

_ALIGNMENT = {
    "left": Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
    "center": Qt.AlignmentFlag.AlignCenter,
    "right": Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
}

_STATUS_TEXT = {
    LoadingState.IDLE: "No items loaded",
    LoadingState.LOADING: "Loading...",
    LoadingState.ERROR: "Failed to load data",
}

# Header click cycles: unsorted -> ascend -> descend -> unsorted
_NEXT_ORDER = {None: SORT_ASCEND, SORT_ASCEND: SORT_DESCEND, SORT_DESCEND: None}


def format_cell(spec: TableFieldSpec, record: Mapping[str, Any]) -> str:
    """Display text for one cell: custom render, option label, or str(value)."""
    value = record.get(spec.key) if spec.key else None
    if spec.render is not None:
        try:
            return str(spec.render(value, record))
        except Exception:
            logger.warning(f"Render callback for column {spec.key!r} failed, cell left blank", exc_info=True)
            return ""
    for option in spec.options:
        if isinstance(option, dict) and option.get("value") == value:
            return str(option.get("label", value))
    return "" if value is None else str(value)


class FieldTableView(QWidget, TableSurface, metaclass=PyQtABCMeta):
    """
    Table widget driven by a TableSchema.

    Provides:
    - One column per visible field, aligned per field
    - Row key stored on column 0 for selection lookup
    - Single (radio) or multi (checkbox) row selection
    - Header-click sorting and previous/next paging, reported via callbacks
    """

    def __init__(self, row_key: RowKeyGetter = "id",
                 selection_mode: SelectionMode = SelectionMode.CHECKBOX,
                 page_size: int = 10, parent=None):
        super().__init__(parent)
        self._row_key = row_key
        self._selection_mode = SelectionMode(selection_mode)
        self._columns: List[TableFieldSpec] = []
        self._rows: List[Mapping[str, Any]] = []
        self._total = 0
        self._current_page = 1
        self._page_size = page_size
        self._sort: Optional[SortItem] = None

        self._selection_callbacks: List[Callable[[List[Mapping[str, Any]]], None]] = []
        self._sort_callbacks: List[Callable[[List[SortItem]], None]] = []
        self._page_callbacks: List[Callable[[int, int], None]] = []

        self._setup_ui()
        self._setup_connections()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(5, 5, 5, 5)
        layout.setSpacing(5)

        self.status_label = QLabel(_STATUS_TEXT[LoadingState.IDLE])
        layout.addWidget(self.status_label)

        self.table_widget = QTableWidget()
        self.table_widget.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        qt_mode = (
            QAbstractItemView.SelectionMode.SingleSelection
            if self._selection_mode is SelectionMode.RADIO
            else QAbstractItemView.SelectionMode.MultiSelection
        )
        self.table_widget.setSelectionMode(qt_mode)
        self.table_widget.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.table_widget.setSortingEnabled(False)
        layout.addWidget(self.table_widget, 1)  # Stretch to fill

        pager = QHBoxLayout()
        self.prev_button = QPushButton("<")
        self.next_button = QPushButton(">")
        self.page_label = QLabel()
        pager.addStretch()
        pager.addWidget(self.prev_button)
        pager.addWidget(self.page_label)
        pager.addWidget(self.next_button)
        layout.addLayout(pager)
        self._update_pager()

    def _setup_connections(self):
        self.table_widget.itemSelectionChanged.connect(self._on_selection_changed)
        self.table_widget.horizontalHeader().sectionClicked.connect(self._on_header_clicked)
        self.prev_button.clicked.connect(lambda: self._go_to_page(self._current_page - 1))
        self.next_button.clicked.connect(lambda: self._go_to_page(self._current_page + 1))

    # ========== TableSurface ==========

    def set_columns(self, schema: TableSchema) -> None:
        self._columns = list(schema.visible)
        self.table_widget.setColumnCount(len(self._columns))
        self.table_widget.setHorizontalHeaderLabels([col.title for col in self._columns])

        header = self.table_widget.horizontalHeader()
        header.setSectionsMovable(True)
        for i, col in enumerate(self._columns):
            header.setSectionResizeMode(i, QHeaderView.ResizeMode.Interactive)
            if col.width:
                self.table_widget.setColumnWidth(i, col.width)
        self._populate()

    def set_rows(self, rows: List[Mapping[str, Any]], total: int) -> None:
        self._rows = list(rows)
        self._total = total
        self._populate()
        self.status_label.setText(f"Showing {len(self._rows)}/{total} items")
        self._update_pager()

    def get_rows(self) -> List[Mapping[str, Any]]:
        return list(self._rows)

    def set_loading_state(self, state: LoadingState) -> None:
        if state in _STATUS_TEXT:
            self.status_label.setText(_STATUS_TEXT[state])

    def set_selected_keys(self, keys: Sequence[Any]) -> None:
        wanted = set(keys)
        selection_model = self.table_widget.selectionModel()
        with SignalService.block_signals(self.table_widget):
            self.table_widget.clearSelection()
            for row in range(self.table_widget.rowCount()):
                key_item = self.table_widget.item(row, 0)
                if key_item is not None and key_item.data(Qt.ItemDataRole.UserRole) in wanted:
                    selection_model.select(
                        self.table_widget.model().index(row, 0),
                        QItemSelectionModel.SelectionFlag.Select | QItemSelectionModel.SelectionFlag.Rows,
                    )

    def set_pagination(self, current: int, page_size: int) -> None:
        self._current_page = current
        self._page_size = page_size
        self._update_pager()

    def set_sorts(self, sorts: Sequence[SortItem]) -> None:
        """Headers sort one column at a time; the leading sort is the one shown."""
        self._sort = sorts[0] if sorts else None

    def connect_selection_changed(self, callback: Callable[[List[Mapping[str, Any]]], None]) -> None:
        self._selection_callbacks.append(callback)

    def connect_sort_changed(self, callback: Callable[[List[SortItem]], None]) -> None:
        self._sort_callbacks.append(callback)

    def connect_page_changed(self, callback: Callable[[int, int], None]) -> None:
        self._page_callbacks.append(callback)

    # ========== internals ==========

    def _populate(self) -> None:
        with SignalService.block_signals(self.table_widget):
            self.table_widget.setRowCount(len(self._rows))
            for row, record in enumerate(self._rows):
                for col, spec in enumerate(self._columns):
                    item = QTableWidgetItem(format_cell(spec, record))
                    item.setTextAlignment(_ALIGNMENT.get(spec.align, _ALIGNMENT["center"]))
                    # Store key in first column for lookup
                    if col == 0:
                        item.setData(Qt.ItemDataRole.UserRole, row_key_of(record, self._row_key))
                    self.table_widget.setItem(row, col, item)

    def selected_records(self) -> List[Mapping[str, Any]]:
        rows = sorted({index.row() for index in self.table_widget.selectionModel().selectedRows()})
        return [self._rows[row] for row in rows if row < len(self._rows)]

    def _on_selection_changed(self) -> None:
        records = self.selected_records()
        for callback in self._selection_callbacks:
            callback(records)

    def _on_header_clicked(self, index: int) -> None:
        if index >= len(self._columns):
            return
        spec = self._columns[index]
        if not spec.sortable or not spec.key:
            return
        current = self._sort.order if self._sort and self._sort.key == spec.key else None
        order = _NEXT_ORDER[current]
        self._sort = SortItem(spec.key, order) if order else None
        sorts = [self._sort] if self._sort else []
        logger.debug(f"Header sort on {spec.key!r}: {order}")
        for callback in self._sort_callbacks:
            callback(sorts)

    def _page_count(self) -> int:
        return max(1, math.ceil(self._total / self._page_size)) if self._page_size else 1

    def _go_to_page(self, page: int) -> None:
        page = min(max(1, page), self._page_count())
        if page == self._current_page:
            return
        self._current_page = page
        self._update_pager()
        for callback in self._page_callbacks:
            callback(page, self._page_size)

    def _update_pager(self) -> None:
        pages = self._page_count()
        self.page_label.setText(f"{self._current_page} / {pages}")
        self.prev_button.setEnabled(self._current_page > 1)
        self.next_button.setEnabled(self._current_page < pages)
