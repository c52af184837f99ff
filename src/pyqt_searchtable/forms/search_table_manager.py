"""
Search table orchestration.

SearchTableManager turns one field list into the schemas of the search
panels, the table and the dialog form, owns the cross-surface state
(selection, filters, sorts, pagination, pending edit rows, dialog
visibility) and exposes the SearchTableHandle operations to the embedding
screen.

Surfaces are held through weak references: the manager drives them, it does
not own them. Every state change goes through a handle method, including
changes that originate from table interaction, so the manager is the only
writer of its state.

Semantics:
- Schemas are re-derived (never patched) on set_fields, set_translator and
  do_layout; filters, sorts and selection survive re-derivation
- Handle methods are silent no-ops until a table surface is attached
- Each filter/sort/pagination mutation issues exactly one query
- Only the latest issued query may update the table
"""

import dataclasses
import functools
import logging
import weakref
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_searchtable.core.background_task import TaskExecutor
from pyqt_searchtable.forms.default_state import derive_filters, derive_form_defaults, derive_sorts
from pyqt_searchtable.forms.field_normalizer import FieldInput, Translator
from pyqt_searchtable.forms.field_types import SORT_ORDERS, FieldSchemas, SortItem
from pyqt_searchtable.forms.schema_splitter import configure_columns, resolve_schemas
from pyqt_searchtable.protocols.search_table_config import SearchTableConfig, get_search_table_config
from pyqt_searchtable.protocols.search_table_handle import Record, SearchTableHandle
from pyqt_searchtable.protocols.surface_protocols import (
    DialogFormSurface,
    PyQtABCMeta,
    SearchPanelSurface,
    TableSurface,
)
from pyqt_searchtable.services.query_service import (
    DataLoader,
    LoadParams,
    LoadResult,
    Pagination,
    QueryRunner,
    merge_search_params,
)
from pyqt_searchtable.services.selection_service import (
    RowKeyGetter,
    Selection,
    SelectionMode,
    SelectionService,
)

logger = logging.getLogger(__name__)

ROW_POSITION_BEFORE = "before"
ROW_POSITION_AFTER = "after"

SearchParamsExtension = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]]]
BeforeSearchHook = Callable[[LoadParams], Optional[LoadParams]]


def _requires_table(default: Any = None):
    """Turn a handle method into a no-op returning default() until a table is attached."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if self.get_table_ref() is None:
                logger.debug(f"{method.__name__}() ignored: no table surface attached")
                return default() if callable(default) else default
            return method(self, *args, **kwargs)
        return wrapper
    return decorator


class SearchTableManager(QObject, SearchTableHandle, metaclass=PyQtABCMeta):
    """
    Coordinates search panels, table and dialog form from one field list.

    Usage:
        manager = SearchTableManager(fields=FIELDS, loader=fetch_page, row_key="id")
        manager.attach_search_panel(FieldSearchPanel())
        manager.attach_table(FieldTableView())   # autoload issues the first query
        manager.set_filters_value({"status": "open"})
    """

    selection_changed = pyqtSignal(object)          # Selection
    loading_state_changed = pyqtSignal(object)      # LoadingState
    load_failed = pyqtSignal(object)                # DataLoadError
    params_changed = pyqtSignal(object)             # LoadParams about to be loaded
    data_loaded = pyqtSignal(object)                # LoadResult shown in the table
    schemas_changed = pyqtSignal(object)            # FieldSchemas
    dialog_visibility_changed = pyqtSignal(bool)

    def __init__(
        self,
        fields: Optional[Iterable[FieldInput]] = None,
        loader: Optional[DataLoader] = None,
        row_key: RowKeyGetter = "id",
        selection_mode: Union[SelectionMode, str, None] = None,
        config: Optional[SearchTableConfig] = None,
        translate: Optional[Translator] = None,
        executor: Optional[TaskExecutor] = None,
        extend_search_params: Optional[SearchParamsExtension] = None,
        before_search: Optional[BeforeSearchHook] = None,
        on_selection_change: Optional[Callable[[Selection], None]] = None,
        autoload: Optional[bool] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.config = config or get_search_table_config()
        self.autoload = self.config.autoload if autoload is None else autoload
        self.extend_search_params = extend_search_params
        self.before_search = before_search

        self._fields: List[FieldInput] = list(fields or [])
        self._translate = translate
        self._column_visible: Optional[List[str]] = None
        self._column_order: Optional[List[str]] = None
        self.schemas: FieldSchemas = self._resolve_schemas()

        # Derived default state, computed once per mount
        self.filters: Dict[str, Any] = derive_filters(self.schemas.table)
        self.sorts: List[SortItem] = derive_sorts(self.schemas.table)
        self.search_params: Dict[str, Any] = derive_form_defaults(self.schemas.search.all_fields)
        self.pagination = Pagination(current=1, page_size=self.config.default_page_size)
        self.total = 0

        self._edit_rows: List[Any] = []
        self.dialog_visible = False

        self._selection = SelectionService(
            row_key=row_key,
            mode=selection_mode or self.config.default_selection_mode,
            on_change=on_selection_change,
            parent=self,
        )
        self._selection.selection_changed.connect(self._on_selection_changed)

        self._runner = QueryRunner(loader=loader, executor=executor, parent=self)
        self._runner.result_ready.connect(self._on_result)
        self._runner.loading_state_changed.connect(self._on_loading_state)
        self._runner.load_failed.connect(self.load_failed.emit)

        self._search_ref: Optional[weakref.ref] = None
        self._more_search_ref: Optional[weakref.ref] = None
        self._table_ref: Optional[weakref.ref] = None
        self._form_ref: Optional[weakref.ref] = None

    # ==================== SURFACE ATTACHMENT ====================

    def attach_search_panel(self, panel: SearchPanelSurface, more: bool = False) -> None:
        """Attach the primary panel, or the overflow panel when more=True."""
        fields = self.schemas.search.more if more else self.schemas.search.primary
        panel.set_fields(fields)
        panel.connect_confirm(self.reset)
        if more:
            self._more_search_ref = weakref.ref(panel)
        else:
            self._search_ref = weakref.ref(panel)
        logger.debug(f"Attached {'more' if more else 'primary'} search panel ({len(fields)} fields)")

    def attach_table(self, table: TableSurface) -> None:
        table.set_columns(self.schemas.table)
        table.set_selected_keys(self._selection.keys)
        table.connect_selection_changed(self._on_table_selection)
        table.connect_sort_changed(self.set_sorts_value)
        table.connect_page_changed(self._on_table_page)
        self._table_ref = weakref.ref(table)
        logger.debug(f"Attached table ({len(self.schemas.table.fields)} columns)")
        if self.autoload:
            self.reset()

    def attach_dialog(self, dialog: DialogFormSurface) -> None:
        dialog.set_fields(self.schemas.dialog.fields)
        dialog.connect_closed(self._on_dialog_closed)
        self._form_ref = weakref.ref(dialog)

    def detach_table(self) -> None:
        self._table_ref = None

    def detach_search_panel(self, more: bool = False) -> None:
        if more:
            self._more_search_ref = None
        else:
            self._search_ref = None

    def detach_dialog(self) -> None:
        self._form_ref = None
        self.dialog_visible = False

    @staticmethod
    def _deref(ref: Optional[weakref.ref]):
        return ref() if ref is not None else None

    def get_search_ref(self) -> Optional[SearchPanelSurface]:
        return self._deref(self._search_ref)

    def get_more_search_ref(self) -> Optional[SearchPanelSurface]:
        return self._deref(self._more_search_ref)

    def get_table_ref(self) -> Optional[TableSurface]:
        return self._deref(self._table_ref)

    def get_form_ref(self) -> Optional[DialogFormSurface]:
        return self._deref(self._form_ref)

    # ==================== FIELDS / LOCALE ====================

    @property
    def fields(self) -> List[FieldInput]:
        return list(self._fields)

    def set_fields(self, fields: Optional[Iterable[FieldInput]]) -> None:
        self._fields = list(fields or [])
        self._apply_schemas()

    def set_translator(self, translate: Optional[Translator]) -> None:
        """Locale change: titles are re-derived, partitioning is unaffected."""
        self._translate = translate
        self._apply_schemas()

    @_requires_table()
    def do_layout(self) -> None:
        self._apply_schemas()

    def set_column_config(self, visible_keys: Optional[Iterable[str]] = None,
                          order: Optional[Sequence[str]] = None) -> None:
        """
        Show, hide and reorder table columns at runtime.

        The configuration is kept across set_fields, set_translator and
        do_layout until reset_column_config() is called. Filters, sorts and
        selection are untouched and no query is issued.

        Args:
            visible_keys: Keys of the columns to show; None keeps the declared hidden flags
            order: Keys to place first, in this order; None keeps declaration order
        """
        self._column_visible = None if visible_keys is None else list(visible_keys)
        self._column_order = None if order is None else list(order)
        self._apply_schemas()

    def reset_column_config(self) -> None:
        self._column_visible = None
        self._column_order = None
        self._apply_schemas()

    def _resolve_schemas(self) -> FieldSchemas:
        schemas = resolve_schemas(self._fields, self.config, self._translate)
        if self._column_visible is None and self._column_order is None:
            return schemas
        table = configure_columns(schemas.table, self._column_visible, self._column_order)
        return dataclasses.replace(schemas, table=table)

    def _apply_schemas(self) -> None:
        schemas = self._resolve_schemas()
        changed = schemas != self.schemas
        self.schemas = schemas

        search, more = self.get_search_ref(), self.get_more_search_ref()
        table, dialog = self.get_table_ref(), self.get_form_ref()
        if search is not None:
            search.set_fields(schemas.search.primary)
            search.relayout()
        if more is not None:
            more.set_fields(schemas.search.more)
        if table is not None:
            table.set_columns(schemas.table)
        if dialog is not None:
            dialog.set_fields(schemas.dialog.fields)

        if changed:
            logger.debug("Field schemas changed")
            self.schemas_changed.emit(schemas)

    # ==================== QUERY ====================

    @_requires_table()
    def refresh(self) -> None:
        self._run_query()

    @_requires_table()
    def reset(self) -> None:
        search = merge_search_params(
            self._panel_values(self.get_search_ref(), more=False),
            self._panel_values(self.get_more_search_ref(), more=True),
        )
        extension = self.extend_search_params
        if callable(extension):
            extension = extension()
        search.update(extension or {})

        self.search_params = search
        self.pagination.current = 1
        self._run_query()

    def _panel_values(self, panel: Optional[SearchPanelSurface], more: bool) -> Dict[str, Any]:
        """Values typed into a panel, or that partition's defaults when it is not attached."""
        if panel is not None:
            return panel.get_fields_value()
        partition = self.schemas.search.more if more else self.schemas.search.primary
        return derive_form_defaults(partition)

    @_requires_table()
    def get_api_params(self) -> Optional[LoadParams]:
        return self._build_params()

    @_requires_table()
    def set_pagination_value(self, current: Optional[int] = None,
                             page_size: Optional[int] = None) -> None:
        if current is not None:
            self.pagination.current = max(1, int(current))
        if page_size is not None:
            self.pagination.page_size = max(1, int(page_size))
        self._run_query()

    def _build_params(self) -> LoadParams:
        return LoadParams(
            search=dict(self.search_params),
            filters=dict(self.filters),
            sorts=list(self.sorts),
            pagination=Pagination(self.pagination.current, self.pagination.page_size),
        )

    def _run_query(self) -> None:
        params = self._build_params()
        if self.before_search is not None:
            try:
                params = self.before_search(params) or params
            except Exception:
                logger.warning("before_search hook failed, loading with unmodified params", exc_info=True)
                params = self._build_params()
        table = self.get_table_ref()
        if table is not None:
            table.set_pagination(params.pagination.current, params.pagination.page_size)
            table.set_sorts(list(params.sorts))
        self.params_changed.emit(params)
        self._runner.issue(params)

    def _on_result(self, result: LoadResult) -> None:
        self.total = result.total
        self._push_rows(list(result.rows))
        self.data_loaded.emit(result)

    def _on_loading_state(self, state) -> None:
        table = self.get_table_ref()
        if table is not None:
            table.set_loading_state(state)
        self.loading_state_changed.emit(state)

    # ==================== FILTERS / SORTS ====================

    @_requires_table()
    def set_filters_value(self, filters: Mapping[str, Any]) -> None:
        for key, value in filters.items():
            if value is None:
                self.filters.pop(key, None)
            else:
                self.filters[key] = value
        self._run_query()

    @_requires_table()
    def clear_filters(self, keys: Sequence[str] = ()) -> None:
        if not keys:
            self.filters.clear()
        else:
            for key in keys:
                self.filters.pop(key, None)
        self._run_query()

    @_requires_table()
    def set_sorts_value(self, sorts: Sequence[Union[SortItem, Mapping[str, str]]]) -> None:
        applied = []
        for sort in sorts:
            try:
                item = SortItem.coerce(sort)
            except (KeyError, TypeError):
                logger.warning(f"Ignoring malformed sort {sort!r}: expected 'key' and 'order'")
                continue
            if item.order not in SORT_ORDERS:
                logger.warning(f"Ignoring sort on {item.key!r}: order {item.order!r} is not one of {SORT_ORDERS}")
                continue
            applied.append(item)
        self.sorts = applied
        self._run_query()

    @_requires_table()
    def clear_sorts(self, keys: Sequence[str] = ()) -> None:
        if not keys:
            self.sorts = []
        else:
            self.sorts = [s for s in self.sorts if s.key not in keys]
        self._run_query()

    # ==================== SELECTION ====================

    @property
    def selection_service(self) -> SelectionService:
        return self._selection

    def get_selection(self) -> Selection:
        return self._selection.snapshot()

    @_requires_table()
    def set_selection(self, records: Iterable[Record]) -> None:
        self._selection.replace(records)

    @_requires_table()
    def add_selection(self, records: Iterable[Record]) -> None:
        self._selection.add(records)

    @_requires_table()
    def remove_selection(self, keys: Iterable[Any]) -> None:
        self._selection.remove(keys)

    @_requires_table()
    def clear_selection(self) -> None:
        self._selection.clear()

    def _on_selection_changed(self, selection: Selection) -> None:
        table = self.get_table_ref()
        if table is not None:
            table.set_selected_keys(list(selection.keys))
        self.selection_changed.emit(selection)

    def _on_table_selection(self, records: List[Record]) -> None:
        """User selected rows on the current page; selections on other pages are kept."""
        table = self.get_table_ref()
        if table is None:
            return
        if self._selection.mode is SelectionMode.RADIO:
            self._selection.replace(records)
            return
        page_keys = {self._selection.key_of(row) for row in table.get_rows()}
        kept = [record for key, record in self._selection.records.items() if key not in page_keys]
        self._selection.replace(kept + list(records))

    def _on_table_page(self, current: int, page_size: int) -> None:
        self.set_pagination_value(current, page_size)

    # ==================== ROWS ====================

    @_requires_table(default=list)
    def get_table_data(self) -> List[Record]:
        return list(self.get_table_ref().get_rows())

    @_requires_table()
    def set_table_data(self, rows: List[Record]) -> None:
        rows = list(rows)
        self.total = len(rows)
        self._push_rows(rows)

    @_requires_table()
    def add_row(self, record: Record, position: str = ROW_POSITION_AFTER) -> None:
        table = self.get_table_ref()
        rows = list(table.get_rows())
        if position == ROW_POSITION_BEFORE:
            rows.insert(0, record)
        else:
            if position != ROW_POSITION_AFTER:
                logger.warning(f"Unknown row position {position!r}, appending")
            rows.append(record)
        self.total += 1
        self._push_rows(rows)

    @_requires_table()
    def delete_row_by_key(self, key: Any) -> None:
        """Remove the row from the table and, if selected, from the selection."""
        table = self.get_table_ref()
        rows = list(table.get_rows())
        remaining = [row for row in rows if self._selection.key_of(row) != key]
        if len(remaining) != len(rows):
            self.total = max(0, self.total - (len(rows) - len(remaining)))
            self._push_rows(remaining)
        if key in self._selection:
            self._selection.remove([key])

    def _push_rows(self, rows: List[Record]) -> None:
        """Show rows and re-apply the selection, which survives paging."""
        table = self.get_table_ref()
        if table is not None:
            table.set_rows(rows, self.total)
            table.set_selected_keys(self._selection.keys)

    @_requires_table(default=list)
    def get_edit_table_rows(self) -> List[Any]:
        return list(self._edit_rows)

    @_requires_table()
    def add_edit_table_rows(self, rows: Iterable[Any]) -> None:
        self._edit_rows.extend(rows)

    # ==================== DIALOG ====================

    @_requires_table()
    def open_dialog(self, record: Optional[Record] = None) -> None:
        dialog = self.get_form_ref()
        if dialog is None:
            logger.debug("open_dialog() ignored: no dialog surface attached")
            return
        values = derive_form_defaults(self.schemas.dialog.fields)
        values.update(record or {})
        dialog.open_form(values, "update" if record else "create")
        self._set_dialog_visible(True)

    @_requires_table()
    def close_dialog(self) -> None:
        dialog = self.get_form_ref()
        if dialog is not None:
            dialog.close_form()
        self._set_dialog_visible(False)

    def _on_dialog_closed(self) -> None:
        self._set_dialog_visible(False)

    def _set_dialog_visible(self, visible: bool) -> None:
        if self.dialog_visible != visible:
            self.dialog_visible = visible
            self.dialog_visibility_changed.emit(visible)
