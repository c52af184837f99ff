"""
Imperative handle contract.

The fixed operation set an embedding screen holds on to. Method names and
argument shapes are part of the public API.

Every method is safe to call before the table surface is attached: it does
nothing and returns an empty value.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

if TYPE_CHECKING:
    from pyqt_searchtable.forms.field_types import SortItem
    from pyqt_searchtable.services.query_service import LoadParams
    from pyqt_searchtable.services.selection_service import Selection
    from pyqt_searchtable.protocols.surface_protocols import (
        DialogFormSurface, SearchPanelSurface, TableSurface,
    )

Record = Mapping[str, Any]


class SearchTableHandle(ABC):
    """Operations exposed to the caller that embeds a search table."""

    # ==================== QUERY ====================

    @abstractmethod
    def refresh(self) -> None:
        """Re-run the current query. Pagination is kept."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Same as pressing Search: re-read both panels and go to page 1."""
        pass

    @abstractmethod
    def get_api_params(self) -> Optional["LoadParams"]:
        pass

    @abstractmethod
    def set_pagination_value(self, current: Optional[int] = None,
                             page_size: Optional[int] = None) -> None:
        pass

    # ==================== SELECTION ====================

    @abstractmethod
    def get_selection(self) -> "Selection":
        pass

    @abstractmethod
    def set_selection(self, records: Iterable[Record]) -> None:
        pass

    @abstractmethod
    def add_selection(self, records: Iterable[Record]) -> None:
        pass

    @abstractmethod
    def remove_selection(self, keys: Iterable[Any]) -> None:
        pass

    @abstractmethod
    def clear_selection(self) -> None:
        pass

    # ==================== FILTERS / SORTS ====================

    @abstractmethod
    def set_filters_value(self, filters: Mapping[str, Any]) -> None:
        pass

    @abstractmethod
    def clear_filters(self, keys: Sequence[str] = ()) -> None:
        """Clear the given filter keys, or all filters when keys is empty."""
        pass

    @abstractmethod
    def set_sorts_value(self, sorts: Sequence[Union["SortItem", Mapping[str, str]]]) -> None:
        pass

    @abstractmethod
    def clear_sorts(self, keys: Sequence[str] = ()) -> None:
        """Clear the given sort keys, or the whole sort when keys is empty."""
        pass

    # ==================== ROWS ====================

    @abstractmethod
    def get_table_data(self) -> List[Record]:
        pass

    @abstractmethod
    def set_table_data(self, rows: List[Record]) -> None:
        pass

    @abstractmethod
    def add_row(self, record: Record, position: str = "after") -> None:
        """Insert record before the first row or after the last one."""
        pass

    @abstractmethod
    def delete_row_by_key(self, key: Any) -> None:
        pass

    @abstractmethod
    def get_edit_table_rows(self) -> List[Any]:
        pass

    @abstractmethod
    def add_edit_table_rows(self, rows: Iterable[Any]) -> None:
        pass

    # ==================== LAYOUT / DIALOG ====================

    @abstractmethod
    def do_layout(self) -> None:
        """Re-derive schemas from the current fields and push them to the surfaces."""
        pass

    @abstractmethod
    def set_column_config(self, visible_keys: Optional[Iterable[str]] = None,
                          order: Optional[Sequence[str]] = None) -> None:
        """Show, hide and reorder columns; kept until reset_column_config()."""
        pass

    @abstractmethod
    def reset_column_config(self) -> None:
        pass

    @abstractmethod
    def open_dialog(self, record: Optional[Record] = None) -> None:
        pass

    @abstractmethod
    def close_dialog(self) -> None:
        pass

    # ==================== RAW REFS ====================

    @abstractmethod
    def get_search_ref(self) -> Optional["SearchPanelSurface"]:
        pass

    @abstractmethod
    def get_more_search_ref(self) -> Optional["SearchPanelSurface"]:
        pass

    @abstractmethod
    def get_table_ref(self) -> Optional["TableSurface"]:
        pass

    @abstractmethod
    def get_form_ref(self) -> Optional["DialogFormSurface"]:
        pass
