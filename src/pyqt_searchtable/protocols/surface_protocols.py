"""
Surface ABC contracts.

The manager drives three rendering surfaces (search panel, table, dialog
form) through these contracts only. Anything implementing them can be
attached, whether a PyQt6 widget from pyqt_searchtable.widgets or a test
double.

Design Philosophy:
- Explicit inheritance over duck typing
- Surfaces render; the manager owns state
- Surfaces report user interaction through connect_* callbacks
"""

from abc import ABC, ABCMeta, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Sequence

from PyQt6.QtCore import QObject

if TYPE_CHECKING:
    from pyqt_searchtable.forms.field_types import (
        DialogFieldSpec, SearchFieldSpec, SortItem, TableSchema,
    )
    from pyqt_searchtable.services.query_service import LoadingState


class PyQtABCMeta(type(QObject), ABCMeta):
    """Metaclass for Qt classes that also implement one of these ABCs."""
    pass


class SearchPanelSurface(ABC):
    """A panel of search inputs (primary or overflow)."""

    @abstractmethod
    def set_fields(self, fields: Sequence["SearchFieldSpec"]) -> None:
        """Rebuild inputs for fields, in order."""
        pass

    @abstractmethod
    def get_fields_value(self) -> Dict[str, Any]:
        """
        Return key -> value for every input holding a value.

        Empty inputs are left out.
        """
        pass

    @abstractmethod
    def set_fields_value(self, values: Mapping[str, Any]) -> None:
        pass

    @abstractmethod
    def reset_fields(self) -> None:
        """Restore every input to its field's default value."""
        pass

    @abstractmethod
    def connect_confirm(self, callback: Callable[[], None]) -> None:
        """Call callback when the user submits the panel."""
        pass

    def relayout(self) -> None:
        """Recompute layout after a field or size change."""
        pass


class TableSurface(ABC):
    """A paged data table."""

    @abstractmethod
    def set_columns(self, schema: "TableSchema") -> None:
        pass

    @abstractmethod
    def set_rows(self, rows: List[Mapping[str, Any]], total: int) -> None:
        pass

    @abstractmethod
    def get_rows(self) -> List[Mapping[str, Any]]:
        pass

    @abstractmethod
    def set_loading_state(self, state: "LoadingState") -> None:
        pass

    @abstractmethod
    def set_selected_keys(self, keys: Sequence[Any]) -> None:
        """Reflect the selection without reporting it back as interaction."""
        pass

    def set_pagination(self, current: int, page_size: int) -> None:
        """Reflect the page about to be loaded."""
        pass

    def set_sorts(self, sorts: Sequence["SortItem"]) -> None:
        """Reflect the sorts about to be applied, so header state follows code changes."""
        pass

    @abstractmethod
    def connect_selection_changed(self, callback: Callable[[List[Mapping[str, Any]]], None]) -> None:
        """callback(records) with every row the user now has selected on this page."""
        pass

    @abstractmethod
    def connect_sort_changed(self, callback: Callable[[List["SortItem"]], None]) -> None:
        pass

    @abstractmethod
    def connect_page_changed(self, callback: Callable[[int, int], None]) -> None:
        """callback(current, page_size)."""
        pass


class DialogFormSurface(ABC):
    """The create/edit dialog."""

    @abstractmethod
    def set_fields(self, fields: Sequence["DialogFieldSpec"]) -> None:
        pass

    @abstractmethod
    def open_form(self, values: Mapping[str, Any], mode: str) -> None:
        """Show the form pre-filled with values. mode is "create" or "update"."""
        pass

    @abstractmethod
    def close_form(self) -> None:
        pass

    @abstractmethod
    def connect_closed(self, callback: Callable[[], None]) -> None:
        """Call callback whenever the form closes, however it was closed."""
        pass

    @abstractmethod
    def get_fields_value(self) -> Dict[str, Any]:
        pass
