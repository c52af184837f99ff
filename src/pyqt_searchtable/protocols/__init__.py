"""
Surface protocols, the imperative handle and configuration.

ABC-based contracts that the manager depends on instead of concrete
widgets.
"""

from .widget_protocols import ValueGettable, ValueSettable
from .surface_protocols import (
    PyQtABCMeta,
    SearchPanelSurface,
    TableSurface,
    DialogFormSurface,
)
from .search_table_handle import SearchTableHandle
from .search_table_config import SearchTableConfig, set_search_table_config, get_search_table_config

__all__ = [
    "ValueGettable",
    "ValueSettable",
    "PyQtABCMeta",
    "SearchPanelSurface",
    "TableSurface",
    "DialogFormSurface",
    "SearchTableHandle",
    "SearchTableConfig",
    "set_search_table_config",
    "get_search_table_config",
]
