"""Base configuration for search table behavior.

Provides hooks for applications to customize field resolution defaults,
selection policy, paging and logging.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class SearchTableConfig:
    """Base configuration for search table behavior.

    Applications can subclass this to provide custom configuration.

    Attributes:
        default_field_kind: Input kind used when a field declares none
        default_align: Column alignment used when neither field nor table override sets one
        config_error_title: Title of the placeholder emitted for malformed search fields
        default_selection_mode: "checkbox" (multi-select) or "radio" (single-select)
        default_page_size: Rows per page for the first query
        autoload: Whether attaching a table triggers the first query
        log_dir: Directory for the package log file (no file logging when None)
        log_filename: Name of the package log file
        log_level: Level name for the package logger
    """

    default_field_kind: str = "input"
    default_align: str = "center"
    config_error_title: str = "configuration error"
    default_selection_mode: str = "checkbox"
    default_page_size: int = 10
    autoload: bool = True
    log_dir: Optional[str] = None
    log_filename: str = "pyqt_searchtable.log"
    log_level: str = "INFO"


# Global config instance (set by application)
_search_table_config: Optional[SearchTableConfig] = None


def set_search_table_config(config: Optional[SearchTableConfig]) -> None:
    """Set the global search table configuration.

    Args:
        config: SearchTableConfig instance, or None to restore defaults
    """
    global _search_table_config
    _search_table_config = config


def get_search_table_config() -> SearchTableConfig:
    """Get the current search table configuration.

    Returns:
        Current SearchTableConfig or default if not set
    """
    if _search_table_config is None:
        return SearchTableConfig()
    return _search_table_config
