"""
Default-state derivation.

Initial filters, initial sort order and initial form values are pure
functions of the resolved schemas. An empty schema yields empty state.
"""

from collections.abc import Sized
from typing import Any, Dict, Iterable, List
import logging

from pyqt_searchtable.core.sort_utils import priority_sort
from pyqt_searchtable.forms.field_types import SORT_ORDERS, SortItem, TableSchema

logger = logging.getLogger(__name__)


def _is_unset_filter(value: Any) -> bool:
    """None, False, numeric zero, empty string and empty collections carry no filter."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and value == 0:
        return True
    if isinstance(value, Sized) and len(value) == 0:
        return True
    return False


def derive_filters(table_schema: TableSchema) -> Dict[str, Any]:
    """Return key -> default filter value for every column that declares one."""
    return {
        field.key: field.default_filter_value
        for field in table_schema.fields
        if field.key and not _is_unset_filter(field.default_filter_value)
    }


def derive_sorts(table_schema: TableSchema) -> List[SortItem]:
    """
    Return the initial SortSpec.

    Columns with a default sort order are collected in declaration order.
    When any of them carries a non-negative sort_order, the list is ordered
    by that index and unindexed columns follow in declaration order. The
    index itself never appears in the result.
    """
    collected = []
    for field in table_schema.fields:
        if not field.key or not field.default_sorts_value:
            continue
        if field.default_sorts_value not in SORT_ORDERS:
            logger.warning(
                f"Column {field.key!r}: default sort {field.default_sorts_value!r} is not one of {SORT_ORDERS}"
            )
            continue
        collected.append(field)

    if any(f.sort_order is not None and f.sort_order >= 0 for f in collected):
        collected = priority_sort(collected, lambda f: f.sort_order)

    return [SortItem(key=f.key, order=f.default_sorts_value) for f in collected]


def derive_form_defaults(*field_groups: Iterable[Any]) -> Dict[str, Any]:
    """
    Return key -> default value across one or more groups of resolved fields.

    Accepts SearchFieldSpec and DialogFieldSpec alike; later groups win on
    key conflict.
    """
    defaults: Dict[str, Any] = {}
    for group in field_groups:
        for field in group:
            if field.key and field.default_value is not None:
                defaults[field.key] = field.default_value
    return defaults
