"""
Schema splitting.

Partitions normalized fields into the search, table and dialog schemas.
The search partition and table inclusion are decided independently, in one
pass, and the output is built from fresh tuples every time so that
re-splitting unchanged input yields an equal result.
"""

from dataclasses import replace
from typing import Iterable, Optional, Sequence
import logging

from pyqt_searchtable.core.sort_utils import priority_sort
from pyqt_searchtable.forms.field_normalizer import FieldInput, Translator, normalize_fields
from pyqt_searchtable.forms.field_types import (
    DialogSchema,
    FieldSchemas,
    ResolvedField,
    SearchSchema,
    TableSchema,
)
from pyqt_searchtable.protocols.search_table_config import SearchTableConfig

logger = logging.getLogger(__name__)


def split_fields(resolved: Iterable[ResolvedField]) -> FieldSchemas:
    """
    Split normalized fields into per-surface schemas.

    Args:
        resolved: Output of normalize_fields()

    Returns:
        FieldSchemas with descriptor order preserved inside every partition
    """
    primary, more, table, dialog = [], [], [], []

    for field in resolved:
        if field.search is not None:
            (more if field.search.is_more else primary).append(field.search)
        table.append(field.table)
        if field.dialog is not None:
            dialog.append(field.dialog)

    logger.debug(
        f"Split fields: {len(primary)} primary search, {len(more)} more search, "
        f"{len(table)} columns, {len(dialog)} dialog"
    )
    return FieldSchemas(
        search=SearchSchema(primary=tuple(primary), more=tuple(more)),
        table=TableSchema(fields=tuple(table)),
        dialog=DialogSchema(fields=tuple(dialog)),
    )


def resolve_schemas(fields: Optional[Iterable[FieldInput]],
                    config: Optional[SearchTableConfig] = None,
                    translate: Optional[Translator] = None) -> FieldSchemas:
    """Normalize and split a raw field list in one call."""
    return split_fields(normalize_fields(fields, config, translate))


def configure_columns(table: TableSchema,
                      visible_keys: Optional[Iterable[str]] = None,
                      order: Optional[Sequence[str]] = None) -> TableSchema:
    """
    Apply a runtime column configuration to a resolved table schema.

    Args:
        table: Schema as resolved from the field list
        visible_keys: Keys to show; every other column is hidden. None keeps
            the hidden flags the field list declared.
        order: Keys to move to the front, in this order. Columns not listed
            follow in declaration order.

    Returns:
        A new TableSchema; hidden columns stay in it so they can be shown again
    """
    fields = list(table.fields)
    if order:
        rank = {key: index for index, key in enumerate(order)}
        fields = priority_sort(fields, lambda f: rank.get(f.key))
    if visible_keys is not None:
        visible = set(visible_keys)
        unknown = visible - {f.key for f in fields}
        if unknown:
            logger.debug(f"Column config names unknown keys: {sorted(unknown)}")
        fields = [replace(f, hidden=f.key not in visible) for f in fields]
    return TableSchema(fields=tuple(fields))
