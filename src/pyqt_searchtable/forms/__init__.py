"""
Field resolution and search table orchestration.

Field descriptors, normalization, schema splitting, default-state
derivation and the SearchTableManager that ties them to the surfaces.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .field_types import (
        FieldKind,
        FieldDescriptor,
        SearchFieldSpec,
        TableFieldSpec,
        DialogFieldSpec,
        ResolvedField,
        SearchSchema,
        TableSchema,
        DialogSchema,
        FieldSchemas,
        SortItem,
    )
    from .field_normalizer import normalize_field, normalize_fields
    from .schema_splitter import split_fields, resolve_schemas, configure_columns
    from .default_state import derive_filters, derive_sorts, derive_form_defaults
    from .search_table_manager import SearchTableManager

_EXPORTS = {
    "FieldKind": ("pyqt_searchtable.forms.field_types", "FieldKind"),
    "FieldDescriptor": ("pyqt_searchtable.forms.field_types", "FieldDescriptor"),
    "SearchFieldSpec": ("pyqt_searchtable.forms.field_types", "SearchFieldSpec"),
    "TableFieldSpec": ("pyqt_searchtable.forms.field_types", "TableFieldSpec"),
    "DialogFieldSpec": ("pyqt_searchtable.forms.field_types", "DialogFieldSpec"),
    "ResolvedField": ("pyqt_searchtable.forms.field_types", "ResolvedField"),
    "SearchSchema": ("pyqt_searchtable.forms.field_types", "SearchSchema"),
    "TableSchema": ("pyqt_searchtable.forms.field_types", "TableSchema"),
    "DialogSchema": ("pyqt_searchtable.forms.field_types", "DialogSchema"),
    "FieldSchemas": ("pyqt_searchtable.forms.field_types", "FieldSchemas"),
    "SortItem": ("pyqt_searchtable.forms.field_types", "SortItem"),
    "normalize_field": ("pyqt_searchtable.forms.field_normalizer", "normalize_field"),
    "normalize_fields": ("pyqt_searchtable.forms.field_normalizer", "normalize_fields"),
    "split_fields": ("pyqt_searchtable.forms.schema_splitter", "split_fields"),
    "resolve_schemas": ("pyqt_searchtable.forms.schema_splitter", "resolve_schemas"),
    "configure_columns": ("pyqt_searchtable.forms.schema_splitter", "configure_columns"),
    "derive_filters": ("pyqt_searchtable.forms.default_state", "derive_filters"),
    "derive_sorts": ("pyqt_searchtable.forms.default_state", "derive_sorts"),
    "derive_form_defaults": ("pyqt_searchtable.forms.default_state", "derive_form_defaults"),
    "SearchTableManager": ("pyqt_searchtable.forms.search_table_manager", "SearchTableManager"),
}


def __getattr__(name: str):
    if name in _EXPORTS:
        module_name, attr = _EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_EXPORTS.keys())
