"""
PyQt6 surface widgets.

Concrete search panel, table and dialog form implementing the surface
protocols, plus the per-kind field input adapters they share.
"""

from .field_inputs import (
    LineEditInput,
    TextAreaInput,
    NumberInput,
    SelectInput,
    CheckBoxInput,
    DateInput,
    create_field_input,
)
from .search_panel import FieldSearchPanel
from .table_view import FieldTableView, format_cell
from .dialog_form import FieldDialogForm

__all__ = [
    "LineEditInput",
    "TextAreaInput",
    "NumberInput",
    "SelectInput",
    "CheckBoxInput",
    "DateInput",
    "create_field_input",
    "FieldSearchPanel",
    "FieldTableView",
    "format_cell",
    "FieldDialogForm",
]
