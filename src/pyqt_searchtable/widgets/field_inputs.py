"""
Field input adapters.

Wrap Qt input widgets so every field kind exposes the same contract:
- get_value() / set_value() for all inputs
- None means "no value" everywhere (empty text, no combo selection, ...)

create_field_input() picks the adapter for a resolved field's kind.
"""

from typing import Any, Callable, Dict, Sequence, Type, Union

from PyQt6.QtCore import QDate, Qt
from PyQt6.QtWidgets import (
    QCheckBox, QComboBox, QDateEdit, QDoubleSpinBox, QLineEdit, QPlainTextEdit, QWidget,
)

from pyqt_searchtable.forms.field_types import DialogFieldSpec, FieldKind, SearchFieldSpec
from pyqt_searchtable.protocols.surface_protocols import PyQtABCMeta
from pyqt_searchtable.protocols.widget_protocols import ValueGettable, ValueSettable

FieldSpec = Union[SearchFieldSpec, DialogFieldSpec]


def _option_pair(option: Any):
    """Options are plain values or {"label", "value"} mappings."""
    if isinstance(option, dict):
        value = option.get("value")
        return str(option.get("label", value)), value
    return str(option), option


class LineEditInput(QLineEdit, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):
    """Single-line text. Blank text reads as None."""

    def get_value(self) -> Any:
        text = self.text().strip()
        return None if text == "" else text

    def set_value(self, value: Any) -> None:
        self.setText("" if value is None else str(value))


class TextAreaInput(QPlainTextEdit, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):

    def get_value(self) -> Any:
        text = self.toPlainText().strip()
        return None if text == "" else text

    def set_value(self, value: Any) -> None:
        self.setPlainText("" if value is None else str(value))


class NumberInput(QDoubleSpinBox, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):
    """
    Number input with a None state.

    The minimum value shows blank special text and reads as None.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSpecialValueText(" ")  # Empty special value = None
        self.setRange(-1e15, 1e15)
        self.setDecimals(4)
        self.setValue(self.minimum())

    def get_value(self) -> Any:
        if self.value() == self.minimum() and self.specialValueText():
            return None
        value = self.value()
        return int(value) if value.is_integer() else value

    def set_value(self, value: Any) -> None:
        self.setValue(self.minimum() if value is None else float(value))


class SelectInput(QComboBox, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):
    """Drop-down over field options. Values live in itemData, not display text."""

    def set_options(self, options: Sequence[Any]) -> None:
        self.clear()
        for option in options:
            label, value = _option_pair(option)
            self.addItem(label, value)
        self.setCurrentIndex(-1)

    def get_value(self) -> Any:
        if self.currentIndex() < 0:
            return None
        return self.itemData(self.currentIndex())

    def set_value(self, value: Any) -> None:
        for i in range(self.count()):
            if self.itemData(i) == value:
                self.setCurrentIndex(i)
                return
        # Value not found - clear selection
        self.setCurrentIndex(-1)


class CheckBoxInput(QCheckBox, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):
    """Tri-state checkbox; partially checked reads as None."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setTristate(True)
        self.setCheckState(Qt.CheckState.PartiallyChecked)

    def get_value(self) -> Any:
        state = self.checkState()
        if state == Qt.CheckState.PartiallyChecked:
            return None
        return state == Qt.CheckState.Checked

    def set_value(self, value: Any) -> None:
        if value is None:
            self.setCheckState(Qt.CheckState.PartiallyChecked)
        else:
            self.setCheckState(Qt.CheckState.Checked if value else Qt.CheckState.Unchecked)


class DateInput(QDateEdit, ValueGettable, ValueSettable, metaclass=PyQtABCMeta):
    """ISO date strings in and out; the minimum date reads as None."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setCalendarPopup(True)
        self.setDisplayFormat("yyyy-MM-dd")
        self.setSpecialValueText(" ")
        self.setDate(self.minimumDate())

    def get_value(self) -> Any:
        if self.date() == self.minimumDate():
            return None
        return self.date().toString(Qt.DateFormat.ISODate)

    def set_value(self, value: Any) -> None:
        if value is None:
            self.setDate(self.minimumDate())
            return
        date = QDate.fromString(str(value), Qt.DateFormat.ISODate)
        self.setDate(date if date.isValid() else self.minimumDate())


INPUT_CLASSES: Dict[FieldKind, Type[QWidget]] = {
    FieldKind.INPUT: LineEditInput,
    FieldKind.TEXTAREA: TextAreaInput,
    FieldKind.NUMBER: NumberInput,
    FieldKind.SELECT: SelectInput,
    FieldKind.RADIO: SelectInput,
    FieldKind.CHECKBOX: CheckBoxInput,
    FieldKind.SWITCH: CheckBoxInput,
    FieldKind.DATE: DateInput,
}


def create_field_input(spec: FieldSpec, parent: QWidget = None) -> QWidget:
    """Create the input widget for a resolved search or dialog field."""
    widget = INPUT_CLASSES.get(spec.kind, LineEditInput)(parent)
    if isinstance(widget, SelectInput):
        widget.set_options(spec.options)
    if isinstance(widget, (LineEditInput, SelectInput)):
        widget.setPlaceholderText(spec.title)
    widget.set_value(spec.default_value)
    return widget


def connect_change(widget: QWidget, callback: Callable[[], None]) -> None:
    """Connect the widget's own change signal to a no-argument callback."""
    if isinstance(widget, QLineEdit):
        widget.textChanged.connect(lambda _: callback())
    elif isinstance(widget, QPlainTextEdit):
        widget.textChanged.connect(callback)
    elif isinstance(widget, QComboBox):
        widget.currentIndexChanged.connect(lambda _: callback())
    elif isinstance(widget, QCheckBox):
        widget.stateChanged.connect(lambda _: callback())
    elif isinstance(widget, QDateEdit):
        widget.dateChanged.connect(lambda _: callback())
    elif isinstance(widget, QDoubleSpinBox):
        widget.valueChanged.connect(lambda _: callback())
