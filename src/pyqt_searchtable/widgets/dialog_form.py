"""PyQt6 create/edit dialog built from a DialogSchema."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QDialog, QDialogButtonBox, QFormLayout, QLabel, QVBoxLayout, QWidget

from pyqt_searchtable.forms.field_types import DialogFieldSpec
from pyqt_searchtable.protocols.surface_protocols import DialogFormSurface, PyQtABCMeta
from pyqt_searchtable.services.signal_service import SignalService
from pyqt_searchtable.widgets.field_inputs import connect_change, create_field_input

logger = logging.getLogger(__name__)

MODE_CREATE = "create"
MODE_UPDATE = "update"

_WINDOW_TITLES = {MODE_CREATE: "Create", MODE_UPDATE: "Edit"}


class FieldDialogForm(QDialog, DialogFormSurface, metaclass=PyQtABCMeta):
    """
    One input per dialog field. Required fields carry a "*" and keep OK
    disabled until they hold a value.

    submitted is emitted with (values, mode) when the user accepts.
    """

    submitted = pyqtSignal(dict, str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._fields: List[DialogFieldSpec] = []
        self.inputs: Dict[str, QWidget] = {}
        self.mode = MODE_CREATE

        layout = QVBoxLayout(self)
        self._form = QFormLayout()
        layout.addLayout(self._form)

        self.button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        self.button_box.accepted.connect(self._on_accepted)
        self.button_box.rejected.connect(self.reject)
        layout.addWidget(self.button_box)

    # ========== DialogFormSurface ==========

    def set_fields(self, fields: Sequence[DialogFieldSpec]) -> None:
        while self._form.rowCount():
            self._form.removeRow(0)
        self.inputs = {}
        self._fields = [f for f in fields if f.key]

        for spec in self._fields:
            widget = create_field_input(spec, self)
            label = QLabel(f"{spec.title} *" if spec.required else spec.title)
            self._form.addRow(label, widget)
            self.inputs[spec.key] = widget
            connect_change(widget, self._update_ok_enabled)
        self._update_ok_enabled()

    def open_form(self, values: Mapping[str, Any], mode: str) -> None:
        self.mode = mode
        self.setWindowTitle(_WINDOW_TITLES.get(mode, mode))
        for spec in self._fields:
            widget = self.inputs[spec.key]
            with SignalService.block_signals(widget):
                widget.set_value(values.get(spec.key, spec.default_value))
        self._update_ok_enabled()
        self.open()

    def close_form(self) -> None:
        self.done(QDialog.DialogCode.Rejected)

    def connect_closed(self, callback: Callable[[], None]) -> None:
        # finished fires for OK, Cancel, Escape and the window close button alike
        self.finished.connect(lambda _result: callback())

    def get_fields_value(self) -> Dict[str, Any]:
        return {spec.key: self.inputs[spec.key].get_value() for spec in self._fields}

    # ========== internals ==========

    def missing_required(self) -> List[str]:
        values = self.get_fields_value()
        return [spec.key for spec in self._fields if spec.required and values.get(spec.key) is None]

    def _update_ok_enabled(self) -> None:
        ok_button = self.button_box.button(QDialogButtonBox.StandardButton.Ok)
        ok_button.setEnabled(not self.missing_required())

    def _on_accepted(self) -> None:
        missing = self.missing_required()
        if missing:
            logger.debug(f"Dialog submit blocked, missing required: {missing}")
            return
        self.submitted.emit(self.get_fields_value(), self.mode)
        self.accept()
