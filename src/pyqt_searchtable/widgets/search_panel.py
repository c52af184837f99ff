"""PyQt6 search panel: one input per search field plus Search/Reset buttons."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QGridLayout, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from pyqt_searchtable.forms.field_types import SearchFieldSpec
from pyqt_searchtable.protocols.surface_protocols import PyQtABCMeta, SearchPanelSurface
from pyqt_searchtable.services.signal_service import SignalService
from pyqt_searchtable.widgets.field_inputs import create_field_input

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 3


class FieldSearchPanel(QWidget, SearchPanelSurface, metaclass=PyQtABCMeta):
    """
    Grid of labelled search inputs.

    Configuration-error placeholders render as disabled inputs so the
    mistake stays visible on the page.
    """

    confirmed = pyqtSignal()

    def __init__(self, columns: int = DEFAULT_COLUMNS, show_buttons: bool = True, parent=None):
        super().__init__(parent)
        self._columns = max(1, columns)
        self._fields: List[SearchFieldSpec] = []
        self.inputs: Dict[str, QWidget] = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(5, 5, 5, 5)
        self._grid = QGridLayout()
        layout.addLayout(self._grid)

        self.search_button = QPushButton("Search")
        self.reset_button = QPushButton("Reset")
        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(self.reset_button)
        buttons.addWidget(self.search_button)
        layout.addLayout(buttons)
        self.search_button.setVisible(show_buttons)
        self.reset_button.setVisible(show_buttons)

        self.search_button.clicked.connect(self.confirmed.emit)
        self.reset_button.clicked.connect(self._on_reset_clicked)

    # ========== SearchPanelSurface ==========

    def set_fields(self, fields: Sequence[SearchFieldSpec]) -> None:
        values = self.get_fields_value()
        self._clear_grid()
        self._fields = list(fields)

        for index, spec in enumerate(self._fields):
            row, col = divmod(index, self._columns)
            widget = create_field_input(spec, self)
            if spec.config_error:
                widget.setEnabled(False)
            self._grid.addWidget(QLabel(spec.title), row, col * 2)
            self._grid.addWidget(widget, row, col * 2 + 1)
            self.inputs[spec.key] = widget

        # Keep what the user already typed for fields that survived the rebuild
        self.set_fields_value({k: v for k, v in values.items() if k in self.inputs})

    def get_fields_value(self) -> Dict[str, Any]:
        values = {}
        for spec in self._fields:
            widget = self.inputs.get(spec.key)
            if widget is None or spec.config_error:
                continue
            value = widget.get_value()
            if value is not None:
                values[spec.key] = value
        return values

    def set_fields_value(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            widget = self.inputs.get(key)
            if widget is None:
                logger.debug(f"No search input for key {key!r}")
                continue
            with SignalService.block_signals(widget):
                widget.set_value(value)

    def reset_fields(self) -> None:
        self.set_fields_value({spec.key: spec.default_value for spec in self._fields})

    def connect_confirm(self, callback: Callable[[], None]) -> None:
        self.confirmed.connect(callback)

    def relayout(self) -> None:
        self.updateGeometry()

    # ========== internals ==========

    def _on_reset_clicked(self) -> None:
        self.reset_fields()
        self.confirmed.emit()

    def _clear_grid(self) -> None:
        while self._grid.count():
            item = self._grid.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self.inputs = {}
