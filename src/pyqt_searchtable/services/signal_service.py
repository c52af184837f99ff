"""
Signal blocking for surface widgets.

When the manager pushes state back into a widget (selected rows, field
values) the widget must not echo that change back as user interaction.
"""

from contextlib import contextmanager
from typing import Optional
from PyQt6.QtCore import QObject
import logging

logger = logging.getLogger(__name__)


class SignalService:
    """
    Examples:
        with SignalService.block_signals(table_widget):
            table_widget.selectRow(3)

        with SignalService.block_signals(line_edit, combo_box):
            line_edit.setText("")
            combo_box.setCurrentIndex(-1)
    """

    @staticmethod
    @contextmanager
    def block_signals(*objects: Optional[QObject]):
        """Context manager for blocking signals; restores each object's previous state."""
        previous = []
        for obj in objects:
            if obj is not None:
                previous.append((obj, obj.blockSignals(True)))
                logger.debug(f"Blocked signals on {type(obj).__name__}")

        try:
            yield
        finally:
            for obj, was_blocked in previous:
                obj.blockSignals(was_blocked)
