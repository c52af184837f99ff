"""
Value contracts for field input widgets.

Every input the search panel and dialog form create implements both, so
collecting and applying values never depends on Qt's per-widget API
(text() vs value() vs currentData()).
"""

from abc import ABC, abstractmethod
from typing import Any


class ValueGettable(ABC):
    """An input whose value can be collected into search or form params."""

    @abstractmethod
    def get_value(self) -> Any:
        """Return the entered value; None when the input is empty."""
        pass


class ValueSettable(ABC):
    """An input the manager can fill from defaults, records or panel state."""

    @abstractmethod
    def set_value(self, value: Any) -> None:
        """Show value. None empties the input."""
        pass
