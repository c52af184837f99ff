"""
Core utilities.

Background execution, priority sorting and logging setup with no
knowledge of fields or surfaces.
"""

from .background_task import BackgroundTask, TaskExecutor, ThreadedTaskExecutor, InlineTaskExecutor
from .sort_utils import priority_sort
from .log_utils import configure_logging, get_current_log_file_path

__all__ = [
    "BackgroundTask",
    "TaskExecutor",
    "ThreadedTaskExecutor",
    "InlineTaskExecutor",
    "priority_sort",
    "configure_logging",
    "get_current_log_file_path",
]
