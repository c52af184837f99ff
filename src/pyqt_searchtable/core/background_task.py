"""Background execution for data loaders: threaded or inline."""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional
import logging

from PyQt6.QtCore import QThread, pyqtSignal

logger = logging.getLogger(__name__)

# --- Module-level constants ---
CLEANUP_WAIT_MS = 200     # Wait time per task during cleanup

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class TaskExecutor(ABC):
    """
    Runs a target and reports its outcome through exactly one callback.

    Implementations never raise from submit(); a failing target is routed
    to on_error with the original exception.
    """

    @abstractmethod
    def submit(self, target: Callable[[], Any], on_success: SuccessCallback,
               on_error: ErrorCallback) -> None:
        pass


class BackgroundTask(QThread):
    """
    Runs a target on a worker thread.

    Usage:
        task = BackgroundTask(target=loader)
        task.result_ready.connect(on_success)
        task.error_occurred.connect(on_error)  # Receives Exception, not str
        task.start()
    """

    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(Exception)  # Full exception, caller decides

    def __init__(self, target: Callable[[], Any], parent=None):
        super().__init__(parent)
        self._target = target

    def run(self):
        """Execute target in background."""
        try:
            result = self._target()
            self.result_ready.emit(result)
        except Exception as e:
            self.error_occurred.emit(e)  # Full exception object


class ThreadedTaskExecutor(TaskExecutor):
    """
    Runs each submitted target on its own BackgroundTask.

    Tasks are kept alive until they finish. Nothing is cancelled here:
    deciding whether a result is still wanted is the caller's job.

    Usage in widget:
        self._executor = ThreadedTaskExecutor()

        def closeEvent(self, event):
            self._executor.cleanup()
            super().closeEvent(event)
    """

    def __init__(self):
        self._tasks: List[BackgroundTask] = []

    def submit(self, target: Callable[[], Any], on_success: SuccessCallback,
               on_error: ErrorCallback) -> None:
        task = BackgroundTask(target=target)
        task.result_ready.connect(on_success)
        task.error_occurred.connect(on_error)
        task.finished.connect(lambda: self._forget(task))
        self._tasks.append(task)
        task.start()

    def _forget(self, task: BackgroundTask) -> None:
        # finished is emitted just before the thread exits; the QThread must
        # not be collected while it is still running
        task.wait()
        if task in self._tasks:
            self._tasks.remove(task)
        task.deleteLater()

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def cleanup(self, wait_ms: Optional[int] = CLEANUP_WAIT_MS):
        """Wait for running tasks. Call from closeEvent."""
        for task in list(self._tasks):
            if task.isRunning():
                task.wait(wait_ms)
        self._tasks.clear()


class InlineTaskExecutor(TaskExecutor):
    """Runs the target immediately in the calling thread."""

    def submit(self, target: Callable[[], Any], on_success: SuccessCallback,
               on_error: ErrorCallback) -> None:
        try:
            result = target()
        except Exception as e:
            logger.debug(f"Inline task failed: {e!r}")
            on_error(e)
            return
        on_success(result)
