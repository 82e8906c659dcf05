"""Default logger and error-handler collaborators.

Both are built on structlog and are injected into ``TaskContainer`` at
construction time; hosts replace them with ``set_logger`` and
``set_error_handler``.

Tags:
    taskspine, framework, logging, error-handling, collaborators
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from taskspine.core.errors import TaskspineError
from taskspine.framework.logging import get_logger


class StructlogTaskLogger:
    """
    ``TaskLogger`` backed by structlog.

    ``info("CLI", "Running task (%s:%s)", group, name)`` logs the rendered
    message with ``category="CLI"``. ``write`` re-logs raw bytes (a child
    process's stderr) one line per entry under ``category="STDERR"``.
    """

    stderr_category = "STDERR"

    def __init__(self, name: str = "taskspine") -> None:
        self._log = get_logger(name)

    def info(self, category: str, message: str, *args: Any) -> None:
        self._log.info(message % args if args else message, category=category)

    def write(self, data: bytes) -> int:
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)
        for line in text.splitlines():
            if line.strip():
                self._log.info(line.rstrip(), category=self.stderr_category)
        return len(data)

    def flush(self) -> None:
        pass


class LoggingErrorHandler:
    """
    ``ErrorHandler`` that logs errors at ERROR level with stack information.

    An exception that was raised carries its own traceback; one that was
    only constructed (e.g. a watchdog report) is logged with the stack of
    the reporting call instead.
    """

    def __init__(self, name: str = "taskspine.errors") -> None:
        self._log = get_logger(name)

    def error(self, exc: BaseException) -> None:
        if isinstance(exc, TaskspineError):
            fields = exc.to_dict()
        else:
            fields = {"error_type": type(exc).__name__, "message": str(exc)}

        if exc.__traceback__ is not None:
            self._log.error("task.error", exc_info=exc, **fields)
        else:
            self._log.error("task.error", stack_info=True, **fields)

    @contextmanager
    def recover(self) -> Iterator[None]:
        """Route an exception raised in the block to ``error`` and swallow it."""
        try:
            yield
        except Exception as exc:
            self.error(exc)
