"""Task base class and function-backed tasks.

Manifesto:
    A task is a record, not a bag of optional interfaces. Every task has a
    group, a name and a ``run()``; the three optional capabilities
    (schedule, expected duration, inline execution) are plain attributes
    with "off" defaults, so nothing has to inspect a task to find out what
    it can do.

Tags:
    taskspine, framework, task, capabilities
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

MANUAL_SCHEDULE = "manual"


def _as_timedelta(value: timedelta | float | int | None) -> timedelta | None:
    if value is None or isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


def _first_doc_line(func: Callable[..., Any]) -> str:
    lines = (func.__doc__ or "").strip().splitlines()
    return lines[0] if lines else ""


class Task:
    """
    Base class for registered tasks.

    Subclasses set ``group`` and ``name`` and implement ``run()``. The
    optional capabilities default to "unscheduled, no watchdog, dispatched
    out of process".

    Example:
        >>> class DailyReport(Task):
        ...     group = "reports"
        ...     name = "daily"
        ...     schedule = "0 0 * * *"
        ...     error_after = timedelta(minutes=10)
        ...
        ...     def run(self):
        ...         build_report()
    """

    group: str = ""
    name: str = ""

    schedule: str | None = None
    """Cron expression; ``None``, ``""`` and ``"manual"`` never auto-dispatch."""

    error_after: timedelta | None = None
    """Expected maximum run time; a run still going past it is reported."""

    execute_inline: bool | None = None
    """Run dispatched firings in a thread of the dispatcher process."""

    def run(self) -> Any:
        """Do the work. Return a value on success, raise on failure."""
        raise NotImplementedError(f"{type(self).__name__} must implement run()")

    @property
    def key(self) -> str:
        return f"{self.group}:{self.name}"

    @property
    def is_scheduled(self) -> bool:
        return bool(self.schedule) and self.schedule != MANUAL_SCHEDULE

    @property
    def runs_inline(self) -> bool:
        return bool(self.execute_inline)

    def matches(self, group: str, name: str) -> bool:
        return self.group == group and self.name == name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r}, schedule={self.schedule!r})"


class FunctionTask(Task):
    """A task whose ``run()`` calls a plain function."""

    def __init__(
        self,
        group: str,
        name: str,
        func: Callable[[], Any],
        *,
        schedule: str | None = None,
        error_after: timedelta | float | None = None,
        execute_inline: bool | None = None,
        description: str | None = None,
    ) -> None:
        if not group or not name:
            raise ValueError("task group and name must be non-empty")
        self.group = group
        self.name = name
        self.func = func
        self.schedule = schedule
        self.error_after = _as_timedelta(error_after)
        self.execute_inline = execute_inline
        self.description = description or _first_doc_line(func)

    def run(self) -> Any:
        return self.func()
