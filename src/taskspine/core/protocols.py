"""
Collaborator protocols consumed by the task container.

The container never depends on a concrete logger, error handler, config
source, cron engine or process launcher. It depends on the shapes below;
default implementations live in ``taskspine.framework.handlers``,
``taskspine.core.config`` and ``taskspine.scheduling``.

Architecture:
    ::

        protocols.py
        ├── TaskLogger       - info(category, message, *args), write(bytes)
        ├── ErrorHandler     - error(exc), recover() context manager
        ├── TaskConfig       - get_required_bool(path)
        ├── CronEngine       - add_func(expression, callback), start(), shutdown()
        └── ProcessLauncher  - resolve_command(), launch(args, env, sink)

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts, implementations go elsewhere

    ❌ DON'T: Assume collaborators are called from one thread
    ✅ DO: Make logger and error handler implementations thread-safe

Tags:
    protocol, collaborators, logger, error-handler, config, cron, launcher
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TaskLogger(Protocol):
    """
    Leveled text logging plus a raw byte sink.

    ``info`` takes a %-style template like the stdlib ``logging`` module.
    ``write`` lets the logger stand in for a child process's stderr stream.
    """

    def info(self, category: str, message: str, *args: Any) -> None: ...

    def write(self, data: bytes) -> int: ...


@runtime_checkable
class ErrorHandler(Protocol):
    """
    Records errors with stack information.

    ``recover()`` returns a context manager that swallows an exception raised
    inside it after routing it through ``error``; it is the crash barrier
    around inline-dispatched tasks.
    """

    def error(self, exc: BaseException) -> None: ...

    def recover(self) -> AbstractContextManager[None]: ...


@runtime_checkable
class TaskConfig(Protocol):
    """
    Boolean lookup keyed by a dotted path (``namespace.group.name``).

    Raises ``MissingConfigError`` when the path is undefined and
    ``InvalidConfigError`` when the value is not a boolean.
    """

    def get_required_bool(self, path: str) -> bool: ...


@runtime_checkable
class CronEngine(Protocol):
    """External cron scheduler: register callbacks, then start firing them."""

    def add_func(self, expression: str, callback: Callable[[], None], *, name: str | None = None) -> str:
        """Register *callback* to fire at times matching *expression*.

        Raises:
            ScheduleError: If the expression cannot be parsed.
        """
        ...

    def start(self) -> None:
        """Start firing registered callbacks. Must not block."""
        ...

    def shutdown(self, wait: bool = True) -> None: ...

    def health(self) -> dict[str, Any]: ...


@runtime_checkable
class ProcessLauncher(Protocol):
    """Spawns the host executable again for out-of-process dispatch."""

    def resolve_command(self) -> list[str]:
        """Return the command prefix that re-invokes the host program.

        Raises:
            DispatchError: If the command cannot be determined.
        """
        ...

    def launch(
        self,
        args: Sequence[str],
        env: Mapping[str, str] | None,
        stderr_sink: TaskLogger,
    ) -> int:
        """Run *args* to completion and return the exit status.

        Raises:
            DispatchError: If the process cannot be started.
        """
        ...
