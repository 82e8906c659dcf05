"""
Logging context management using contextvars.

Run context (task identity, trigger, execution mode) attaches to every log
entry emitted while a task runs, without passing it through every call.

Design choice: contextvars
- Thread-safe: each dispatch worker and inline thread gets its own context
- Clean integration with structlog processors
- Threads started with ``threading.Thread`` begin with an empty context,
  so inline dispatch sets its own before running the task
"""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def new_execution_id() -> str:
    """Generate a short execution ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Run context attached to all log entries.

    Identity:
        task_group: Group of the task being run
        task_name: Name of the task being run

    Execution metadata:
        execution_id: Unique ID of one run_task call
        trigger: What started the run ("cli", "scheduler")
        mode: How a dispatched firing runs ("inline", "subprocess")
    """

    execution_id: str | None = None
    task_group: str | None = None
    task_name: str | None = None
    trigger: str | None = None
    mode: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("taskspine_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    execution_id: str | None = None,
    task_group: str | None = None,
    task_name: str | None = None,
    trigger: str | None = None,
    mode: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(
        execution_id=execution_id,
        task_group=task_group,
        task_name=task_name,
        trigger=trigger,
        mode=mode,
    )
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self):
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(task_group="reports", task_name="daily")
        try:
            run()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    token = _log_context.set(updated)
    return _ContextToken(token)


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds run context to every log entry.

    Registered in configure_logging(); explicit event keys win over context.
    """
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value

    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
