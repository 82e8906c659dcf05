"""
Structured error types for taskspine.

Provides a small hierarchy of typed errors carrying a category, structured
context and an optional chained cause, so the error handler can log every
failure with the same shape.

Manifesto:
    - **Typed Error Hierarchy:** Lookup, gating, watchdog and dispatch
      failures are distinct types, never a bare ``Exception``
    - **Rich Context:** Errors carry the task identity and dispatch details
    - **Error Chaining:** The original exception is preserved as ``cause``
    - **No retries:** Nothing in taskspine retries; a later cron firing is
      the only "retry" there is

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       TaskspineError                             │
        │  (category, context, cause)                                      │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  TaskNotFoundError        TaskNotEnabledError   ConfigError     │
        │  TaskDurationExceeded     (CONFIG)              (CONFIG)        │
        │  TaskCrashedError                                    │           │
        │  (TASK)                                  MissingConfigError     │
        │                                          InvalidConfigError     │
        │  DispatchError                                                   │
        │  (DISPATCH)                                                      │
        │       │                                                          │
        │  ScheduleError                                                   │
        └─────────────────────────────────────────────────────────────────┘

    A task's own failure (``run()`` raising) is NOT wrapped in any of these:
    it reaches the caller unchanged.

Examples:
    >>> error = TaskNotFoundError("reports", "daily")
    >>> str(error)
    'task not found: reports:daily'
    >>> error.context.group
    'reports'

    >>> error = ScheduleError("bad cron expression").with_context(expression="* *")
    >>> error.to_dict()["expression"]
    '* *'

Tags:
    error-handling, exception-hierarchy, error-context, taskspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    TASK = "TASK"
    CONFIG = "CONFIG"
    DISPATCH = "DISPATCH"
    INTERNAL = "INTERNAL"

    def __str__(self) -> str:
        return self.value


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the task identity and dispatch details; anything else
    goes into ``metadata``.
    """

    group: str | None = None
    name: str | None = None
    expression: str | None = None
    path: str | None = None
    command: list[str] | None = None
    returncode: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["group", "name", "expression", "path", "command", "returncode"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TaskspineError(Exception):
    """
    Base exception for all taskspine errors.

    Subclasses set ``default_category``; instances carry an ``ErrorContext``
    and may chain the underlying exception through ``cause``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TaskspineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DispatchError("launch failed").with_context(group="reports")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        result.update(self.context.to_dict())
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TASK ERRORS
# =============================================================================


class _TaskIdentityError(TaskspineError):
    """Error raised about one ``(group, name)`` identity."""

    default_category = ErrorCategory.TASK
    template = "{group}:{name}"

    def __init__(self, group: str, name: str, **kwargs: Any):
        self.group = group
        self.name = name
        context = kwargs.pop("context", None) or ErrorContext()
        context.group = group
        context.name = name
        super().__init__(self.template.format(group=group, name=name), context=context, **kwargs)


class TaskNotFoundError(_TaskIdentityError):
    """No registered task matches the requested ``(group, name)``."""

    template = "task not found: {group}:{name}"


class TaskNotEnabledError(_TaskIdentityError):
    """The configuration gate denied execution of the task."""

    default_category = ErrorCategory.CONFIG
    template = "task {group}:{name} is not enabled"


class TaskDurationExceededError(_TaskIdentityError):
    """A task is still running after its declared expected duration."""

    def __init__(self, group: str, name: str, threshold_seconds: int, **kwargs: Any):
        self.threshold_seconds = threshold_seconds
        self.template = f"task still running after expected duration: {{group}}:{{name}} {threshold_seconds}s"
        super().__init__(group, name, **kwargs)


class TaskCrashedError(_TaskIdentityError):
    """An inline task died with something that is not an ``Exception``."""

    template = "task crashed: {group}:{name}"


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(TaskspineError):
    """Configuration lookup failed."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """The requested configuration path is not defined."""

    def __init__(self, path: str, **kwargs: Any):
        super().__init__(f"config path not defined: {path}", context=ErrorContext(path=path), **kwargs)
        self.path = path


class InvalidConfigError(ConfigError):
    """The configuration value exists but has the wrong type or shape."""


# =============================================================================
# DISPATCH ERRORS
# =============================================================================


class DispatchError(TaskspineError):
    """Dispatch infrastructure failed (command resolution, launch, exit)."""

    default_category = ErrorCategory.DISPATCH


class ScheduleError(DispatchError):
    """A cron expression could not be registered with the cron engine."""


def categorize_error(error: BaseException) -> ErrorCategory:
    """Return the category of any exception (``INTERNAL`` for foreign ones)."""
    if isinstance(error, TaskspineError):
        return error.category
    return ErrorCategory.INTERNAL
