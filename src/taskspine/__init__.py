"""
taskspine - in-process task registry and cron dispatcher.

Register named, grouped tasks; run one by ``(group, name)`` or dispatch all
cron-scheduled tasks, each firing either as a re-invoked child process or
inline on a background thread.

    >>> from taskspine import TaskContainer
    >>> container = TaskContainer()
    >>> @container.task("cache", "warm", schedule="*/10 * * * *", execute_inline=True)
    ... def warm_cache():
    ...     ...
"""

from taskspine.core.config import EnvConfig, MappingConfig
from taskspine.core.errors import (
    DispatchError,
    ScheduleError,
    TaskDurationExceededError,
    TaskNotEnabledError,
    TaskNotFoundError,
    TaskspineError,
)
from taskspine.core.settings import EnablementPolicy, OverlapPolicy, TaskspineSettings
from taskspine.framework import ExitCode, FunctionTask, Task, TaskContainer

__version__ = "0.3.0"

__all__ = [
    "TaskContainer",
    "ExitCode",
    "Task",
    "FunctionTask",
    "TaskspineSettings",
    "EnablementPolicy",
    "OverlapPolicy",
    "MappingConfig",
    "EnvConfig",
    "TaskspineError",
    "TaskNotFoundError",
    "TaskNotEnabledError",
    "TaskDurationExceededError",
    "DispatchError",
    "ScheduleError",
]
