"""
taskspine framework - tasks, registry, runner, watchdog and dispatcher.

This module provides:
- Task base class and function-backed tasks
- Ordered registry with first-match lookup
- Enablement gate backed by a config collaborator
- Synchronous runner with the duration watchdog
- Cron dispatcher (inline thread or child process per firing)
- TaskContainer tying them together
"""

from taskspine.framework.container import ExitCode, TaskContainer
from taskspine.framework.dispatcher import CronDispatcher, DispatchStats
from taskspine.framework.gate import EnablementGate
from taskspine.framework.handlers import LoggingErrorHandler, StructlogTaskLogger
from taskspine.framework.registry import TaskRegistry
from taskspine.framework.runner import TaskRunner
from taskspine.framework.task import MANUAL_SCHEDULE, FunctionTask, Task
from taskspine.framework.watchdog import DurationWatchdog

__all__ = [
    # Tasks
    "Task",
    "FunctionTask",
    "MANUAL_SCHEDULE",
    # Registry
    "TaskRegistry",
    # Execution
    "EnablementGate",
    "TaskRunner",
    "DurationWatchdog",
    "CronDispatcher",
    "DispatchStats",
    # Container
    "TaskContainer",
    "ExitCode",
    # Default collaborators
    "StructlogTaskLogger",
    "LoggingErrorHandler",
]
