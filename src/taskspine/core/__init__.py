"""
taskspine core - errors, collaborator protocols, config sources and settings.

These modules have no knowledge of tasks being run; the framework package
builds the registry, runner, watchdog and dispatcher on top of them.
"""

from taskspine.core.config import EnvConfig, MappingConfig
from taskspine.core.errors import (
    ConfigError,
    DispatchError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MissingConfigError,
    ScheduleError,
    TaskCrashedError,
    TaskDurationExceededError,
    TaskNotEnabledError,
    TaskNotFoundError,
    TaskspineError,
)
from taskspine.core.protocols import CronEngine, ErrorHandler, ProcessLauncher, TaskConfig, TaskLogger
from taskspine.core.settings import EnablementPolicy, OverlapPolicy, TaskspineSettings

__all__ = [
    # Errors
    "TaskspineError",
    "ErrorCategory",
    "ErrorContext",
    "TaskNotFoundError",
    "TaskNotEnabledError",
    "TaskDurationExceededError",
    "TaskCrashedError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DispatchError",
    "ScheduleError",
    # Protocols
    "TaskLogger",
    "ErrorHandler",
    "TaskConfig",
    "CronEngine",
    "ProcessLauncher",
    # Config
    "MappingConfig",
    "EnvConfig",
    # Settings
    "TaskspineSettings",
    "EnablementPolicy",
    "OverlapPolicy",
]
