"""Settings for taskspine hosts.

Every knob the container reads at construction time lives here, validated
by pydantic and overridable through ``TASKSPINE_*`` environment variables or
a ``.env`` file.

Examples:
    >>> settings = TaskspineSettings(config_namespace="myapp", overlap_policy="skip")
    >>> container = TaskContainer.from_settings(settings)

    From the environment::

        TASKSPINE_WATCHDOG_TICK_SECONDS=0.5
        TASKSPINE_DISPATCH_ENV='{"APP_ENV": "production"}'

Tags:
    settings, configuration, pydantic, environment, taskspine
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnablementPolicy(str, Enum):
    """When the dispatcher consults the enablement gate."""

    REGISTRATION = "registration"
    PER_FIRING = "per_firing"


class OverlapPolicy(str, Enum):
    """What happens when a task fires while its previous firing still runs."""

    ALLOW = "allow"
    SKIP = "skip"


class TaskspineSettings(BaseSettings):
    """taskspine configuration.

    Fields
    ──────
    config_namespace       : First segment of the enablement path
    config_file            : Optional TOML/YAML file backing the gate
    log_level / log_format : structlog configuration
    watchdog_tick_seconds  : Sleep increment of the duration watchdog
    timezone               : Timezone the cron engine evaluates schedules in
    enablement_policy      : Gate at registration only, or on every firing
    overlap_policy         : Allow or skip overlapping firings of one task
    cron_max_workers       : Worker threads firing cron callbacks
    subcommand             : Token placed before ``group name`` for children
                             (empty string: no token)
    dispatch_env           : Exact environment of child processes
    dispatch_inherit_env   : Merge dispatch_env over the parent environment
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Enablement ───────────────────────────────────────────────
    config_namespace: str = Field(default="taskspine", min_length=1)
    config_file: Path | None = None

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "console"

    # ── Execution ────────────────────────────────────────────────
    watchdog_tick_seconds: float = Field(default=1.0, gt=0)
    timezone: str | None = None
    enablement_policy: EnablementPolicy = EnablementPolicy.REGISTRATION
    overlap_policy: OverlapPolicy = OverlapPolicy.ALLOW
    cron_max_workers: int = Field(default=32, ge=1)

    # ── Dispatch ─────────────────────────────────────────────────
    subcommand: str = "run"
    dispatch_env: dict[str, str] | None = None
    dispatch_inherit_env: bool = False

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError(f"unknown log format: {value}")
        return value
