"""Configuration-driven on/off switch per task identity.

Policy:
    ┌──────────────────────────────────────┬──────────────────────────────┐
    │ config collaborator says             │ gate decision                │
    ├──────────────────────────────────────┼──────────────────────────────┤
    │ (no collaborator set)                │ enabled                      │
    │ True                                 │ enabled                      │
    │ False                                │ disabled                     │
    │ MissingConfigError (path undefined)  │ enabled ("fail open")        │
    │ any other error                      │ ConfigError raised to caller │
    └──────────────────────────────────────┴──────────────────────────────┘

The path is ``"<namespace>.<group>.<name>"``.

Tags:
    taskspine, framework, enablement, configuration
"""

from taskspine.core.errors import ConfigError, MissingConfigError, TaskNotEnabledError
from taskspine.core.protocols import TaskConfig
from taskspine.framework.logging import get_logger

logger = get_logger(__name__)

DEFAULT_NAMESPACE = "taskspine"


class EnablementGate:
    """Decides, per ``(group, name)``, whether a task may run."""

    def __init__(self, config: TaskConfig | None = None, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.config = config
        self.namespace = namespace

    def path_for(self, group: str, name: str) -> str:
        return f"{self.namespace}.{group}.{name}"

    def is_enabled(self, group: str, name: str) -> bool:
        """Return whether the task may run.

        Raises:
            ConfigError: If the lookup fails for any reason other than the
                path being undefined.
        """
        if self.config is None:
            return True

        path = self.path_for(group, name)
        try:
            enabled = self.config.get_required_bool(path)
        except MissingConfigError:
            logger.debug("gate.path_undefined", path=path)
            return True
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"config lookup failed for {path}: {e}", cause=e).with_context(
                path=path, group=group, name=name
            ) from e

        return bool(enabled)

    def check(self, group: str, name: str) -> None:
        """Raise ``TaskNotEnabledError`` if the task is switched off."""
        if not self.is_enabled(group, name):
            raise TaskNotEnabledError(group, name).with_context(path=self.path_for(group, name))
