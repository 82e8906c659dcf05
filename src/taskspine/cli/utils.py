"""
CLI utility helpers - consoles and task listing rows.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console

from taskspine.core.errors import ConfigError
from taskspine.framework.container import TaskContainer

console = Console()
err_console = Console(stderr=True)


def _enabled_label(container: TaskContainer, group: str, name: str) -> str:
    try:
        return "yes" if container.gate.is_enabled(group, name) else "no"
    except ConfigError:
        return "error"


def task_rows(container: TaskContainer) -> list[dict[str, Any]]:
    """One dict per registered task, in registration order."""
    rows = []
    for task in container.registry:
        rows.append(
            {
                "group": task.group,
                "name": task.name,
                "schedule": task.schedule if task.is_scheduled else None,
                "error_after": int(task.error_after.total_seconds()) if task.error_after else None,
                "mode": "inline" if task.runs_inline else "subprocess",
                "enabled": _enabled_label(container, task.group, task.name),
            }
        )
    return rows
