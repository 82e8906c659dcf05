"""Task registry for registering and looking up tasks.

Manifesto:
    The registry is an ordered list, nothing more. Lookup is a linear scan
    by ``(group, name)`` and the first match wins, so registering the same
    identity twice shadows the later task instead of raising.

Tags:
    taskspine, framework, registry, lookup
"""

from collections.abc import Iterator

from taskspine.core.errors import TaskNotFoundError
from taskspine.framework.logging import get_logger
from taskspine.framework.task import Task

logger = get_logger(__name__)


class TaskRegistry:
    """Ordered collection of registered tasks."""

    def __init__(self) -> None:
        self._tasks: list[Task] = []

    def add(self, task: Task) -> Task:
        """Append *task*; a duplicate identity is kept but shadowed."""
        if self.find(task.group, task.name) is not None:
            logger.debug("task_shadowed", group=task.group, name=task.name)
        self._tasks.append(task)
        logger.debug("task_registered", group=task.group, name=task.name, schedule=task.schedule)
        return task

    def find(self, group: str, name: str) -> Task | None:
        """Return the first task registered as ``(group, name)``, or None."""
        for task in self._tasks:
            if task.matches(group, name):
                return task
        return None

    def get(self, group: str, name: str) -> Task:
        """Return the first task registered as ``(group, name)``.

        Raises:
            TaskNotFoundError: If no task matches.
        """
        task = self.find(group, name)
        if task is None:
            raise TaskNotFoundError(group, name)
        return task

    def scheduled(self) -> list[Task]:
        """Tasks with a schedule other than ``None``, ``""`` or ``"manual"``."""
        return [task for task in self._tasks if task.is_scheduled]

    def keys(self) -> list[str]:
        return [task.key for task in self._tasks]

    def clear(self) -> None:
        """Clear registry (for testing)."""
        self._tasks.clear()

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and len(key) == 2 and self.find(*key) is not None
