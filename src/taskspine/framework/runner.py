"""Synchronous task runner.

Manifesto:
    The runner executes one task with a fixed lifecycle
    (running → run() → finished) so tasks never log their own start and
    end, and never manage their own watchdog.

    ┌──────────────────────────────────────────────────────────────┐
    │ run_task(group, name)                                        │
    │   registry.get()          → TaskNotFoundError if missing     │
    │   log "Running task"                                          │
    │   running.set()                                               │
    │   DurationWatchdog.start() (only if task.error_after)         │
    │   result = task.run()      ← exceptions propagate unchanged  │
    │   running.clear()          (always, in finally)               │
    │   log "Finished running task"                                 │
    │   return result                                               │
    └──────────────────────────────────────────────────────────────┘

    The ``running`` flag is a ``threading.Event`` per invocation, so the
    watchdog thread always sees the latest value.

Tags:
    taskspine, framework, runner, synchronous, lifecycle
"""

import threading
import time
from collections.abc import Callable
from typing import Any

from taskspine.core.protocols import ErrorHandler, TaskLogger
from taskspine.framework.logging import get_logger, new_execution_id, push_context, timed_block
from taskspine.framework.registry import TaskRegistry
from taskspine.framework.task import Task
from taskspine.framework.watchdog import DEFAULT_TICK_SECONDS, DurationWatchdog

log = get_logger(__name__)

LOG_CATEGORY = "CLI"


class TaskRunner:
    """
    Synchronous task runner.

    Executes tasks immediately in the calling thread.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        logger: TaskLogger,
        errors: ErrorHandler,
        watchdog_tick: float = DEFAULT_TICK_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self._logger = logger
        self._errors = errors
        self._watchdog_tick = watchdog_tick
        self._sleep = sleep

    def run_task(self, group: str, name: str, trigger: str | None = None) -> Any:
        """
        Run the first task registered as ``(group, name)``.

        Returns:
            Whatever the task's ``run()`` returned.

        Raises:
            TaskNotFoundError: If no task matches.
            Exception: Anything the task raised, unchanged.
        """
        task = self.registry.get(group, name)
        return self.run(task, trigger=trigger)

    def run(self, task: Task, trigger: str | None = None) -> Any:
        """Run *task* through the full lifecycle."""
        token = push_context(
            execution_id=new_execution_id(),
            task_group=task.group,
            task_name=task.name,
            trigger=trigger,
        )
        try:
            self._logger.info(LOG_CATEGORY, "Running task (%s:%s)", task.group, task.name)

            running = threading.Event()
            running.set()
            self.attach_watchdog(task, running)

            try:
                with timed_block(task.key) as timer:
                    result = task.run()
            finally:
                running.clear()
                self._logger.info(
                    LOG_CATEGORY,
                    "Finished running task (%s:%s) in %.1fms",
                    task.group,
                    task.name,
                    timer.duration_ms,
                )

            log.debug("task.finished", group=task.group, name=task.name, **timer.to_log_dict())
            return result
        finally:
            token.restore()

    def attach_watchdog(self, task: Task, running: threading.Event) -> DurationWatchdog | None:
        """Start a watchdog for *task* if it declares ``error_after``."""
        if task.error_after is None:
            return None

        watchdog = DurationWatchdog(
            task.group,
            task.name,
            task.error_after,
            running,
            report=self._errors.error,
            tick=self._watchdog_tick,
            sleep=self._sleep,
        )
        watchdog.start()
        return watchdog
