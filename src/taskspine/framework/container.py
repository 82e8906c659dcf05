"""
TaskContainer - the registry plus everything needed to run its tasks.

Usage (a host's ``__main__``)::

    from taskspine import TaskContainer

    container = TaskContainer()

    @container.task("reports", "daily", schedule="0 0 * * *", error_after=600)
    def daily_report():
        ...

    if __name__ == "__main__":
        if sys.argv[1:] == ["dispatch"]:
            container.dispatch_tasks()
            container.wait()
        else:
            container.main()           # python app.py reports daily

Dispatched firings re-invoke the same program as ``app.py run reports daily``;
``execute`` strips the ``run`` token, so the child runs the single task.

Exit codes (``execute``):
    ┌──────────────────────────────────────────────┬──────┐
    │ task ran and returned                        │  0   │
    │ fewer than two arguments (nothing to do)     │  0   │
    │ task not found                               │  1   │
    │ task not enabled / enablement lookup failed  │  1   │
    │ task raised                                  │  1   │
    └──────────────────────────────────────────────┴──────┘
"""

import sys
import threading
from collections.abc import Callable, Mapping, Sequence
from datetime import timedelta
from enum import IntEnum
from typing import Any, NoReturn

from taskspine.core.config import MappingConfig
from taskspine.core.errors import ConfigError, TaskNotEnabledError, TaskNotFoundError
from taskspine.core.protocols import CronEngine, ErrorHandler, ProcessLauncher, TaskConfig, TaskLogger
from taskspine.core.settings import EnablementPolicy, OverlapPolicy, TaskspineSettings
from taskspine.framework.dispatcher import CronDispatcher
from taskspine.framework.gate import DEFAULT_NAMESPACE, EnablementGate
from taskspine.framework.handlers import LoggingErrorHandler, StructlogTaskLogger
from taskspine.framework.logging import configure_logging, ensure_logging, get_logger
from taskspine.framework.registry import TaskRegistry
from taskspine.framework.runner import LOG_CATEGORY, TaskRunner
from taskspine.framework.task import FunctionTask, Task
from taskspine.framework.watchdog import DEFAULT_TICK_SECONDS

log = get_logger(__name__)

DEFAULT_SUBCOMMAND = "run"


class ExitCode(IntEnum):
    """Process exit status for a single-task invocation."""

    SUCCESS = 0
    FAILURE = 1


class TaskContainer:
    """
    Task registry and orchestrator.

    Created once per process, configured through the setters, then used
    either to run one task (``execute``/``run_task``) or to start recurring
    dispatch (``dispatch_tasks``).
    """

    def __init__(
        self,
        *,
        logger: TaskLogger | None = None,
        error_handler: ErrorHandler | None = None,
        config: TaskConfig | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        watchdog_tick: float = DEFAULT_TICK_SECONDS,
        enablement_policy: EnablementPolicy = EnablementPolicy.REGISTRATION,
        overlap_policy: OverlapPolicy = OverlapPolicy.ALLOW,
        subcommand: str | None = DEFAULT_SUBCOMMAND,
        dispatch_env: Mapping[str, str] | None = None,
        inherit_env: bool = False,
        cron_engine: CronEngine | None = None,
        launcher: ProcessLauncher | None = None,
    ) -> None:
        # Route default log output to stderr unless the host configured structlog
        ensure_logging()
        self.registry = TaskRegistry()
        self._logger: TaskLogger = logger or StructlogTaskLogger()
        self._errors: ErrorHandler = error_handler or LoggingErrorHandler()
        self._gate = EnablementGate(config, namespace=namespace)
        self.watchdog_tick = watchdog_tick
        self.enablement_policy = enablement_policy
        self.overlap_policy = overlap_policy
        self.subcommand = subcommand or None
        self._dispatch_env = dict(dispatch_env) if dispatch_env is not None else None
        self.inherit_env = inherit_env
        self._cron_engine = cron_engine
        self._launcher = launcher
        self._dispatcher: CronDispatcher | None = None
        self._stopped = threading.Event()

    @classmethod
    def from_settings(cls, settings: TaskspineSettings | None = None, **overrides: Any) -> "TaskContainer":
        """Build a container (and configure logging) from ``TaskspineSettings``."""
        settings = settings or TaskspineSettings()
        configure_logging(level=settings.log_level, format=settings.log_format)

        kwargs: dict[str, Any] = {
            "namespace": settings.config_namespace,
            "watchdog_tick": settings.watchdog_tick_seconds,
            "enablement_policy": settings.enablement_policy,
            "overlap_policy": settings.overlap_policy,
            "subcommand": settings.subcommand or None,
            "dispatch_env": settings.dispatch_env,
            "inherit_env": settings.dispatch_inherit_env,
        }
        if settings.config_file is not None:
            kwargs["config"] = MappingConfig.from_file(settings.config_file)
        if "cron_engine" not in overrides:
            from taskspine.scheduling import APSchedulerCronEngine

            kwargs["cron_engine"] = APSchedulerCronEngine(
                timezone=settings.timezone, max_workers=settings.cron_max_workers
            )

        kwargs.update(overrides)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Registration and configuration
    # ------------------------------------------------------------------

    def add_task(self, task: Task) -> Task:
        return self.registry.add(task)

    def task(
        self,
        group: str,
        name: str,
        *,
        schedule: str | None = None,
        error_after: timedelta | float | None = None,
        execute_inline: bool | None = None,
    ) -> Callable[[Callable[[], Any]], Callable[[], Any]]:
        """Decorator registering a plain function as a task."""

        def decorator(func: Callable[[], Any]) -> Callable[[], Any]:
            self.add_task(
                FunctionTask(
                    group,
                    name,
                    func,
                    schedule=schedule,
                    error_after=error_after,
                    execute_inline=execute_inline,
                )
            )
            return func

        return decorator

    def set_logger(self, logger: TaskLogger) -> None:
        self._logger = logger

    def set_error_handler(self, handler: ErrorHandler) -> None:
        self._errors = handler

    def set_config(self, config: TaskConfig | None) -> None:
        self._gate.config = config

    def set_dispatch_environment(self, env: Mapping[str, str] | None, *, inherit: bool = False) -> None:
        """Give child processes exactly *env*, or *env* over the parent's with ``inherit``."""
        self._dispatch_env = dict(env) if env is not None else None
        self.inherit_env = inherit

    def set_cron_engine(self, engine: CronEngine) -> None:
        self._cron_engine = engine

    def set_launcher(self, launcher: ProcessLauncher) -> None:
        self._launcher = launcher

    @property
    def gate(self) -> EnablementGate:
        return self._gate

    @property
    def dispatcher(self) -> CronDispatcher | None:
        """The dispatcher started by ``dispatch_tasks``, if any."""
        return self._dispatcher

    # ------------------------------------------------------------------
    # Synchronous execution
    # ------------------------------------------------------------------

    def runner(self) -> TaskRunner:
        return TaskRunner(self.registry, self._logger, self._errors, watchdog_tick=self.watchdog_tick)

    def run_task(self, group: str, name: str, trigger: str | None = None) -> Any:
        """Run one task now and return its result.

        Not gated: ``execute`` and the dispatcher consult the gate first.

        Raises:
            TaskNotFoundError: If no task is registered as ``(group, name)``.
            Exception: Whatever the task raised, unchanged.
        """
        return self.runner().run_task(group, name, trigger=trigger)

    def execute(self, argv: Sequence[str] | None = None) -> ExitCode:
        """Run the task named by ``argv`` (default ``sys.argv[1:]``)."""
        args = list(sys.argv[1:] if argv is None else argv)
        if self.subcommand and len(args) > 2 and args[0] == self.subcommand:
            args = args[1:]

        if len(args) < 2:
            self._logger.info(LOG_CATEGORY, "Not enough arguments, expecting: taskGroup taskName")
            return ExitCode.SUCCESS

        group, name = args[0], args[1]

        try:
            self._gate.check(group, name)
        except TaskNotEnabledError as e:
            self._logger.info(LOG_CATEGORY, "Task %s:%s is not enabled", group, name)
            log.info("task.not_enabled", group=group, name=name, path=e.context.path)
            return ExitCode.FAILURE
        except ConfigError as e:
            self._errors.error(e)
            return ExitCode.FAILURE

        try:
            self.run_task(group, name, trigger="cli")
        except TaskNotFoundError:
            self._logger.info(LOG_CATEGORY, "Task %s:%s not found", group, name)
            log.info("task.not_found", group=group, name=name)
            return ExitCode.FAILURE
        except Exception as e:
            self._errors.error(e)
            return ExitCode.FAILURE

        return ExitCode.SUCCESS

    def main(self, argv: Sequence[str] | None = None) -> NoReturn:
        """``execute`` and exit the process with its exit code."""
        sys.exit(int(self.execute(argv)))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch_tasks(self) -> CronDispatcher:
        """Register every scheduled task with the cron engine and start it.

        Returns immediately; firings happen on the engine's threads.
        """
        if self._cron_engine is None:
            from taskspine.scheduling import APSchedulerCronEngine

            self._cron_engine = APSchedulerCronEngine()
        if self._launcher is None:
            from taskspine.scheduling import SubprocessLauncher

            self._launcher = SubprocessLauncher()

        self._dispatcher = CronDispatcher(
            self.registry,
            self.runner(),
            self._gate,
            self._cron_engine,
            self._launcher,
            self._logger,
            self._errors,
            dispatch_env=self._dispatch_env,
            inherit_env=self.inherit_env,
            subcommand=self.subcommand,
            enablement_policy=self.enablement_policy,
            overlap_policy=self.overlap_policy,
        )
        self._stopped.clear()
        self._dispatcher.dispatch()
        return self._dispatcher

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``shutdown`` is called (or *timeout* elapses)."""
        return self._stopped.wait(timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the cron engine started by ``dispatch_tasks``."""
        if self._cron_engine is not None:
            self._cron_engine.shutdown(wait=wait)
        self._stopped.set()

    def health(self) -> dict[str, Any]:
        return {
            "tasks": len(self.registry),
            "scheduled": len(self.registry.scheduled()),
            "dispatch": self._dispatcher.health() if self._dispatcher else None,
        }
