"""
Cron dispatcher - maps task schedules to cron-engine firings.

Registration (once, in ``dispatch()``):

    for task in registry (in registration order):
        schedule None / "" / "manual"  → skip
        gate says disabled             → skip (logged)
        gate lookup errors             → report, skip
        engine.add_func(schedule, cb)  → ScheduleError reported, continue
    engine.start()                     (does not block)

Firing (``fire(task)``, on an engine worker thread):

    log "Dispatching task"
    PER_FIRING policy      → re-check gate, skip if disabled
    SKIP overlap policy    → skip if the previous firing is still in flight
    task.execute_inline    → daemon thread: recover() { runner.run_task() }
    otherwise              → launcher: [*command, subcommand, group, name]
                             with the configured environment; non-zero
                             exit reported

Nothing a firing does can raise into the engine: every failure is turned
into an ``ErrorHandler.error`` call and the next firing proceeds normally.
"""

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from taskspine.core.errors import ConfigError, DispatchError, ScheduleError, TaskCrashedError
from taskspine.core.protocols import CronEngine, ErrorHandler, ProcessLauncher, TaskLogger
from taskspine.core.settings import EnablementPolicy, OverlapPolicy
from taskspine.framework.gate import EnablementGate
from taskspine.framework.logging import clear_context, get_logger, set_context
from taskspine.framework.registry import TaskRegistry
from taskspine.framework.runner import LOG_CATEGORY, TaskRunner
from taskspine.framework.task import Task

log = get_logger(__name__)


@dataclass
class DispatchStats:
    """Counters for one dispatcher (guarded by a lock, firings are concurrent)."""

    registered: int = 0
    not_scheduled: int = 0
    disabled: int = 0
    registration_errors: int = 0
    firings: int = 0
    skipped_firings: int = 0
    failures: int = 0
    last_firing: datetime | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)
            if counter == "firings":
                self.last_firing = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "registered": self.registered,
            "not_scheduled": self.not_scheduled,
            "disabled": self.disabled,
            "registration_errors": self.registration_errors,
            "firings": self.firings,
            "skipped_firings": self.skipped_firings,
            "failures": self.failures,
            "last_firing": self.last_firing.isoformat() if self.last_firing else None,
        }


class CronDispatcher:
    """
    Registers scheduled tasks with a cron engine and runs their firings.

    One dispatcher per ``TaskContainer.dispatch_tasks()`` call.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        runner: TaskRunner,
        gate: EnablementGate,
        engine: CronEngine,
        launcher: ProcessLauncher,
        logger: TaskLogger,
        errors: ErrorHandler,
        *,
        dispatch_env: Mapping[str, str] | None = None,
        inherit_env: bool = False,
        subcommand: str | None = None,
        enablement_policy: EnablementPolicy = EnablementPolicy.REGISTRATION,
        overlap_policy: OverlapPolicy = OverlapPolicy.ALLOW,
    ) -> None:
        self.registry = registry
        self.runner = runner
        self.gate = gate
        self.engine = engine
        self.launcher = launcher
        self._logger = logger
        self._errors = errors
        self.dispatch_env = dict(dispatch_env) if dispatch_env is not None else None
        self.inherit_env = inherit_env
        self.subcommand = subcommand
        self.enablement_policy = enablement_policy
        self.overlap_policy = overlap_policy
        self.stats = DispatchStats()
        self.job_ids: dict[str, str] = {}
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def dispatch(self) -> dict[str, str]:
        """Register every eligible task, then start the engine.

        Returns:
            Mapping of ``group:name`` to the engine's job ID.
        """
        for task in self.registry:
            self.register(task)

        self.engine.start()
        log.info("dispatch.started", registered=self.stats.registered, tasks=len(self.registry))
        return dict(self.job_ids)

    def register(self, task: Task) -> str | None:
        """Register one task's trigger; returns the job ID or None if skipped."""
        if not task.is_scheduled:
            self.stats.incr("not_scheduled")
            return None

        try:
            enabled = self.gate.is_enabled(task.group, task.name)
        except ConfigError as e:
            self.stats.incr("registration_errors")
            self._errors.error(e)
            return None

        if not enabled:
            self.stats.incr("disabled")
            log.info("dispatch.skipped", group=task.group, name=task.name, reason="not_enabled")
            return None

        try:
            job_id = self.engine.add_func(task.schedule, lambda: self.fire(task), name=task.key)
        except ScheduleError as e:
            self.stats.incr("registration_errors")
            self._errors.error(e.with_context(group=task.group, name=task.name))
            return None
        except Exception as e:
            self.stats.incr("registration_errors")
            self._errors.error(
                ScheduleError(f"failed to schedule {task.key}: {e}", cause=e).with_context(
                    group=task.group, name=task.name, expression=task.schedule
                )
            )
            return None

        # Duplicate keys keep the first job ID, matching lookup order
        self.job_ids.setdefault(task.key, job_id)
        self.stats.incr("registered")
        log.info("dispatch.registered", group=task.group, name=task.name, schedule=task.schedule, job_id=job_id)
        return job_id

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def fire(self, task: Task) -> None:
        """Handle one firing of *task*. Never raises."""
        with self._errors.recover():
            self._logger.info(LOG_CATEGORY, "Dispatching task (%s:%s)", task.group, task.name)
            self.stats.incr("firings")
            log.debug("dispatch.firing", group=task.group, name=task.name, inline=task.runs_inline)

            if not self._enabled_for_firing(task):
                return

            if not self._claim(task):
                self.stats.incr("skipped_firings")
                log.info("dispatch.skipped", group=task.group, name=task.name, reason="previous_firing_running")
                return

            if task.runs_inline:
                try:
                    self.run_inline(task)
                except BaseException:
                    # The thread never started, so it cannot release the claim
                    self._release(task)
                    raise
            else:
                try:
                    self.run_subprocess(task)
                finally:
                    self._release(task)

    def run_inline(self, task: Task) -> threading.Thread:
        """Run *task* on a detached daemon thread behind the crash barrier."""

        def _target() -> None:
            set_context(task_group=task.group, task_name=task.name, trigger="scheduler", mode="inline")
            failed = True
            try:
                with self._errors.recover():
                    try:
                        self.runner.run_task(task.group, task.name, trigger="scheduler")
                    except (SystemExit, GeneratorExit) as exc:
                        raise TaskCrashedError(task.group, task.name, cause=exc) from exc
                    failed = False
            finally:
                if failed:
                    self.stats.incr("failures")
                self._release(task)
                clear_context()

        thread = threading.Thread(target=_target, name=f"taskspine-inline-{task.key}", daemon=True)
        thread.start()
        return thread

    def run_subprocess(self, task: Task) -> int | None:
        """Re-invoke the host for *task* and wait; returns the exit status."""
        try:
            command = self.launcher.resolve_command()
        except DispatchError as e:
            self.stats.incr("failures")
            self._errors.error(e.with_context(group=task.group, name=task.name))
            return None

        args = [*command]
        if self.subcommand:
            args.append(self.subcommand)
        args.extend([task.group, task.name])

        try:
            returncode = self.launcher.launch(args, self.child_environment(), self._logger)
        except DispatchError as e:
            self.stats.incr("failures")
            self._errors.error(e.with_context(group=task.group, name=task.name))
            return None

        if returncode != 0:
            self.stats.incr("failures")
            self._errors.error(
                DispatchError(f"task {task.key} exited with status {returncode}").with_context(
                    group=task.group, name=task.name, command=args, returncode=returncode
                )
            )
        return returncode

    def child_environment(self) -> dict[str, str] | None:
        """Environment for a child process; None means inherit the parent's.

        A configured environment is used exactly as given, unless
        ``inherit_env`` merges it over the parent environment.
        """
        if self.dispatch_env is None:
            return None
        if self.inherit_env:
            return {**os.environ, **self.dispatch_env}
        return dict(self.dispatch_env)

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def _enabled_for_firing(self, task: Task) -> bool:
        if self.enablement_policy is not EnablementPolicy.PER_FIRING:
            return True
        try:
            enabled = self.gate.is_enabled(task.group, task.name)
        except ConfigError as e:
            self.stats.incr("skipped_firings")
            self._errors.error(e)
            return False
        if not enabled:
            self.stats.incr("skipped_firings")
            log.info("dispatch.skipped", group=task.group, name=task.name, reason="not_enabled")
        return enabled

    def _claim(self, task: Task) -> bool:
        if self.overlap_policy is not OverlapPolicy.SKIP:
            return True
        with self._in_flight_lock:
            if task.key in self._in_flight:
                return False
            self._in_flight.add(task.key)
            return True

    def _release(self, task: Task) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(task.key)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health(self) -> dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "engine": self.engine.health(),
            "enablement_policy": self.enablement_policy.value,
            "overlap_policy": self.overlap_policy.value,
        }
