"""APScheduler-based cron engine.

Wraps APScheduler 3.x ``BackgroundScheduler`` to provide the ``CronEngine``
protocol: register a callback per cron expression, then start the
scheduler's own thread, which fires callbacks on its worker pool for the
rest of the process lifetime.

Expression syntax:
    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ ``m h dom mon dow``      │ standard five-field crontab              │
    │ ``@yearly`` ``@annually``│ ``0 0 1 1 *``                            │
    │ ``@monthly``             │ ``0 0 1 * *``                            │
    │ ``@weekly``              │ ``0 0 * * 0``                            │
    │ ``@daily`` ``@midnight`` │ ``0 0 * * *``                            │
    │ ``@hourly``              │ ``0 * * * *``                            │
    │ ``@every 1h30m``         │ fixed interval (h, m, s, ms units)       │
    └──────────────────────────┴──────────────────────────────────────────┘

.. note::

    APScheduler 3.x numbers ``day_of_week`` from Monday (0) while crontab
    numbers it from Sunday (0, or 7). Numeric day-of-week fields are
    translated before the trigger is built so ``0 9 * * 1-5`` still means
    weekdays.
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from taskspine.core.errors import ScheduleError

logger = logging.getLogger(__name__)

# Overlap policy belongs to the dispatcher; the engine must never drop a
# firing because a previous one is still running or the pool is busy.
DEFAULT_MAX_INSTANCES = 100
DEFAULT_MAX_WORKERS = 32

DESCRIPTORS: dict[str, str] = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_EVERY = re.compile(r"^@every\s+(?P<duration>\S+)$", re.IGNORECASE)
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}

_DOW_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``90s``, ``1h30m`` or ``500ms``.

    Raises:
        ScheduleError: If *text* is not a positive duration.
    """
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text) or not text or seconds <= 0:
        raise ScheduleError(f"invalid duration: {text!r}").with_context(expression=text)
    return timedelta(seconds=seconds)


def _crontab_day(token: str) -> int:
    token = token.strip().lower()
    if token in _DOW_NAMES:
        return _DOW_NAMES.index(token)
    day = int(token)
    if not 0 <= day <= 7:
        raise ValueError(f"day of week out of range: {token}")
    return day % 7


def translate_day_of_week(field: str) -> str:
    """Translate a crontab day-of-week field (Sunday=0) to APScheduler's (Monday=0).

    ``*`` and fields using syntax other than lists, ranges and steps are
    returned unchanged.
    """
    if field == "*" or not re.fullmatch(r"[0-9a-zA-Z*/,\-]+", field):
        return field

    days: set[int] = set()
    for part in field.split(","):
        span, _, step_text = part.partition("/")
        step = int(step_text) if step_text else 1
        if step <= 0:
            raise ValueError(f"invalid step in day of week: {part}")
        if span == "*":
            first, last = 0, 6
        elif "-" in span:
            start, _, end = span.partition("-")
            first, last = _crontab_day(start), _crontab_day(end)
            # 1-7 and 0-7 are legal crontab ranges ending on Sunday
            if end.strip() == "7":
                last = 7
        else:
            first = last = _crontab_day(span)
            if step_text:
                last = 6
        days.update(day % 7 for day in range(first, last + 1, step))

    if not days:
        raise ValueError(f"empty day of week: {field}")
    if len(days) == 7:
        return "*"
    return ",".join(str(day) for day in sorted((day - 1) % 7 for day in days))


def build_trigger(expression: str, timezone: Any = None) -> CronTrigger | IntervalTrigger:
    """Build an APScheduler trigger for *expression*.

    Raises:
        ScheduleError: If the expression is malformed.
    """
    expr = expression.strip()

    every = _EVERY.match(expr)
    if every:
        try:
            interval = parse_duration(every.group("duration"))
        except ScheduleError as e:
            raise e.with_context(expression=expression)
        kwargs = {"timezone": timezone} if timezone else {}
        return IntervalTrigger(seconds=interval.total_seconds(), **kwargs)

    expr = DESCRIPTORS.get(expr.lower(), expr)
    if expr.startswith("@"):
        raise ScheduleError(f"unknown cron descriptor: {expression!r}").with_context(expression=expression)

    fields = expr.split()
    if len(fields) != 5:
        raise ScheduleError(
            f"cron expression must have 5 fields, got {len(fields)}: {expression!r}"
        ).with_context(expression=expression)

    try:
        fields[4] = translate_day_of_week(fields[4])
        return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)
    except ValueError as e:
        raise ScheduleError(f"invalid cron expression {expression!r}: {e}", cause=e).with_context(
            expression=expression
        ) from e


class APSchedulerCronEngine:
    """APScheduler-backed ``CronEngine``.

    Example::

        >>> engine = APSchedulerCronEngine()
        >>> engine.add_func("*/5 * * * *", refresh_cache, name="cache:refresh")
        >>> engine.start()
        >>> # … later …
        >>> engine.shutdown()
    """

    name: str = "apscheduler"

    def __init__(
        self,
        timezone: Any = None,
        max_instances: int = DEFAULT_MAX_INSTANCES,
        max_workers: int = DEFAULT_MAX_WORKERS,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._timezone = timezone
        self._max_instances = max_instances
        self.max_workers = max_workers
        if scheduler is None:
            kwargs: dict[str, Any] = {"executors": {"default": ThreadPoolExecutor(max_workers)}}
            if timezone:
                kwargs["timezone"] = timezone
            scheduler = BackgroundScheduler(**kwargs)
        self._scheduler = scheduler
        self._expressions: dict[str, str] = {}
        self._lock = threading.Lock()
        self._fire_count = 0
        self._last_fire: datetime | None = None

    # ------------------------------------------------------------------
    # CronEngine protocol
    # ------------------------------------------------------------------

    def add_func(self, expression: str, callback: Callable[[], None], *, name: str | None = None) -> str:
        """Register *callback* to fire on *expression*; returns the job ID.

        Raises:
            ScheduleError: If the expression is malformed.
        """
        trigger = build_trigger(expression, self._timezone)
        job_id = uuid.uuid4().hex[:12]

        def _fire() -> None:
            with self._lock:
                self._fire_count += 1
                self._last_fire = datetime.now(UTC)
            callback()

        self._scheduler.add_job(
            _fire,
            trigger=trigger,
            id=job_id,
            name=name or expression,
            max_instances=self._max_instances,
            coalesce=False,
            # A firing queued behind busy workers runs late, never not at all
            misfire_grace_time=None,
        )
        self._expressions[job_id] = expression
        logger.debug("Registered cron job %s (%s)", name or job_id, expression)
        return job_id

    def start(self) -> None:
        """Start the scheduler thread. Returns immediately."""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("APSchedulerCronEngine started (%d jobs)", len(self._expressions))

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler, optionally waiting for running callbacks."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("APSchedulerCronEngine stopped")

    def health(self) -> dict[str, Any]:
        """Return engine health status."""
        running = bool(self._scheduler.running)
        return {
            "healthy": running,
            "backend": self.name,
            "max_workers": self.max_workers,
            "scheduled_jobs": len(self._expressions),
            "fire_count": self._fire_count,
            "last_fire": self._last_fire.isoformat() if self._last_fire else None,
        }

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def jobs(self) -> list[dict[str, Any]]:
        """Registered jobs with their next fire time (None until started)."""
        result = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            result.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "expression": self._expressions.get(job.id),
                    "next_run_time": next_run.isoformat() if next_run else None,
                }
            )
        return result
