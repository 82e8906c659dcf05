"""Duration watchdog for tasks that declare an expected run time.

Manifesto:
    The watchdog reports, it never cancels. It is an approximate timer:
    a daemon thread sleeps in fixed ticks, and once the accumulated ticks
    reach the task's ``error_after`` it looks at the run's ``running`` flag
    exactly once. Still set means the task overran, and one
    ``TaskDurationExceededError`` goes to the error handler. Either way the
    watchdog is done; it never polls again.

    Tick granularity bounds the accuracy: with the default one-second tick
    a 2.5s threshold is checked at 3s.

Tags:
    taskspine, framework, watchdog, duration, threading
"""

import math
import threading
import time
from collections.abc import Callable
from datetime import timedelta

from taskspine.core.errors import TaskDurationExceededError
from taskspine.framework.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TICK_SECONDS = 1.0


class DurationWatchdog:
    """
    Single-shot observer of one task run.

    Args:
        group: Group of the observed task
        name: Name of the observed task
        threshold: Declared maximum expected duration
        running: Event that is set while the task runs
        report: Called with the anomaly if the task overran
        tick: Sleep increment in seconds
        sleep: Sleep function (replaced in tests)
    """

    def __init__(
        self,
        group: str,
        name: str,
        threshold: timedelta,
        running: threading.Event,
        report: Callable[[BaseException], None],
        tick: float = DEFAULT_TICK_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if tick <= 0:
            raise ValueError(f"watchdog tick must be positive, got {tick}")
        self.group = group
        self.name = name
        self.threshold = threshold
        self.running = running
        self.tick = tick
        self._report = report
        self._sleep = sleep
        self._thread: threading.Thread | None = None
        self.reported = False

    @property
    def ticks_until_check(self) -> int:
        """Number of sleeps before the single check (at least one)."""
        # Tolerate float noise: 0.3s / 0.1s must be 3 ticks, not 4
        return max(1, math.ceil(self.threshold.total_seconds() / self.tick - 1e-9))

    @property
    def threshold_seconds(self) -> int:
        return int(self.threshold.total_seconds())

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(
            target=self._observe,
            name=f"taskspine-watchdog-{self.group}:{self.name}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _observe(self) -> None:
        for _ in range(self.ticks_until_check):
            self._sleep(self.tick)

        if not self.running.is_set():
            return

        self.reported = True
        logger.warning(
            "watchdog.duration_exceeded",
            group=self.group,
            name=self.name,
            threshold_seconds=self.threshold_seconds,
        )
        self._report(TaskDurationExceededError(self.group, self.name, self.threshold_seconds))
