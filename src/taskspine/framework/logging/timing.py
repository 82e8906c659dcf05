"""
Timing utilities for run durations.

Design:
- ``timed_block`` measures without logging; callers add the duration to
  their own "finished" event
- Timer overhead is ~1μs (time.perf_counter)
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TimingResult:
    """Result of a timed block."""

    step: str
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    def stop(self) -> "TimingResult":
        """Record end time."""
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        """Duration in seconds (still ticking until stop())."""
        if self.ended_at is None:
            return time.perf_counter() - self.started_at
        return self.ended_at - self.started_at

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        return self.duration_seconds * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the log output."""
        self.metrics[key] = value
        return self

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        result: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2)}
        result.update(self.metrics)
        return result


@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[TimingResult]:
    """
    Low-level timing context manager.

    Does not log - the timer is stopped on exit, even when the block raises.

    Usage:
        with timed_block("task.run") as timer:
            task.run()
        log.info("task.finished", **timer.to_log_dict())
    """
    timer = TimingResult(step=step)
    try:
        yield timer
    finally:
        timer.stop()
