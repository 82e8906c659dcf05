"""Tests for DurationWatchdog.

The watchdog is driven with an injected ``sleep`` so ticks are counted, not
waited for.
"""

import threading
from datetime import timedelta

import pytest

from taskspine.core.errors import TaskDurationExceededError
from taskspine.framework.watchdog import DurationWatchdog


def _watchdog(threshold, running, reports, tick=1.0, sleep=None):
    return DurationWatchdog(
        "reports",
        "daily",
        threshold,
        running,
        report=reports.append,
        tick=tick,
        sleep=sleep or (lambda _: None),
    )


class TestTickArithmetic:
    @pytest.mark.parametrize(
        ("threshold", "tick", "expected"),
        [
            (timedelta(seconds=2), 1.0, 2),
            (timedelta(seconds=2.5), 1.0, 3),
            (timedelta(seconds=0.3), 0.1, 3),
            (timedelta(0), 1.0, 1),
        ],
    )
    def test_ticks_until_check(self, threshold, tick, expected):
        assert _watchdog(threshold, threading.Event(), [], tick=tick).ticks_until_check == expected

    def test_non_positive_tick_rejected(self):
        with pytest.raises(ValueError):
            _watchdog(timedelta(seconds=1), threading.Event(), [], tick=0)


class TestDurationWatchdog:
    def test_reports_once_when_still_running(self):
        running = threading.Event()
        running.set()
        reports = []
        sleeps = []

        watchdog = _watchdog(timedelta(seconds=2), running, reports, sleep=sleeps.append)
        watchdog.start()
        watchdog.join(timeout=5)

        assert sleeps == [1.0, 1.0]
        assert watchdog.reported
        assert len(reports) == 1
        error = reports[0]
        assert isinstance(error, TaskDurationExceededError)
        assert "reports:daily" in str(error)
        assert "2s" in str(error)
        assert error.threshold_seconds == 2

    def test_no_report_when_finished_in_time(self):
        running = threading.Event()
        running.set()
        reports = []

        def sleep(_):
            # The task finishes during the first tick
            running.clear()

        watchdog = _watchdog(timedelta(seconds=2), running, reports, sleep=sleep)
        watchdog.start()
        watchdog.join(timeout=5)

        assert not watchdog.reported
        assert reports == []

    def test_checks_exactly_once(self):
        running = threading.Event()
        running.set()
        reports = []
        sleeps = []

        watchdog = _watchdog(timedelta(seconds=3), running, reports, sleep=sleeps.append)
        watchdog.start()
        watchdog.join(timeout=5)

        # Still running after the single check: no further polling
        assert len(sleeps) == 3
        assert len(reports) == 1
        assert running.is_set()
