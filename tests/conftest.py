"""
Shared pytest fixtures for taskspine tests.

This module provides:
- Recording logger and error handler collaborators
- A fake cron engine that fires callbacks on demand
- A fake process launcher that records every launch
- Auto-marking of tests as unit/integration by location

Usage:
    def test_something(container, engine, launcher):
        container.dispatch_tasks()
        engine.fire_all()
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from taskspine.core.errors import ScheduleError
from taskspine.framework.container import TaskContainer

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Collaborators
# =============================================================================


class RecordingLogger:
    """``TaskLogger`` that keeps every rendered line and stderr chunk."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []
        self.written: list[bytes] = []
        self._lock = threading.Lock()

    def info(self, category: str, message: str, *args: Any) -> None:
        with self._lock:
            self.lines.append((category, message % args if args else message))

    def write(self, data: bytes) -> int:
        with self._lock:
            self.written.append(data)
        return len(data)

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [message for _, message in self.lines]


class RecordingErrorHandler:
    """``ErrorHandler`` that keeps every reported exception."""

    def __init__(self) -> None:
        self.errors: list[BaseException] = []
        self.reported = threading.Event()
        self._lock = threading.Lock()

    def error(self, exc: BaseException) -> None:
        with self._lock:
            self.errors.append(exc)
        self.reported.set()

    @contextmanager
    def recover(self) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            self.error(exc)

    def of_type(self, error_type: type[BaseException]) -> list[BaseException]:
        with self._lock:
            return [exc for exc in self.errors if isinstance(exc, error_type)]


class FakeCronEngine:
    """``CronEngine`` that stores callbacks and fires them when asked."""

    def __init__(self, reject: Sequence[str] = ()) -> None:
        self.jobs: dict[str, tuple[str, Callable[[], None], str | None]] = {}
        self.reject = set(reject)
        self.started = False
        self.stopped = False

    def add_func(self, expression: str, callback: Callable[[], None], *, name: str | None = None) -> str:
        if expression in self.reject:
            raise ScheduleError(f"invalid cron expression {expression!r}").with_context(expression=expression)
        job_id = f"job-{len(self.jobs) + 1}"
        self.jobs[job_id] = (expression, callback, name)
        return job_id

    def start(self) -> None:
        self.started = True

    def shutdown(self, wait: bool = True) -> None:
        self.stopped = True

    def health(self) -> dict[str, Any]:
        return {"healthy": self.started and not self.stopped, "backend": "fake", "scheduled_jobs": len(self.jobs)}

    def names(self) -> list[str | None]:
        return [name for _, _, name in self.jobs.values()]

    def fire(self, name: str) -> None:
        for _, callback, job_name in self.jobs.values():
            if job_name == name:
                callback()
                return
        raise KeyError(name)

    def fire_all(self) -> None:
        for _, callback, _ in list(self.jobs.values()):
            callback()


class FakeLauncher:
    """``ProcessLauncher`` that records launches and returns a fixed status."""

    def __init__(self, command: Sequence[str] = ("/usr/bin/app",), returncode: int = 0) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.launches: list[tuple[list[str], dict[str, str] | None]] = []
        self.stderr = b""

    def resolve_command(self) -> list[str]:
        return list(self.command)

    def launch(self, args: Sequence[str], env: Mapping[str, str] | None, stderr_sink: Any) -> int:
        self.launches.append((list(args), dict(env) if env is not None else None))
        if self.stderr:
            stderr_sink.write(self.stderr)
        return self.returncode


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def task_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def errors() -> RecordingErrorHandler:
    return RecordingErrorHandler()


@pytest.fixture
def engine() -> FakeCronEngine:
    return FakeCronEngine()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def container(task_logger, errors, engine, launcher) -> TaskContainer:
    """Container wired to recording collaborators and fakes."""
    return TaskContainer(
        logger=task_logger,
        error_handler=errors,
        cron_engine=engine,
        launcher=launcher,
        watchdog_tick=0.01,
    )
