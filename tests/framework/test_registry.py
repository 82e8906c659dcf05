"""Tests for TaskRegistry and the Task record.

Covers:
- first-match lookup and shadowed duplicates
- TaskNotFoundError on a miss
- scheduled() filtering of None / "" / "manual"
- FunctionTask validation and defaults
"""

from datetime import timedelta

import pytest

from taskspine.core.errors import TaskNotFoundError
from taskspine.framework.registry import TaskRegistry
from taskspine.framework.task import MANUAL_SCHEDULE, FunctionTask, Task


class DailyReport(Task):
    """Subclass-style task."""

    group = "reports"
    name = "daily"
    schedule = "0 0 * * *"
    error_after = timedelta(minutes=10)

    def run(self):
        return "report"


def _task(group="g", name="n", result=None, **kwargs):
    return FunctionTask(group, name, lambda: result, **kwargs)


class TestTaskRecord:
    def test_subclass_capabilities(self):
        task = DailyReport()
        assert task.key == "reports:daily"
        assert task.is_scheduled
        assert not task.runs_inline
        assert task.error_after == timedelta(minutes=10)

    def test_base_run_not_implemented(self):
        with pytest.raises(NotImplementedError):
            Task().run()

    @pytest.mark.parametrize("schedule", [None, "", MANUAL_SCHEDULE])
    def test_unscheduled_values(self, schedule):
        assert not _task(schedule=schedule).is_scheduled

    def test_error_after_seconds_become_timedelta(self):
        assert _task(error_after=2).error_after == timedelta(seconds=2)
        assert _task(error_after=0.5).error_after == timedelta(milliseconds=500)

    def test_empty_identity_rejected(self):
        with pytest.raises(ValueError):
            FunctionTask("", "n", lambda: None)
        with pytest.raises(ValueError):
            FunctionTask("g", "", lambda: None)

    def test_description_from_docstring(self):
        def warm():
            """Warm the cache.

            Longer explanation.
            """

        assert FunctionTask("cache", "warm", warm).description == "Warm the cache."


class TestTaskRegistry:
    def test_get_returns_registered_task(self):
        registry = TaskRegistry()
        task = registry.add(DailyReport())
        assert registry.get("reports", "daily") is task
        assert ("reports", "daily") in registry
        assert len(registry) == 1

    def test_miss_raises_not_found(self):
        registry = TaskRegistry()
        registry.add(_task("reports", "daily"))
        with pytest.raises(TaskNotFoundError) as exc_info:
            registry.get("reports", "weekly")
        assert str(exc_info.value) == "task not found: reports:weekly"
        assert exc_info.value.context.group == "reports"
        assert exc_info.value.context.name == "weekly"

    def test_find_returns_none_on_miss(self):
        assert TaskRegistry().find("a", "b") is None

    def test_duplicate_identity_first_wins(self):
        registry = TaskRegistry()
        first = registry.add(_task("a", "b", result=1))
        registry.add(_task("a", "b", result=2))
        assert registry.get("a", "b") is first
        assert len(registry) == 2

    def test_lookup_is_exact_on_both_parts(self):
        registry = TaskRegistry()
        registry.add(_task("a", "b"))
        assert registry.find("a", "B") is None
        assert registry.find("b", "a") is None

    def test_scheduled_filters_and_keeps_order(self):
        registry = TaskRegistry()
        registry.add(_task("a", "1", schedule="* * * * *"))
        registry.add(_task("a", "2", schedule=MANUAL_SCHEDULE))
        registry.add(_task("a", "3", schedule=""))
        registry.add(_task("a", "4"))
        registry.add(_task("a", "5", schedule="@hourly"))
        assert [task.name for task in registry.scheduled()] == ["1", "5"]

    def test_keys_and_clear(self):
        registry = TaskRegistry()
        registry.add(_task("a", "1"))
        registry.add(_task("b", "2"))
        assert registry.keys() == ["a:1", "b:2"]
        registry.clear()
        assert len(registry) == 0
