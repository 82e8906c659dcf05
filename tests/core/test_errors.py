"""Tests for the taskspine error hierarchy."""

import pytest

from taskspine.core.errors import (
    ConfigError,
    DispatchError,
    ErrorCategory,
    InvalidConfigError,
    MissingConfigError,
    ScheduleError,
    TaskCrashedError,
    TaskDurationExceededError,
    TaskNotEnabledError,
    TaskNotFoundError,
    TaskspineError,
    categorize_error,
)


class TestMessages:
    def test_not_found(self):
        assert str(TaskNotFoundError("reports", "daily")) == "task not found: reports:daily"

    def test_not_enabled(self):
        assert str(TaskNotEnabledError("reports", "daily")) == "task reports:daily is not enabled"

    def test_duration_exceeded_names_threshold(self):
        error = TaskDurationExceededError("reports", "daily", 600)
        assert str(error) == "task still running after expected duration: reports:daily 600s"
        assert error.threshold_seconds == 600

    def test_missing_config_carries_path(self):
        error = MissingConfigError("taskspine.reports.daily")
        assert error.path == "taskspine.reports.daily"
        assert error.context.path == "taskspine.reports.daily"


class TestCategories:
    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (TaskNotFoundError("a", "b"), ErrorCategory.TASK),
            (TaskNotEnabledError("a", "b"), ErrorCategory.CONFIG),
            (TaskDurationExceededError("a", "b", 1), ErrorCategory.TASK),
            (TaskCrashedError("a", "b"), ErrorCategory.TASK),
            (ConfigError("x"), ErrorCategory.CONFIG),
            (InvalidConfigError("x"), ErrorCategory.CONFIG),
            (DispatchError("x"), ErrorCategory.DISPATCH),
            (ScheduleError("x"), ErrorCategory.DISPATCH),
            (RuntimeError("x"), ErrorCategory.INTERNAL),
        ],
    )
    def test_categorize(self, error, category):
        assert categorize_error(error) is category

    def test_hierarchy(self):
        assert issubclass(ScheduleError, DispatchError)
        assert issubclass(MissingConfigError, ConfigError)
        assert issubclass(TaskNotFoundError, TaskspineError)


class TestContextAndSerialization:
    def test_with_context_typed_and_metadata(self):
        error = DispatchError("exit 2").with_context(group="reports", returncode=2, attempt=1)
        assert error.context.group == "reports"
        assert error.context.returncode == 2
        assert error.context.metadata == {"attempt": 1}

    def test_to_dict(self):
        cause = OSError("no such file")
        error = DispatchError("launch failed", cause=cause).with_context(command=["/bin/app", "run"])
        data = error.to_dict()
        assert data["error_type"] == "DispatchError"
        assert data["category"] == "DISPATCH"
        assert data["command"] == ["/bin/app", "run"]
        assert data["cause"] == "OSError: no such file"
        assert error.__cause__ is cause

    def test_identity_context_filled(self):
        data = TaskNotFoundError("reports", "daily").to_dict()
        assert data["group"] == "reports"
        assert data["name"] == "daily"

    def test_repr(self):
        assert repr(ConfigError("x")) == "ConfigError('x', category=CONFIG)"
