"""Tests for EnablementGate."""

from unittest.mock import MagicMock

import pytest

from taskspine.core.config import MappingConfig
from taskspine.core.errors import ConfigError, InvalidConfigError, MissingConfigError, TaskNotEnabledError
from taskspine.framework.gate import EnablementGate


class TestEnablementGate:
    def test_no_config_means_enabled(self):
        assert EnablementGate().is_enabled("reports", "daily")

    def test_path_uses_namespace(self):
        assert EnablementGate(namespace="myapp").path_for("reports", "daily") == "myapp.reports.daily"

    def test_true_and_false_values(self):
        config = MappingConfig({"taskspine": {"reports": {"daily": True, "weekly": False}}})
        gate = EnablementGate(config)
        assert gate.is_enabled("reports", "daily")
        assert not gate.is_enabled("reports", "weekly")

    def test_missing_path_fails_open(self):
        gate = EnablementGate(MappingConfig({"taskspine": {"reports": {}}}))
        assert gate.is_enabled("reports", "daily")

    def test_missing_error_from_any_source_fails_open(self):
        config = MagicMock()
        config.get_required_bool.side_effect = MissingConfigError("taskspine.a.b")
        assert EnablementGate(config).is_enabled("a", "b")
        config.get_required_bool.assert_called_once_with("taskspine.a.b")

    def test_invalid_value_raises_config_error(self):
        gate = EnablementGate(MappingConfig({"taskspine": {"a": {"b": "maybe"}}}))
        with pytest.raises(InvalidConfigError):
            gate.is_enabled("a", "b")

    def test_foreign_error_wrapped_in_config_error(self):
        config = MagicMock()
        config.get_required_bool.side_effect = RuntimeError("backend down")
        with pytest.raises(ConfigError) as exc_info:
            EnablementGate(config).is_enabled("a", "b")
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.context.path == "taskspine.a.b"

    def test_check_raises_not_enabled(self):
        gate = EnablementGate(MappingConfig({"taskspine": {"a": {"b": False}}}))
        with pytest.raises(TaskNotEnabledError) as exc_info:
            gate.check("a", "b")
        assert exc_info.value.context.path == "taskspine.a.b"

    def test_check_passes_when_enabled(self):
        EnablementGate(MappingConfig({"taskspine": {"a": {"b": True}}})).check("a", "b")
