"""Tests for taskspine.framework.logging - context vars, processor, timing."""

import structlog

from taskspine.framework.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    is_configured,
    new_execution_id,
    push_context,
    set_context,
    timed_block,
)
from taskspine.framework.logging.context import add_context_processor


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_set_and_clear(self):
        set_context(task_group="reports", task_name="daily", trigger="cli")
        assert get_context().to_dict() == {"task_group": "reports", "task_name": "daily", "trigger": "cli"}
        clear_context()
        assert get_context().to_dict() == {}

    def test_bind_merges(self):
        set_context(task_group="reports")
        bind_context(mode="inline")
        assert get_context().to_dict() == {"task_group": "reports", "mode": "inline"}

    def test_push_and_restore(self):
        set_context(task_group="outer")
        token = push_context(task_group="inner", task_name="daily")
        assert get_context().task_group == "inner"
        token.restore()
        assert get_context().to_dict() == {"task_group": "outer"}

    def test_processor_adds_context_without_overriding(self):
        set_context(task_group="reports", task_name="daily")
        event = add_context_processor(None, "info", {"event": "x", "task_name": "explicit"})
        assert event == {"event": "x", "task_group": "reports", "task_name": "explicit"}

    def test_execution_id_shape(self):
        first, second = new_execution_id(), new_execution_id()
        assert len(first) == 12
        assert first != second


class TestTiming:
    def test_timer_stops_on_exit(self):
        with timed_block("reports:daily") as timer:
            timer.add_metric("rows", 3)
        assert timer.ended_at is not None
        assert timer.duration_ms >= 0
        log_dict = timer.to_log_dict()
        assert log_dict["rows"] == 3
        assert "duration_ms" in log_dict

    def test_timer_stops_on_error(self):
        try:
            with timed_block() as timer:
                raise RuntimeError("x")
        except RuntimeError:
            pass
        assert timer.ended_at is not None


class TestConfigureLogging:
    def test_json_configuration(self):
        configure_logging(level="DEBUG", format="json", force=True)
        assert is_configured()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert add_context_processor in processors

    def test_console_configuration(self):
        configure_logging(level="INFO", format="console", force=True)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
