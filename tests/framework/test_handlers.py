"""Tests for the default structlog-backed logger and error handler."""

from unittest.mock import MagicMock

import pytest

from taskspine.core.errors import TaskNotFoundError
from taskspine.core.protocols import ErrorHandler, TaskLogger
from taskspine.framework.handlers import LoggingErrorHandler, StructlogTaskLogger


@pytest.fixture
def task_logger():
    logger = StructlogTaskLogger()
    logger._log = MagicMock()
    return logger


@pytest.fixture
def handler():
    handler = LoggingErrorHandler()
    handler._log = MagicMock()
    return handler


class TestStructlogTaskLogger:
    def test_satisfies_protocol(self):
        assert isinstance(StructlogTaskLogger(), TaskLogger)

    def test_info_renders_template(self, task_logger):
        task_logger.info("CLI", "Running task (%s:%s)", "reports", "daily")
        task_logger._log.info.assert_called_once_with("Running task (reports:daily)", category="CLI")

    def test_info_without_args_keeps_percent(self, task_logger):
        task_logger.info("CLI", "100% done")
        task_logger._log.info.assert_called_once_with("100% done", category="CLI")

    def test_write_logs_each_line(self, task_logger):
        written = task_logger.write(b"first\n\nsecond\r\n")
        assert written == len(b"first\n\nsecond\r\n")
        calls = [call.args[0] for call in task_logger._log.info.call_args_list]
        assert calls == ["first", "second"]
        assert task_logger._log.info.call_args.kwargs == {"category": "STDERR"}

    def test_write_tolerates_bad_utf8(self, task_logger):
        task_logger.write(b"\xff\xfe oops\n")
        task_logger._log.info.assert_called_once()


class TestLoggingErrorHandler:
    def test_satisfies_protocol(self):
        assert isinstance(LoggingErrorHandler(), ErrorHandler)

    def test_structured_fields_for_taskspine_errors(self, handler):
        handler.error(TaskNotFoundError("reports", "daily"))
        kwargs = handler._log.error.call_args.kwargs
        assert kwargs["error_type"] == "TaskNotFoundError"
        assert kwargs["group"] == "reports"
        assert kwargs["stack_info"] is True

    def test_raised_exception_logged_with_traceback(self, handler):
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            handler.error(exc)
        kwargs = handler._log.error.call_args.kwargs
        assert isinstance(kwargs["exc_info"], RuntimeError)
        assert kwargs["message"] == "boom"

    def test_recover_swallows_and_reports(self, handler):
        with handler.recover():
            raise ValueError("inline task died")
        handler._log.error.assert_called_once()
        assert handler._log.error.call_args.kwargs["error_type"] == "ValueError"

    def test_recover_lets_base_exceptions_through(self, handler):
        with pytest.raises(KeyboardInterrupt):
            with handler.recover():
                raise KeyboardInterrupt
