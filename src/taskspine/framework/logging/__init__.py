"""
taskspine logging - structured, run-aware logging.

This module provides:
- Structured logging with structlog
- Run context propagation via contextvars
- Timing utilities for run durations
- Environment-based configuration

Usage:
    from taskspine.framework.logging import configure_logging, get_logger, set_context

    configure_logging()
    log = get_logger(__name__)

    set_context(task_group="reports", task_name="daily", trigger="cli")
    log.info("task.running")
"""

from taskspine.framework.logging.config import configure_logging, ensure_logging, is_configured
from taskspine.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_execution_id,
    push_context,
    set_context,
)
from taskspine.framework.logging.timing import TimingResult, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "ensure_logging",
    "is_configured",
    # Context
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "new_execution_id",
    "LogContext",
    # Timing
    "timed_block",
    "TimingResult",
]
