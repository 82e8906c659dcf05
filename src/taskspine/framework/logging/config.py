"""
Logging configuration.

Provides a single entry point for configuring structured logging.

Configuration is read from arguments first, then environment variables:
- TASKSPINE_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- TASKSPINE_LOG_FORMAT: json | console (default: console)

Usage:
    # Configure at application startup
    from taskspine.framework.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")

Child processes spawned by the dispatcher write their logs to stderr, which
the parent re-logs line by line; the JSON format keeps those lines
machine-readable on both sides.
"""

import logging
import os
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from taskspine.framework.logging.context import add_context_processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at startup (CLI entry, dispatcher startup).
    Subsequent calls are no-ops unless force=True.

    Args:
        level: Log level (overrides TASKSPINE_LOG_LEVEL env var)
        format: Output format (overrides TASKSPINE_LOG_FORMAT env var)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("TASKSPINE_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("TASKSPINE_LOG_FORMAT", "console")).lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )

    # APScheduler is chatty at INFO ("Added job", "Running job")
    logging.getLogger("apscheduler").setLevel(max(getattr(logging, log_level), logging.WARNING))

    _configured = True


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def ensure_logging() -> None:
    """
    Apply ``configure_logging()`` defaults unless logging is already set up.

    structlog's unconfigured default prints to stdout, which a dispatched
    child sends to the null device; configured output goes to stderr, which
    the parent re-logs. A host that configured structlog itself is left alone.
    """
    if _configured or structlog.is_configured():
        return
    configure_logging()
