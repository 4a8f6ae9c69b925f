"""Logging configuration for ropee."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from ropee.config import Settings, get_settings

LOG_FILE_NAME = "ropee.log"
ROTATION_INTERVAL_HOURS = 48
MAX_AGE_HOURS = 7 * 24


def add_timestamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add timestamp to log entry."""
    from datetime import datetime, timezone

    event_dict["time"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def censor_sensitive_keys(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove sensitive data from logs."""
    sensitive_keys = {"password", "secret", "token", "authorization", "credentials"}

    for key in list(event_dict.keys()):
        if any(sensitive in key.lower() for sensitive in sensitive_keys):
            event_dict[key] = "***REDACTED***"

    return event_dict


def build_log_handler(settings: Settings) -> logging.Handler:
    """Create the output handler: stdout, or a time-rotated file.

    Files rotate every 48 hours and are kept for 7 days.
    """
    if settings.log_to_stdout:
        return logging.StreamHandler(sys.stdout)

    log_dir = Path(settings.log_file_path).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    return TimedRotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        when="H",
        interval=ROTATION_INTERVAL_HOURS,
        backupCount=MAX_AGE_HOURS // ROTATION_INTERVAL_HOURS,
        utc=True,
    )


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structured logging."""
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        censor_sensitive_keys,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.LogfmtRenderer(
            key_order=["time", "level", "event"], drop_missing=True
        ),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=[build_log_handler(settings)],
        level=logging.DEBUG if settings.debug else logging.INFO,
        force=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    stage: str,
    **kwargs: Any,
) -> None:
    """Log a failed request stage with standard context."""
    context = {
        "stage": stage,
        "error_type": type(error).__name__,
        "error": str(error),
    }
    context.update(kwargs)

    logger.error("request_failed", **context)
