"""Logging configuration for freelan.

Console diagnostics go through Rich on stderr; structured JSON lines can be
requested instead for machine consumption.
"""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from typing import Any

from freelan.models import LogLevel
from freelan.utils.rich_logging import create_rich_handler

ROOT_LOGGER_NAME = "freelan"


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for logs."""

    _EXCLUDED_KEYS = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "message",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        log_entry.update(
            {
                key: value
                for key, value in record.__dict__.items()
                if key not in self._EXCLUDED_KEYS
            }
        )

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: LogLevel | str = LogLevel.INFO,
    structured: bool = False,
) -> None:
    """Set up logging for the freelan logger tree.

    Args:
        level: Minimum level for freelan loggers
        structured: Emit JSON lines on stderr instead of Rich output

    """
    level_name = LogLevel(level).value

    if structured:
        console_handler: dict[str, Any] = {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "stream": sys.stderr,
        }
    else:
        console_handler = {"()": create_rich_handler}
    console_handler["level"] = level_name

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
        },
        "handlers": {
            "console": console_handler,
        },
        "loggers": {
            ROOT_LOGGER_NAME: {
                "level": level_name,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the freelan logger tree."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
