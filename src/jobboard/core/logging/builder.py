# src/jobboard/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration.

This module:
 - builds a dictConfig-compatible mapping from Settings
 - applies it once at process start via setup_logging(settings)

Configuration knobs (on Settings):
 - LOG_LEVEL, LOG_FORMAT ("json" | "text")
 - LOG_TO_STDOUT, LOG_DIR: file handlers are only wired when LOG_TO_STDOUT is
   false and LOG_DIR is set
 - LOG_MAX_BYTES, LOG_BACKUP_COUNT: rotation of the file handlers
 - ENABLE_SQL_LOGGING: echo SQLAlchemy statements at DEBUG (may contain data)
 - ENV: stamped on every JSON record

Active handlers by configuration:
| `LOG_TO_STDOUT` | `LOG_DIR` set  | Active handlers                 |
| --------------- | -------------- | ------------------------------- |
| `true`          | doesn't matter | `console` + `error_console`     |
| `false`         | not set        | `console` + `error_console`     |
| `false`         | set            | `console` + `file` + `error_file` |
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config

from jobboard.config.settings import Settings

from .formatters import JsonFormatter, ColorFormatter
from .filters import RequestIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)
from .utils import get_project_name


def _file_logging_enabled(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color/dev or plain) and "json"
      - filters: "request_id", "redact"
      - handlers: console, (file/error_file) OR error_console depending on LOG_TO_STDOUT
      - loggers: root, uvicorn.error, uvicorn.access, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            # use ColorFormatter only in text mode
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if _file_logging_enabled(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            # SQL logging may contain row data
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging from settings.

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Register a RequestIdFilter on the root logger so `%(request_id)s` is
         always resolvable, even for records emitted before a handler filter runs.
    """
    if _file_logging_enabled(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    logging.getLogger().addFilter(RequestIdFilter())
