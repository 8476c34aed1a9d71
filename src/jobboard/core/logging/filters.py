# src/jobboard/core/logging/filters.py
"""
Logging filters.

Request ID
----------
A per-request identifier is stored in a `contextvars.ContextVar`, so it follows
the request across awaits and asyncio tasks (threading.local() would not).
RequestIDMiddleware sets it; RequestIdFilter copies it onto every LogRecord so
formatters can reference `%(request_id)s` safely. Records emitted outside a
request (startup, CLI, tests) get the sentinel "-".

Redaction
---------
RedactFilter masks sensitive attributes before a record reaches a formatter.
Besides top-level `extra` keys it also walks dict-valued extras one level deep,
which covers the `context={"data": {...}}` payloads repositories log on failure.
"""

import logging
from logging import LogRecord
import contextvars
from typing import Any

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """
    Set the request id in the current context.

    Returns:
        token: pass it to reset_request_id(token) to restore the previous value.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantees every LogRecord has a `request_id` attribute.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
    MASK = "***REDACTED***"

    def _scrub(self, value: Any, depth: int) -> Any:
        if not isinstance(value, dict) or depth <= 0:
            return value
        return {
            k: self.MASK if str(k).lower() in self.SENSITIVE else self._scrub(v, depth - 1)
            for k, v in value.items()
        }

    def filter(self, record: LogRecord) -> bool:
        for key, value in list(record.__dict__.items()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
            elif isinstance(value, dict):
                record.__dict__[key] = self._scrub(value, depth=2)
        return True
