"""
App-level exceptions raised by the repository and service layers.

Every entity type surfaces the same three failure kinds:

    NotFoundError   -> the targeted record does not exist (404)
    ConflictError   -> a uniqueness constraint was violated (409)
    InternalError   -> anything else; storage internals are logged, never returned (500)

Storage-specific errors (see `storage.py`) are translated into these by the
repository layer only. Services and HTTP handlers never look at storage codes.
"""

from typing import Iterable


class RepositoryError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - error_code: canonical short code (e.g., 'conflict', 'not_found') used by clients
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "not_found": 404,
        "conflict": 409,
        "internal": 500,
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses.
        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "conflict",            # optional canonical code
                "fields": ["email"],           # optional list for client usage
            }
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        """
        HTTP status for this error, looked up from `error_code`.
        Unknown or missing codes default to 400.
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class ConflictError(RepositoryError):
    """Raised when a create/update would violate a uniqueness constraint."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="conflict")


class InternalError(RepositoryError):
    def __init__(self, message: str = "Internal error"):
        super().__init__(message, error_code="internal")


__all__ = [
    "RepositoryError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
