"""
Storage-level errors raised by model delegates.

A delegate (see `jobboard.repositories.delegate`) reports failures it understands
with one of these types. The repository pattern-matches on them; anything else a
delegate raises is treated as unrecognized and becomes an InternalError.

Only two codes are recognized by the repository:

    StorageErrorCode.UNIQUE_VIOLATION  -> ConflictError   (create/update)
    StorageErrorCode.RECORD_NOT_FOUND  -> NotFoundError   (update/delete)
"""

from enum import Enum
from typing import Iterable


class StorageErrorCode(str, Enum):
    UNIQUE_VIOLATION = "unique_violation"
    RECORD_NOT_FOUND = "record_not_found"
    INTEGRITY_VIOLATION = "integrity_violation"
    INVALID_QUERY = "invalid_query"


class StorageError(Exception):
    """Base for every error a delegate raises on purpose."""

    code: StorageErrorCode | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UniqueConstraintViolation(StorageError):
    """
    A write collided with an existing unique key.

    - target: the column name(s) involved, when the backend reports them
    - constraint: the backend's constraint name (for logs only)
    """

    code = StorageErrorCode.UNIQUE_VIOLATION

    def __init__(self, message: str = "Unique constraint violated", *,
                 target: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message)
        self.target = list(target) if target else None
        self.constraint = constraint


class RecordNotFoundError(StorageError):
    """The record targeted by an update/delete does not exist."""

    code = StorageErrorCode.RECORD_NOT_FOUND

    def __init__(self, message: str = "Record not found", *, where: dict | None = None):
        super().__init__(message)
        self.where = where


class IntegrityViolation(StorageError):
    """Not-null, foreign key or check constraint failure."""

    code = StorageErrorCode.INTEGRITY_VIOLATION

    def __init__(self, message: str, *, kind: str | None = None,
                 columns: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.columns = list(columns) if columns else None
        self.constraint = constraint


class InvalidQueryError(StorageError):
    """A filter, ordering or projection referenced something the model does not have."""

    code = StorageErrorCode.INVALID_QUERY


def get_storage_code(exc: BaseException) -> StorageErrorCode | None:
    """Return the storage code carried by `exc`, or None for foreign errors."""
    if isinstance(exc, StorageError):
        return exc.code
    return None


__all__ = [
    "StorageErrorCode",
    "StorageError",
    "UniqueConstraintViolation",
    "RecordNotFoundError",
    "IntegrityViolation",
    "InvalidQueryError",
    "get_storage_code",
]
