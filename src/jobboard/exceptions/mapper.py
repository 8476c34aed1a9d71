"""
Translate storage-level errors into app-level errors.

This is the single translation boundary between a delegate and the rest of the
application. `map_storage_error` never raises; it returns the exception the
repository should raise (chained `from` the original).

| Storage error                | Recognized for   | App-level error  |
| ---------------------------- | ---------------- | ---------------- |
| `UniqueConstraintViolation`  | create, update   | `ConflictError`  |
| `RecordNotFoundError`        | update, delete   | `NotFoundError`  |
| anything else                | -                | `InternalError`  |
"""
from typing import Iterable

from .base import ConflictError, InternalError, NotFoundError, RepositoryError
from .storage import RecordNotFoundError, StorageErrorCode, UniqueConstraintViolation

DETAILS_UNAVAILABLE = "details unavailable"

# Operation -> storage codes that have a specific app-level meaning for it.
RECOGNIZED_CODES: dict[str, frozenset[StorageErrorCode]] = {
    "find_unique": frozenset(),
    "find_many": frozenset(),
    "count": frozenset(),
    "create": frozenset({StorageErrorCode.UNIQUE_VIOLATION}),
    "update": frozenset({StorageErrorCode.UNIQUE_VIOLATION, StorageErrorCode.RECORD_NOT_FOUND}),
    "delete": frozenset({StorageErrorCode.RECORD_NOT_FOUND}),
}

INTERNAL_MESSAGES = {
    "find_unique": "Error retrieving the record.",
    "find_many": "Error retrieving records.",
    "create": "Error creating the record.",
    "update": "Error updating the record.",
    "delete": "Error deleting the record.",
    "count": "Error counting records.",
}

NOT_FOUND_MESSAGES = {
    "update": "Record to update not found.",
    "delete": "Record to delete not found.",
}


def format_target_fields(target: Iterable[str] | None) -> str:
    """Join the violating field names, or return the 'details unavailable' marker."""
    fields = [str(t) for t in target] if target else []
    if not fields:
        return DETAILS_UNAVAILABLE
    return ", ".join(fields)


def map_storage_error(operation: str, exc: Exception) -> RepositoryError:
    """
    Return the app-level exception for a failure raised by a delegate during `operation`.
    """
    recognized = RECOGNIZED_CODES.get(operation, frozenset())

    if isinstance(exc, UniqueConstraintViolation) and StorageErrorCode.UNIQUE_VIOLATION in recognized:
        return ConflictError(
            f"Unique constraint violation: {format_target_fields(exc.target)}",
            fields=exc.target,
        )

    if isinstance(exc, RecordNotFoundError) and StorageErrorCode.RECORD_NOT_FOUND in recognized:
        return NotFoundError(NOT_FOUND_MESSAGES.get(operation, "Record not found."))

    return InternalError(INTERNAL_MESSAGES.get(operation, "Error accessing the record."))
