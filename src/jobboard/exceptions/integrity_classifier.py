"""
Classify SQLAlchemy IntegrityErrors into storage-level errors.

Used by the SQLAlchemy delegate only. Postgres errors are classified from their
SQLSTATE (`pgcode`) and diagnostics; other backends (SQLite, MySQL) fall back to
message matching. Column names are extracted from the DB message on a
best-effort basis so ConflictError can name the offending field(s).
"""
import logging
import re
from enum import Enum

from sqlalchemy.exc import IntegrityError

from .storage import IntegrityViolation, StorageError, UniqueConstraintViolation

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "unknown"


# =================================================================================================================
# Postgres error code mapping
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_KIND_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION: ConstraintKind.UNIQUE,
    PostgresErrorCodes.NOT_NULL_VIOLATION: ConstraintKind.NOT_NULL,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION: ConstraintKind.FOREIGN_KEY,
    PostgresErrorCodes.CHECK_VIOLATION: ConstraintKind.CHECK,
}


# =================================================================================================================
# Classifiers
# =================================================================================================================

def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _classify_from_postgres_diag(orig) -> tuple[ConstraintKind | None, str | None]:
    """
    Classify a Postgres integrity error based on pgcode and diagnostics.
    """
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not pgcode:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None

    try:
        kind = PGCODE_KIND_MAP.get(PostgresErrorCodes(pgcode))
    except ValueError:
        kind = None

    if kind:
        logger.debug("integrity.postgres_diagnostic",
                     extra={"pgcode": pgcode, "constraint_name": constraint_name})
        return kind, constraint_name

    logger.warning(
        "integrity.unknown_pgcode",
        extra={"pgcode": pgcode, "constraint_name": constraint_name}
    )
    return ConstraintKind.UNKNOWN, constraint_name


def _classify_from_generic_message(msg: str) -> ConstraintKind:
    """
    Classify an integrity error based on message content (SQLite, MySQL, etc).
    """
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return ConstraintKind.UNIQUE

    if _match_any(normalized, ["not null constraint", "not null", "null value in column"]):
        return ConstraintKind.NOT_NULL

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return ConstraintKind.FOREIGN_KEY

    if _match_any(normalized, ["check constraint", "check failed"]):
        return ConstraintKind.CHECK

    logger.warning("integrity.unknown_message", extra={"message_snippet": (msg or "")[:200]})
    return ConstraintKind.UNKNOWN


def classify_integrity_error(exc: IntegrityError) -> tuple[ConstraintKind, str | None]:
    """
    Heuristically classify a SQLAlchemy IntegrityError.

    Returns:
        A tuple of (ConstraintKind, constraint name if available)
    """
    kind, constraint_name = _classify_from_postgres_diag(exc.orig)
    if kind is not None:
        return kind, constraint_name

    return _classify_from_generic_message(str(exc.orig)), None


# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Common Postgres messages:
      - 'null value in column "email" violates not-null constraint'
      - 'DETAIL:  Key (email)=(a@x.com) already exists.'
    """
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'UNIQUE constraint failed: users.email' / 'NOT NULL constraint failed: users.email'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>[^\n]+)', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols").strip())]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # "Duplicate entry 'foo' for key 'users.uq_users_email'"
    m = re.search(r"Duplicate entry .* for key '?(?P<key>[^']+)'?", msg, flags=re.IGNORECASE)
    if m:
        return [m.group("key").split('.')[-1]]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    if not msg:
        return None

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None


def to_storage_error(exc: IntegrityError, model_name: str | None = None) -> StorageError:
    """
    Convert an IntegrityError into the storage error the repository understands.
    Unique violations carry their target columns; everything else becomes an
    IntegrityViolation (reported upward as an internal failure).
    """
    kind, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if kind is ConstraintKind.UNIQUE:
        logger.info(
            "integrity.unique_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        return UniqueConstraintViolation(
            f"{model_part} unique constraint violated",
            target=columns,
            constraint=constraint_name,
        )

    logger.info(
        "integrity.violation",
        extra={"model": model_part, "kind": kind.value, "fields": columns, "constraint": constraint_name},
    )
    return IntegrityViolation(
        f"{model_part} {kind.value} constraint violated",
        kind=kind.value,
        columns=columns,
        constraint=constraint_name,
    )
