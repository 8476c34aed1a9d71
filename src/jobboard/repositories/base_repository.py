"""
Base repository class providing common CRUD operations over a model delegate.

A repository wraps exactly one delegate (see `delegate.py`) for its whole
lifetime and exposes the same six operations. Its one job besides forwarding
calls is failure normalization: whatever the delegate raises is logged with its
storage code and the operation's input context, then translated into one of
three app-level errors:

    NotFoundError  - update/delete target does not exist
    ConflictError  - create/update violates a unique key
    InternalError  - anything else

This is the only layer that knows about storage error codes. Services built on
top of it only ever see the app-level errors.
"""
import logging
from typing import Any, Generic, Mapping, Sequence, TypeVar

from jobboard.exceptions.base import RepositoryError
from jobboard.exceptions.mapper import map_storage_error
from jobboard.exceptions.storage import get_storage_code

from .delegate import ModelDelegate, OrderBy

# Type variables for the record type and the delegate type
ModelType = TypeVar("ModelType")
DelegateType = TypeVar("DelegateType", bound=ModelDelegate)


# helper: mask sensitive keys before input context is logged
_SENSITIVE_KEYS = {"password", "secret", "token", "access_token", "refresh_token", "ssn"}


def _mask_sensitive(payload: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """
    Return a shallow copy with sensitive values replaced by '***'.
    """
    if not isinstance(payload, Mapping):
        return payload
    out = {}
    for k, v in payload.items():
        if str(k).lower() in _SENSITIVE_KEYS:
            out[k] = "***"
        else:
            out[k] = v
    return out


def _compact(**params: Any) -> dict[str, Any]:
    """Drop unset (None) optional parameters so delegates only see what was asked for."""
    return {k: v for k, v in params.items() if v is not None}


class BaseRepository(Generic[ModelType, DelegateType]):
    """
    Generic repository over a model delegate.

    Type Parameters:
        ModelType: The record type the delegate returns.
        DelegateType: The delegate implementation (e.g. SQLAlchemyDelegate[User]).
    """

    def __init__(self, delegate: DelegateType, *, logger: logging.Logger | logging.LoggerAdapter | None = None):
        """
        Initialize the repository.

        Args:
            delegate: The storage delegate for one entity collection.
            logger: Where failure diagnostics are written. Defaults to this module's
                logger; pass your own to capture or redirect them.
        """
        self._delegate = delegate
        self.logger = logger or logging.getLogger(__name__)

    @property
    def delegate(self) -> DelegateType:
        return self._delegate

    @property
    def name(self) -> str:
        return type(self).__name__

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def find_unique(
        self,
        where: Mapping[str, Any],
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | None:
        """
        Find a single record by unique criteria.

        Returns:
            The record, or None if nothing matches (absence is not an error here).

        Raises:
            InternalError: On any failure.
        """
        try:
            return await self._delegate.find_unique(**_compact(where=where, include=include, select=select))
        except Exception as exc:
            raise self._normalize("find_unique", exc, {"where": _mask_sensitive(where)}) from exc

    async def find_many(
        self,
        *,
        skip: int | None = None,
        take: int | None = None,
        cursor: Mapping[str, Any] | None = None,
        where: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
        select: Mapping[str, bool] | None = None,
        include: Mapping[str, bool] | None = None,
    ) -> list[ModelType]:
        """
        Find records with optional filtering, ordering and pagination.

        Returns:
            A list (materialized eagerly, possibly empty). Ordered by `order_by`
            when given, otherwise in storage order.

        Raises:
            InternalError: On any failure.
        """
        params = _compact(
            skip=skip, take=take, cursor=cursor, where=where,
            order_by=order_by, select=select, include=include,
        )
        try:
            records: Sequence[ModelType] = await self._delegate.find_many(**params)
            return list(records)
        except Exception as exc:
            context = {**params, "where": _mask_sensitive(where)}
            raise self._normalize("find_many", exc, context) from exc

    async def count(self, where: Mapping[str, Any] | None = None) -> int:
        """
        Count records matching `where` (all records when omitted).

        Raises:
            InternalError: On any failure.
        """
        try:
            return await self._delegate.count(**_compact(where=where))
        except Exception as exc:
            raise self._normalize("count", exc, {"where": _mask_sensitive(where)}) from exc

    # =================================================================================================================
    # Write Operations
    # =================================================================================================================

    async def create(
        self,
        data: Mapping[str, Any],
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Create a record.

        Raises:
            ConflictError: If a unique constraint is violated. `fields` carries the
                violating field(s) when storage reports them.
            InternalError: For any other failure.
        """
        try:
            return await self._delegate.create(**_compact(data=data, include=include, select=select))
        except Exception as exc:
            raise self._normalize("create", exc, {"data": _mask_sensitive(data)}) from exc

    async def update(
        self,
        where: Mapping[str, Any],
        data: Mapping[str, Any],
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Update the record matching `where`.

        Raises:
            NotFoundError: If no record matches `where`.
            ConflictError: If the change violates a unique constraint.
            InternalError: For any other failure.
        """
        try:
            return await self._delegate.update(
                **_compact(where=where, data=data, include=include, select=select)
            )
        except Exception as exc:
            raise self._normalize(
                "update", exc, {"where": _mask_sensitive(where), "data": _mask_sensitive(data)}
            ) from exc

    async def delete(
        self,
        where: Mapping[str, Any],
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Delete the record matching `where` and return it.

        Raises:
            NotFoundError: If no record matches `where`.
            InternalError: For any other failure.
        """
        try:
            return await self._delegate.delete(**_compact(where=where, include=include, select=select))
        except Exception as exc:
            raise self._normalize("delete", exc, {"where": _mask_sensitive(where)}) from exc

    # =================================================================================================================
    # Failure normalization
    # =================================================================================================================

    def _normalize(self, operation: str, exc: Exception, context: dict[str, Any]) -> RepositoryError:
        """
        Log the delegate failure, then return the app-level error to raise.

        The original error and its code go to the log only; the returned error
        carries a fixed, storage-agnostic message.
        """
        code = get_storage_code(exc) or getattr(exc, "code", None)
        mapped = map_storage_error(operation, exc)

        extra = {
            "repository": self.name,
            "operation": operation,
            "error": str(exc),
            "error_type": type(exc).__name__,
            "code": getattr(code, "value", code),
            "context": context,
            "mapped_to": type(mapped).__name__,
        }
        if mapped.error_code == "internal":
            # unexpected: keep the stack for diagnostics
            self.logger.error(f"repo.{operation}.failed", extra=extra, exc_info=exc)
        else:
            # expected client-level outcome (404/409); no stack trace
            self.logger.info(f"repo.{operation}.failed", extra=extra)

        return mapped


# BaseRepository Method Summary
# | Method                                  | Returns          | Raises                                     |
# | --------------------------------------- | ---------------- | ------------------------------------------ |
# | `find_unique(where, include, select)`   | record or `None` | `InternalError`                            |
# | `find_many(skip, take, cursor, ...)`    | list of records  | `InternalError`                            |
# | `count(where)`                          | `int`            | `InternalError`                            |
# | `create(data, include, select)`         | record           | `ConflictError`, `InternalError`           |
# | `update(where, data, include, select)`  | record           | `NotFoundError`, `ConflictError`, Internal |
# | `delete(where, include, select)`        | deleted record   | `NotFoundError`, `InternalError`           |
