"""
SQLAlchemy implementation of the model delegate protocol.

Each call opens its own AsyncSession and runs inside a single transaction, so a
mutation either commits completely or not at all. Server-generated fields
(ids, timestamps) are flushed and refreshed before the record is returned.

Failures the repository needs to recognize are raised as storage errors:
    - IntegrityError on a unique key      -> UniqueConstraintViolation(target=[...])
    - other IntegrityError                -> IntegrityViolation
    - update/delete with no matching row  -> RecordNotFoundError
    - unknown field in a query            -> InvalidQueryError
    - negative skip or take               -> InvalidQueryError
Any other exception (connectivity, driver faults) propagates unchanged.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Generic, Mapping, Type, TypeVar

from sqlalchemy import Select, and_, false, func, or_, select as sa_select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from jobboard.db.base import Base
from jobboard.exceptions.integrity_classifier import to_storage_error
from jobboard.exceptions.storage import InvalidQueryError, RecordNotFoundError

from .delegate import OrderBy

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)

_DIRECTIONS = {"asc", "desc"}


class SQLAlchemyDelegate(Generic[ModelType]):
    """
    Delegate for one mapped model class.

    Args:
        model: The SQLAlchemy model class (not an instance), e.g. User.
        session_factory: async_sessionmaker bound to the engine; expire_on_commit=False
            is expected so returned records stay readable after commit.
    """

    def __init__(self, model: Type[ModelType], session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self._session_factory = session_factory
        mapper = sa_inspect(model)
        self._columns = {attr.key for attr in mapper.column_attrs}
        self._relationships = {rel.key for rel in mapper.relationships}

    @property
    def model_name(self) -> str:
        return self.model.__name__

    # =================================================================================================================
    # Reads
    # =================================================================================================================

    async def find_unique(
        self,
        *,
        where: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | dict | None:
        query = self._apply_include(self._base_query(where), include).limit(2)

        async with self._session_factory() as session:
            result = await session.execute(query)
            # one_or_none() raises if `where` was not actually unique
            entity = result.scalars().unique().one_or_none()

        logger.debug("delegate.find_unique", extra={"model": self.model_name, "found": entity is not None})
        return self._project(entity, select) if entity is not None else None

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
    ) -> list[ModelType | dict]:
        self._check_window(skip, take)
        query = self._base_query(where)

        orderings = self._normalize_order_by(order_by)
        if cursor:
            orderings = self._with_cursor_field(cursor, orderings)
        for field, direction in orderings:
            column = self._column(field)
            # NULLs sort as the smallest value in both directions
            query = query.order_by(column.desc().nulls_last() if direction == "desc" else column.asc().nulls_first())

        # -------------------
        # PAGINATION
        # -------------------
        if skip:
            query = query.offset(skip)
        if take is not None:
            query = query.limit(take)

        query = self._apply_include(query, include)

        async with self._session_factory() as session:
            if cursor:
                anchor = await self._load_cursor(session, cursor, orderings)
                if anchor is None:
                    logger.debug("delegate.find_many.cursor_missing", extra={"model": self.model_name})
                    return []
                query = query.where(self._keyset(orderings, anchor))
            result = await session.execute(query)
            entities = list(result.scalars().unique().all())

        logger.debug("delegate.find_many", extra={"model": self.model_name, "count": len(entities)})
        return [self._project(e, select) for e in entities]

    async def count(self, *, where: Mapping[str, Any] | None = None) -> int:
        query = sa_select(func.count()).select_from(self.model)
        for condition in self._conditions(where):
            query = query.where(condition)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return result.scalar() or 0

    # =================================================================================================================
    # Writes
    # =================================================================================================================

    async def create(
        self,
        *,
        data: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | dict:
        self._check_fields(data.keys())
        start = time.perf_counter()

        async with self._session_factory() as session:
            async with self._integrity_errors():
                async with session.begin():
                    entity = self.model(**data)
                    session.add(entity)
                    await session.flush()
                    await self._refresh(session, entity, include)

        logger.debug(
            "delegate.create",
            extra={
                "model": self.model_name,
                "id": getattr(entity, "id", None),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return self._project(entity, select)

    async def update(
        self,
        *,
        where: Mapping[str, Any],
        data: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | dict:
        self._check_fields(data.keys())

        async with self._session_factory() as session:
            async with self._integrity_errors():
                async with session.begin():
                    entity = await self._get_for_write(session, where)
                    for field, value in data.items():
                        setattr(entity, field, value)
                    await session.flush()
                    await self._refresh(session, entity, include)

        logger.debug("delegate.update", extra={"model": self.model_name, "id": getattr(entity, "id", None)})
        return self._project(entity, select)

    async def delete(
        self,
        *,
        where: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | dict:
        async with self._session_factory() as session:
            async with self._integrity_errors():
                async with session.begin():
                    entity = await self._get_for_write(session, where, include)
                    await session.delete(entity)
                    await session.flush()

        logger.debug("delegate.delete", extra={"model": self.model_name, "id": getattr(entity, "id", None)})
        return self._project(entity, select)

    # =================================================================================================================
    # Helpers
    # =================================================================================================================

    @asynccontextmanager
    async def _integrity_errors(self):
        """Re-raise IntegrityError as the matching storage error."""
        try:
            yield
        except IntegrityError as exc:
            raise to_storage_error(exc, self.model_name) from exc

    async def _get_for_write(self, session: AsyncSession, where: Mapping[str, Any],
                             include: Mapping[str, bool] | None = None) -> ModelType:
        if not where:
            raise InvalidQueryError(f"{self.model_name} write requires a non-empty 'where'")
        query = self._apply_include(self._base_query(where), include).limit(2)
        result = await session.execute(query)
        entity = result.scalars().unique().one_or_none()
        if entity is None:
            raise RecordNotFoundError(f"{self.model_name} not found", where=dict(where))
        return entity

    async def _refresh(self, session: AsyncSession, entity: ModelType,
                       include: Mapping[str, bool] | None) -> None:
        relations = [name for name, wanted in (include or {}).items() if wanted]
        for name in relations:
            self._relationship(name)
        # column attributes always; requested relationships are loaded eagerly as well
        await session.refresh(entity)
        if relations:
            await session.refresh(entity, attribute_names=relations)

    def _base_query(self, where: Mapping[str, Any] | None) -> Select:
        query = sa_select(self.model)
        for condition in self._conditions(where):
            query = query.where(condition)
        return query

    def _conditions(self, where: Mapping[str, Any] | None) -> list:
        conditions = []
        for field, value in (where or {}).items():
            column = self._column(field)
            conditions.append(column.is_(None) if value is None else column == value)
        return conditions

    def _apply_include(self, query: Select, include: Mapping[str, bool] | None) -> Select:
        for name, wanted in (include or {}).items():
            if wanted:
                query = query.options(selectinload(self._relationship(name)))
        return query

    def _check_window(self, skip: int | None, take: int | None) -> None:
        for name, value in (("skip", skip), ("take", take)):
            if value is not None and value < 0:
                raise InvalidQueryError(f"'{name}' must be a non-negative integer, got {value}")

    def _with_cursor_field(self, cursor: Mapping[str, Any],
                           orderings: list[tuple[str, str]]) -> list[tuple[str, str]]:
        """The cursor field closes the ordering as tie-breaker; ascending when not ordered already."""
        if len(cursor) != 1:
            raise InvalidQueryError("cursor must reference exactly one field")
        (field, _), = cursor.items()
        self._column(field)
        # a repeated field has no effect on ORDER BY after its first occurrence
        unique = []
        for name, direction in orderings:
            if name not in {n for n, _ in unique}:
                unique.append((name, direction))
        if field in {n for n, _ in unique}:
            return unique
        return [*unique, (field, "asc")]

    async def _load_cursor(self, session: AsyncSession, cursor: Mapping[str, Any],
                           orderings: list[tuple[str, str]]) -> dict[str, Any] | None:
        """Values of the ordering columns on the cursor record, or None if it does not exist."""
        fields = [field for field, _ in orderings]
        query = sa_select(*[self._column(f) for f in fields]).where(*self._conditions(cursor)).limit(2)
        row = (await session.execute(query)).one_or_none()
        return dict(zip(fields, row)) if row is not None else None

    def _keyset(self, orderings: list[tuple[str, str]], anchor: Mapping[str, Any]):
        """
        Rows at or after the cursor record in the given ordering.

        For orderings (f1, d1) .. (fn, dn) this is
            f1 after v1
            OR (f1 = v1 AND f2 after v2)
            ...
            OR (f1 = v1 AND .. AND fn = vn)
        where "after" is `>` for ascending and `<` for descending, with NULL
        treated as the smallest value. The last term is the cursor record itself.
        """
        seen = []
        branches = []
        for field, direction in orderings:
            column = self._column(field)
            value = anchor[field]
            branches.append(and_(*seen, self._after(column, value, direction)))
            seen.append(column.is_(None) if value is None else column == value)
        branches.append(and_(*seen))
        return or_(*branches)

    @staticmethod
    def _after(column, value: Any, direction: str):
        if direction == "desc":
            return false() if value is None else or_(column < value, column.is_(None))
        return column.is_not(None) if value is None else column > value

    def _normalize_order_by(self, order_by: OrderBy | None) -> list[tuple[str, str]]:
        if not order_by:
            return []
        specs = [order_by] if isinstance(order_by, Mapping) else list(order_by)
        orderings = []
        for spec in specs:
            for field, direction in spec.items():
                direction = str(direction).lower()
                if direction not in _DIRECTIONS:
                    raise InvalidQueryError(f"Invalid sort direction '{direction}' for '{field}'")
                self._column(field)
                orderings.append((field, direction))
        return orderings

    def _project(self, entity: ModelType, select: Mapping[str, bool] | None) -> ModelType | dict:
        if not select:
            return entity
        fields = [name for name, wanted in select.items() if wanted]
        for name in fields:
            if name not in self._columns and name not in self._relationships:
                raise InvalidQueryError(f"{self.model_name} has no field '{name}'")
        return {name: getattr(entity, name) for name in fields}

    def _check_fields(self, fields) -> None:
        unknown = sorted(f for f in fields if f not in self._columns and f not in self._relationships)
        if unknown:
            raise InvalidQueryError(f"Unknown field(s) for {self.model_name}: {', '.join(unknown)}")

    def _column(self, field: str):
        if field not in self._columns:
            raise InvalidQueryError(f"{self.model_name} has no column '{field}'")
        return getattr(self.model, field)

    def _relationship(self, name: str):
        if name not in self._relationships:
            raise InvalidQueryError(f"{self.model_name} has no relationship '{name}'")
        return getattr(self.model, name)
