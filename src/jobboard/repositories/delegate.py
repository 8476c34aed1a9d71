"""
Model delegate protocol: the storage capability a repository wraps.

A delegate performs persistence for exactly one entity collection. Any object
with these six async methods qualifies (SQLAlchemy, an HTTP-backed store, a test
double). Delegates report failures they understand with the storage errors in
`jobboard.exceptions.storage`; the repository treats everything else as an
unexpected failure.

Parameter shapes are loose mappings:
    where     {"email": "a@x.com"}
    data      {"first_name": "Ada"}
    order_by  {"created_at": "desc"} or [{"last_name": "asc"}, {"id": "asc"}]
    cursor    {"id": 40}
    select    {"id": True, "email": True}
    include   {"applications": True}
"""
from typing import Any, Mapping, Protocol, Sequence, TypeVar, runtime_checkable

ModelT = TypeVar("ModelT", covariant=True)

OrderBy = Mapping[str, str] | Sequence[Mapping[str, str]]


@runtime_checkable
class ModelDelegate(Protocol[ModelT]):

    async def find_unique(
        self,
        *,
        where: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelT | None:
        ...

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
    ) -> Sequence[ModelT]:
        ...

    async def create(
        self,
        *,
        data: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelT:
        ...

    async def update(
        self,
        *,
        where: Mapping[str, Any],
        data: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelT:
        ...

    async def delete(
        self,
        *,
        where: Mapping[str, Any],
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelT:
        ...

    async def count(self, *, where: Mapping[str, Any] | None = None) -> int:
        ...
