"""
Base service class providing entity-aware CRUD on top of a repository.

The service adds two things to the repository it wraps:

    - identifier lookups: `find_one_by_id`, `update(id, ...)` and `delete(id)` build
      `{id_field: id}` filters, and `find_one_by_id` turns absence into NotFoundError
    - entity-specific error messages ("Could not update user with ID 42.")

It never inspects storage errors. NotFoundError/ConflictError coming from the
repository are re-raised unchanged; everything else (including failures in the
service's own logic) is logged and wrapped in a fresh InternalError.
"""
import logging
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel

from jobboard.exceptions.base import ConflictError, InternalError, NotFoundError
from jobboard.repositories.base_repository import BaseRepository
from jobboard.repositories.delegate import OrderBy

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType")
UpdateSchemaType = TypeVar("UpdateSchemaType")


@dataclass(frozen=True)
class EntityName:
    """Human-readable entity name used in error messages."""
    singular: str
    plural: str | None = None

    def get(self, plural: bool = False) -> str:
        if plural:
            return self.plural or f"{self.singular}s"
        return self.singular


def _to_data(dto: Any, *, partial: bool = False) -> dict[str, Any]:
    """
    Storage payload for a create/update DTO. Pydantic models are dumped
    (only explicitly set fields when `partial`), mappings are copied.
    """
    if isinstance(dto, BaseModel):
        return dto.model_dump(exclude_unset=partial)
    if isinstance(dto, Mapping):
        return dict(dto)
    raise TypeError(f"Unsupported DTO type: {type(dto).__name__}")


class BaseService(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Generic service over one repository.

    Type Parameters:
        ModelType: The record type returned by the repository.
        CreateSchemaType: DTO accepted by `create` (pydantic model or mapping).
        UpdateSchemaType: DTO accepted by `update` (pydantic model or mapping).
    """

    def __init__(
        self,
        repository: BaseRepository[ModelType, Any],
        entity_name: EntityName,
        *,
        id_field: str = "id",
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        """
        Args:
            repository: The repository used for all data access.
            entity_name: Singular/plural display name for error messages.
            id_field: Name of the identifier field used by the by-id operations.
            logger: Where wrapped failures are logged. Defaults to this module's logger.
        """
        self._repository = repository
        self._entity_name = entity_name
        self._id_field = id_field
        self.logger = logger or logging.getLogger(__name__)

    @property
    def repository(self) -> BaseRepository[ModelType, Any]:
        return self._repository

    @property
    def id_field(self) -> str:
        return self._id_field

    def get_entity_name(self, plural: bool = False) -> str:
        return self._entity_name.get(plural)

    def _where_id(self, id: Any) -> dict[str, Any]:
        return {self._id_field: id}

    def _log_failure(self, operation: str, exc: Exception, **context: Any) -> None:
        # called from inside `except`, so the active exception is attached
        self.logger.exception(
            f"service.{operation}.failed",
            extra={
                "service": type(self).__name__,
                "entity": self.get_entity_name(),
                "operation": operation,
                "error_type": type(exc).__name__,
                **context,
            },
        )

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def create(
        self,
        create_dto: CreateSchemaType,
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Create an entity from an already-validated DTO.

        Raises:
            ConflictError: Re-raised from the repository on a unique key collision.
            InternalError: For any other failure.
        """
        try:
            data = _to_data(create_dto)
            return await self._repository.create(data, include=include, select=select)
        except ConflictError:
            raise
        except Exception as exc:
            self._log_failure("create", exc)
            raise InternalError(f"Could not create {self.get_entity_name()}.") from exc

    # =================================================================================================================
    # Read
    # =================================================================================================================

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
        try:
            return await self._repository.find_many(
                skip=skip, take=take, cursor=cursor, where=where,
                order_by=order_by, select=select, include=include,
            )
        except Exception as exc:
            self._log_failure("find_many", exc)
            raise InternalError(f"Could not retrieve {self.get_entity_name(plural=True)}.") from exc

    async def find_one_by_id(
        self,
        id: Any,
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Get an entity by its identifier.

        This is the one read that treats absence as an error.

        Raises:
            NotFoundError: If no entity has this identifier.
            InternalError: If the lookup itself fails.
        """
        try:
            entity = await self._repository.find_unique(self._where_id(id), include=include, select=select)
        except Exception as exc:
            self._log_failure("find_one_by_id", exc, id=id)
            raise InternalError(
                f"An error occurred while retrieving {self.get_entity_name()} with ID {id}."
            ) from exc

        if entity is None:
            raise NotFoundError(f"{self.get_entity_name()} with ID {id} not found.", fields=[self._id_field])
        return entity

    async def find_unique(
        self,
        where: Mapping[str, Any],
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType | None:
        """Find an entity by unique criteria. Returns None when nothing matches."""
        try:
            return await self._repository.find_unique(where, include=include, select=select)
        except Exception as exc:
            self._log_failure("find_unique", exc)
            raise InternalError(f"Could not retrieve {self.get_entity_name()}.") from exc

    async def count(self, where: Mapping[str, Any] | None = None) -> int:
        try:
            return await self._repository.count(where)
        except Exception as exc:
            self._log_failure("count", exc)
            raise InternalError(f"Could not count {self.get_entity_name(plural=True)}.") from exc

    # =================================================================================================================
    # Update / Delete
    # =================================================================================================================

    async def update(
        self,
        id: Any,
        update_dto: UpdateSchemaType,
        *,
        include: Mapping[str, bool] | None = None,
        select: Mapping[str, bool] | None = None,
    ) -> ModelType:
        """
        Update the entity with this identifier. Pydantic DTOs contribute only the
        fields that were explicitly set.

        Raises:
            NotFoundError: Re-raised from the repository when the entity does not exist.
            ConflictError: Re-raised from the repository on a unique key collision.
            InternalError: For any other failure.
        """
        try:
            data = _to_data(update_dto, partial=True)
            return await self._repository.update(self._where_id(id), data, include=include, select=select)
        except (NotFoundError, ConflictError):
            raise
        except Exception as exc:
            self._log_failure("update", exc, id=id)
            raise InternalError(f"Could not update {self.get_entity_name()} with ID {id}.") from exc

    async def delete(self, id: Any) -> ModelType:
        """
        Delete the entity with this identifier and return it.

        Raises:
            NotFoundError: Re-raised from the repository when the entity does not exist.
            InternalError: For any other failure.
        """
        try:
            return await self._repository.delete(self._where_id(id))
        except NotFoundError:
            raise
        except Exception as exc:
            self._log_failure("delete", exc, id=id)
            raise InternalError(f"Could not delete {self.get_entity_name()} with ID {id}.") from exc
