"""
User repository.

Binds the generic BaseRepository to a SQLAlchemy delegate for the `users` table
and adds the user-specific lookups (by email, by auth-provider id).
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobboard.models.user import User
from jobboard.schemas.user import normalize_email
from .base_repository import BaseRepository
from .sqlalchemy_delegate import SQLAlchemyDelegate


class UserRepository(BaseRepository[User, SQLAlchemyDelegate[User]]):
    """
    Repository for User entity operations.

    All CRUD operations and error normalization come from `BaseRepository`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *,
                 logger: logging.Logger | logging.LoggerAdapter | None = None):
        super().__init__(SQLAlchemyDelegate(User, session_factory), logger=logger)

    async def find_by_email(self, email: str) -> User | None:
        """
        Find a user by email address. Emails are compared lowercased and stripped,
        the same normalization the user DTOs apply.
        """
        return await self.find_unique({"email": normalize_email(email)})

    async def find_by_external_auth_id(self, external_auth_id: str) -> User | None:
        """Find the user linked to an auth-provider subject id."""
        return await self.find_unique({"external_auth_id": external_auth_id})
