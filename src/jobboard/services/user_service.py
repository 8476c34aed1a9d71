import logging

from jobboard.models.user import User
from jobboard.repositories.user_repository import UserRepository
from jobboard.schemas.user import UserCreate, UserUpdate, normalize_email
from .base_service import BaseService, EntityName

USER_ENTITY = EntityName("user", "users")


class UserService(BaseService[User, UserCreate, UserUpdate]):
    """User business operations. Error messages read "user" / "users"."""

    def __init__(self, repository: UserRepository, *,
                 logger: logging.Logger | logging.LoggerAdapter | None = None):
        super().__init__(repository, USER_ENTITY, id_field="id", logger=logger)

    async def find_by_email(self, email: str) -> User | None:
        return await self.find_unique({"email": normalize_email(email)})
