from .base_service import BaseService, EntityName
from .user_service import UserService

__all__ = ["BaseService", "EntityName", "UserService"]
