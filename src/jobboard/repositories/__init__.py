"""
Repository layer initialization module.

This module exports the repository classes and the delegate protocol they wrap.

Usage:
    from jobboard.repositories import UserRepository, SQLAlchemyDelegate
"""

from .delegate import ModelDelegate
from .base_repository import BaseRepository
from .sqlalchemy_delegate import SQLAlchemyDelegate
from .user_repository import UserRepository

__all__ = [
    "ModelDelegate",
    "BaseRepository",
    "SQLAlchemyDelegate",
    "UserRepository",
]
