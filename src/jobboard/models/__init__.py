"""
Centralized access to all database models.

    from jobboard.models import User
"""

from .user import User

__all__ = [
    "User",
]
