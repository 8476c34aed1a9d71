"""
Process-wide wiring: one engine, one session factory, and one repository and
service per entity, built lazily on first use.

The getters double as FastAPI dependencies (`Depends(get_user_service)`) and can
be swapped in tests with `app.dependency_overrides`.
"""
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jobboard.db.session import create_engine, create_session_factory
from jobboard.repositories.user_repository import UserRepository
from jobboard.services.user_service import UserService


@lru_cache()
def get_engine() -> AsyncEngine:
    return create_engine()


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_engine())


@lru_cache()
def get_user_repository() -> UserRepository:
    return UserRepository(get_session_factory())


@lru_cache()
def get_user_service() -> UserService:
    return UserService(get_user_repository())


async def dispose_engine() -> None:
    """Close pooled connections; call on application shutdown."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
