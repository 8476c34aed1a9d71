"""
Core pytest configuration for the entire test suite.

This module provides only the essential database setup and core utilities
that are needed across ALL types of tests (repositories, services, API, logging).

Domain-specific fixtures are located in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/service_fixtures.py
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Set the level for noisy third-party loggers at import time (before importing modules that
# might initialize them). Keep this block at the very top.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from jobboard.db.base import Base
from jobboard.db.session import create_session_factory
from jobboard.models import User  # noqa: F401 - import to register models with Base.metadata
from jobboard.config import get_settings
from jobboard.core.logging.builder import setup_logging

# -------------------------------
# Load settings
# -------------------------------
settings = get_settings()

# One in-memory database per test. StaticPool hands every session the same
# connection, otherwise each new connection would see an empty database.
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install application logging for the entire test session, so the JSON/color
    formatters and the request-id/redact filters are active exactly as in the app.
    """
    setup_logging(settings)
    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # teardown
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    The same factory the application hands to model delegates.

    Delegates open and commit their own sessions, so isolation comes from the
    per-test in-memory database rather than a rolled-back outer transaction.
    """
    return create_session_factory(async_engine)


# Repository / service test fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    repo_logger,
    user_repository,
    sample_user_data,
    create_user,
    created_user,
    multiple_users,
)
from .test_fixtures.service_fixtures import (  # noqa: E402
    service_logger,
    user_service,
)
