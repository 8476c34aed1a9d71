from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from jobboard.config import Settings, get_settings


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Build the AsyncEngine from settings (defaults to the cached app settings)."""
    settings = settings or get_settings()
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,   # Set to False in production
        pool_pre_ping=True,              # Enables connection health checks
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory handed to model delegates.

    expire_on_commit=False keeps returned records readable after the delegate's
    transaction has committed and the session is closed.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
