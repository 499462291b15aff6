"""
Database Session Management

Provides async database engine and session factory.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async version."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def create_engine_for_url(url: str) -> AsyncEngine:
    """Create an async engine with per-backend options."""
    async_url = _get_async_url(url)

    if async_url.startswith("sqlite"):
        return create_async_engine(
            async_url,
            connect_args={"check_same_thread": False}
        )
    elif async_url.startswith("postgresql"):
        # PostgreSQL with connection pool settings
        return create_async_engine(
            async_url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,  # 30 minutes
        )
    return create_async_engine(async_url)


async_engine = create_engine_for_url(settings.database_url)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


# =============================================================================
# Initialization
# =============================================================================

def _import_models() -> None:
    """Import all models so they register with Base.metadata."""
    from app.features.users import models as _users  # noqa
    from app.features.strava import models as _strava  # noqa
    from app.features.fitness import models as _fitness  # noqa


async def init_db(engine: AsyncEngine = async_engine) -> None:
    """Initialize database tables."""
    from app.models.base import Base
    _import_models()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
