"""
Database configuration and session management.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from servicedesk.core.config import settings


def async_database_url(raw_dsn: str) -> str:
    """Return a URL that selects an async driver for the configured database."""
    if raw_dsn.startswith("postgresql://"):
        return raw_dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
    if raw_dsn.startswith("postgres://"):
        return raw_dsn.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_dsn.startswith("sqlite://"):
        return raw_dsn.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return raw_dsn


DATABASE_URL = async_database_url(str(settings.DATABASE_URL))

_engine_kwargs = {
    "echo": settings.DB_ECHO,
    "pool_pre_ping": True,
}
if settings.ENVIRONMENT == "test":
    _engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(DATABASE_URL, **_engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Create tables that are not managed by a migration yet."""
    # Ensure models are imported so metadata is populated.
    import servicedesk.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Release every pooled connection held by the shared engine."""
    await engine.dispose()
