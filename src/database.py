"""
Database configuration and session management for the local backend.

Provides:
- Async engine and AsyncSessionLocal factory
- Database initialization utilities

The local record store, blob store and auth provider all use these async
sessions. Alembic migrations use their own synchronous engine.
"""

import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.is_production:
    settings.validate_production_config()


def get_async_database_url(sync_url: str) -> str:
    """Convert sync database URL to async URL."""
    if sync_url.startswith("sqlite:///"):
        # SQLite async uses aiosqlite
        return sync_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    elif sync_url.startswith("postgresql://"):
        # PostgreSQL async uses asyncpg
        return sync_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return sync_url


def _sqlite_path(url: str) -> Path | None:
    """File path of a SQLite URL, or None for in-memory/other databases."""
    if not url.startswith("sqlite:///") or ":memory:" in url:
        return None
    return Path(url[len("sqlite:///"):])


async_database_url = get_async_database_url(settings.database_url)

if "sqlite" in settings.database_url.lower():
    async_engine = create_async_engine(
        async_database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Single-file database
        echo=settings.log_level == "DEBUG",
    )
else:
    async_engine = create_async_engine(
        async_database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


async def init_db() -> None:
    """
    Create all tables.

    Useful for development and tests. In production, use Alembic migrations.
    """
    from src.models.base import Base

    db_path = _sqlite_path(settings.database_url)
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Creating database tables...")
    async with async_engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")

