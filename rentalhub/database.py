"""
Database connection and session management.
Handles async database operations with SQLAlchemy and connection pooling.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import text, DateTime
from sqlalchemy.pool import NullPool, StaticPool
from rentalhub.config import settings
from datetime import datetime, timezone
from typing import AsyncGenerator
import logging

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Timezone-aware current time used for record timestamps."""
    return datetime.now(timezone.utc)


def _engine_options() -> dict:
    """Pool settings differ between PostgreSQL and SQLite."""
    if settings.is_sqlite:
        # An in-memory database only lives as long as its single connection
        if ":memory:" in settings.database_url:
            return {"echo": settings.debug, "poolclass": StaticPool}
        return {"echo": settings.debug, "poolclass": NullPool}
    return {
        "echo": settings.debug,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_timeout": 30,
        "connect_args": {
            "server_settings": {
                "application_name": "rentalhub_api",
            }
        },
    }


engine = create_async_engine(settings.database_url, **_engine_options())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class TimestampMixin:
    """
    Common timestamp columns.
    Values are assigned in Python so ordering keeps sub-second precision on every backend.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.
    Yields an async database session and ensures it's closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """
    Test database connectivity.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            logger.info("Database connection successful")
            return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def create_tables():
    """Create all database tables."""
    # Import models so they are registered on the metadata
    from rentalhub import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")


async def close_db_connection():
    """
    Close database connection.
    This should be called during application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
