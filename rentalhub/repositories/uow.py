"""
Unit of Work over an async SQLAlchemy session.

Repositories built on the same session only flush; the unit of work decides
whether all of their writes commit together or are rolled back together.

Usage:
    async with uow:
        listing = await listings.create_listing(data)
        await users.attach_listing(host_id, listing.id)
    # committed here, or rolled back if the block raised
"""

from sqlalchemy.ext.asyncio import AsyncSession
import logging

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Commit on clean exit, roll back on any exception (including cancellation)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.commit()
        else:
            logger.warning(f"Rolling back transaction after {exc_type.__name__}")
            await self.rollback()
        return False

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
