"""
Listing repository for creating, reading, updating and deleting listings.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from rentalhub.repositories.base import BaseRepository
from rentalhub.repositories.interfaces import ListingStore
from rentalhub.models.listing import Listing
from rentalhub.database import utcnow
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset({
    "title", "description", "rent", "city", "landmark", "category",
    "image1", "image2", "image3",
})


class ListingRepository(BaseRepository[Listing], ListingStore):
    """Repository for listing records."""

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def create_listing(self, listing_data: Dict[str, Any]) -> Listing:
        """
        Stage a new listing.
        `id` and `created_at` are always assigned here, never taken from the caller.
        """
        data = {k: v for k, v in listing_data.items() if k not in ("id", "seq", "created_at", "updated_at")}
        now = utcnow()
        data.update(id=uuid.uuid4(), created_at=now, updated_at=now)

        listing = await self.add(data)
        logger.info(f"Staged listing {listing.id} for host {listing.host}")
        return listing

    async def list_newest_first(self) -> List[Listing]:
        query = select(Listing).order_by(Listing.created_at.desc(), Listing.seq.desc())
        result = await self.db.execute(query)
        listings = list(result.scalars().all())
        logger.debug(f"Retrieved {len(listings)} listings")
        return listings

    async def update_fields(self, listing_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[Listing]:
        """
        Apply mutable field changes in a single UPDATE statement.
        Immutable columns in `changes` are ignored.

        Returns:
            The refreshed listing, or None if it does not exist
        """
        values = {k: v for k, v in changes.items() if k in MUTABLE_FIELDS}

        if values:
            values["updated_at"] = utcnow()
            stmt = update(Listing).where(Listing.id == listing_id).values(**values)
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                logger.debug(f"Listing {listing_id} not found for update")
                return None

        listing = await self.get_by_id(listing_id)
        if listing is not None:
            await self.db.refresh(listing)
        return listing

    async def delete_listing(self, listing_id: uuid.UUID) -> bool:
        result = await self.db.execute(delete(Listing).where(Listing.id == listing_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted listing {listing_id}")
        return deleted
