"""
Storage ports consumed by the listing and user services.
Services depend on these interfaces; the SQLAlchemy repositories implement them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set
import uuid

from rentalhub.models import Listing, User


class ListingStore(ABC):
    """Port for persisting and querying listings."""

    @abstractmethod
    async def create_listing(self, listing_data: Dict[str, Any]) -> Listing:
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: uuid.UUID) -> Optional[Listing]:
        ...

    @abstractmethod
    async def list_newest_first(self) -> List[Listing]:
        """All listings by created_at descending, most recently inserted first on ties."""
        ...

    @abstractmethod
    async def update_fields(self, listing_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[Listing]:
        ...

    @abstractmethod
    async def delete_listing(self, listing_id: uuid.UUID) -> bool:
        ...


class UserDirectory(ABC):
    """Port for reading users and maintaining their owned-listing sets."""

    @abstractmethod
    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        ...

    @abstractmethod
    async def get_owned_listing_ids(self, user_id: uuid.UUID) -> Set[uuid.UUID]:
        ...

    @abstractmethod
    async def attach_listing(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> None:
        """Add one listing to the user's owned set; safe under concurrent calls."""
        ...

    @abstractmethod
    async def detach_listing(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> None:
        ...
