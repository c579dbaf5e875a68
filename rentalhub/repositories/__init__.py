"""
Repository layer for data access operations.
"""

from .base import BaseRepository
from .interfaces import ListingStore, UserDirectory
from .user import UserRepository
from .listing import ListingRepository
from .uow import UnitOfWork

__all__ = [
    "BaseRepository",
    "ListingStore",
    "UserDirectory",
    "UserRepository",
    "ListingRepository",
    "UnitOfWork",
]
