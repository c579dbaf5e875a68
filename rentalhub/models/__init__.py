"""
Database models for the RentalHub API.
"""

from rentalhub.models.user import User, UserListing
from rentalhub.models.listing import Listing, IMAGE_FIELDS

__all__ = [
    "User",
    "UserListing",
    "Listing",
    "IMAGE_FIELDS",
]
