"""
Pydantic schemas for request/response validation.
"""

from .auth import SignUpRequest, LoginRequest
from .user import UserView
from .listing import ListingFields, ListingUpdate, ImageUpload, ListingView

__all__ = [
    "SignUpRequest",
    "LoginRequest",
    "UserView",
    "ListingFields",
    "ListingUpdate",
    "ImageUpload",
    "ListingView",
]
