"""
API route handlers for the RentalHub API.
"""

from .auth import router as auth_router
from .listing import router as listing_router
from .user import router as user_router

__all__ = ["auth_router", "listing_router", "user_router"]
