"""
Business logic services for the RentalHub API.
"""

from .result import ErrorKind, Result, ServiceError
from .auth import AuthGate, AccountService
from .user import UserService
from .listing import ListingService
from .attachments import ImageAttachmentResolver, LocalAttachmentStore

__all__ = [
    "ErrorKind",
    "Result",
    "ServiceError",
    "AuthGate",
    "AccountService",
    "UserService",
    "ListingService",
    "ImageAttachmentResolver",
    "LocalAttachmentStore",
]
