"""
Utility modules for the RentalHub API.
"""

from .auth import (
    create_access_token,
    verify_token,
    hash_password,
    verify_password,
    TokenPayload,
    TokenConfigurationError
)

from .exceptions import (
    APIException,
    ErrorKind,
    ValidationError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "hash_password",
    "verify_password",
    "TokenPayload",
    "TokenConfigurationError",

    # Exceptions
    "APIException",
    "ErrorKind",
    "ValidationError",
]
