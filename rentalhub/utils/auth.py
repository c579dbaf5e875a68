"""
Authentication utilities for session token management and password hashing.
Provides JWT token generation, validation, and bcrypt password hashing.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from jose.exceptions import JOSEError
from passlib.context import CryptContext
from rentalhub.config import settings
import uuid


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SUPPORTED_ALGORITHMS = {"HS256", "HS384", "HS512"}

# bcrypt ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72


class TokenConfigurationError(Exception):
    """Raised when the verifier itself is misconfigured (not when a token is bad)."""


class TokenPayload:
    """Session token payload structure."""

    def __init__(self, user_id: uuid.UUID, exp: datetime):
        self.user_id = user_id
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        try:
            user_id = uuid.UUID(str(data["sub"]))
        except (KeyError, ValueError):
            raise JWTError("Invalid token subject")
        return cls(
            user_id=user_id,
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _check_signing_config(secret_key: str, algorithm: str) -> None:
    if not secret_key:
        raise TokenConfigurationError("Token signing secret is not configured")
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise TokenConfigurationError(f"Unsupported token algorithm: {algorithm}")


def create_access_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None
) -> str:
    """
    Create a signed session token for a user.

    Args:
        user_id: User's UUID, stored as the subject claim
        expires_delta: Optional custom expiration time
        secret_key: Override for the configured signing secret
        algorithm: Override for the configured algorithm

    Returns:
        Encoded JWT token string
    """
    secret_key = settings.jwt_secret_key if secret_key is None else secret_key
    algorithm = algorithm or settings.jwt_algorithm
    _check_signing_config(secret_key, algorithm)

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def verify_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None
) -> TokenPayload:
    """
    Verify signature, expiry and type of a session token.

    Args:
        token: JWT token string
        secret_key: Override for the configured signing secret
        algorithm: Override for the configured algorithm

    Returns:
        TokenPayload for a valid token

    Raises:
        JWTError: If the token is malformed, tampered with or expired
        TokenConfigurationError: If the verifier cannot run with the current configuration
    """
    secret_key = settings.jwt_secret_key if secret_key is None else secret_key
    algorithm = algorithm or settings.jwt_algorithm
    _check_signing_config(secret_key, algorithm)

    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        raise
    except JOSEError as e:
        raise TokenConfigurationError(f"Token verifier failed: {e}")

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    if "exp" not in payload:
        raise JWTError("Token has no expiry")

    return TokenPayload.from_dict(payload)


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Raises:
        ValueError: If password is too short or longer than bcrypt reads
    """
    if not password or len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)
