"""
Authentication services.
AuthGate verifies the session token before any state change; AccountService
handles sign-up and login.
"""

from typing import Optional
import logging
import uuid

from jose import JWTError
from sqlalchemy.exc import IntegrityError

from rentalhub.repositories.uow import UnitOfWork
from rentalhub.repositories.user import UserRepository
from rentalhub.schemas.auth import LoginRequest, SignUpRequest
from rentalhub.schemas.user import UserView
from rentalhub.services.result import ErrorKind, Result
from rentalhub.services.user import build_user_view
from rentalhub.utils.auth import TokenConfigurationError, create_access_token, verify_token

logger = logging.getLogger(__name__)


class AuthGate:
    """
    Identity-verification gate run before every mutating operation.

    `authenticate` never raises for a bad token: it returns an
    UNAUTHENTICATED failure, and the caller must stop there.
    """

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def authenticate(self, token: Optional[str]) -> Result[uuid.UUID]:
        """
        Verify a session token and return the subject user id.

        Failures:
            UNAUTHENTICATED: token missing, malformed, tampered with or expired
            INTERNAL: the verifier itself is misconfigured
        """
        if not token:
            return Result.failure(ErrorKind.UNAUTHENTICATED, "Authentication required")

        try:
            payload = verify_token(token, secret_key=self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            logger.debug(f"Rejected session token: {e}")
            return Result.failure(ErrorKind.UNAUTHENTICATED, "Invalid or expired session")
        except TokenConfigurationError as e:
            logger.error(f"Session token verifier misconfigured: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Token verification unavailable")
        except Exception as e:
            logger.error(f"Unexpected session token verifier error: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Token verification unavailable")

        return Result.success(payload.user_id)


class AccountService:
    """Sign-up and login for hosts."""

    def __init__(self, users: UserRepository, uow: UnitOfWork):
        self.users = users
        self.uow = uow

    def issue_token(self, user_id: uuid.UUID) -> str:
        """Create the session token stored in the session cookie."""
        return create_access_token(user_id)

    async def sign_up(self, data: SignUpRequest) -> Result[UserView]:
        """
        Register a new user.

        Failures:
            VALIDATION: invalid email or password
            CONFLICT: email already registered
        """
        try:
            async with self.uow:
                user = await self.users.create_user(data.model_dump())
        except ValueError as e:
            message = str(e)
            if "already exists" in message:
                return Result.failure(ErrorKind.CONFLICT, f"Email {data.email} is already registered")
            return Result.failure(ErrorKind.VALIDATION, message)
        except IntegrityError:
            # Concurrent sign-up with the same email
            return Result.failure(ErrorKind.CONFLICT, f"Email {data.email} is already registered")
        except Exception as e:
            logger.error(f"Failed to sign up {data.email}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to create account")

        logger.info(f"User signed up: {user.email} (ID: {user.id})")
        return Result.success(await build_user_view(self.users, user))

    async def login(self, data: LoginRequest) -> Result[UserView]:
        """
        Check credentials.

        Failures:
            UNAUTHENTICATED: unknown email or wrong password (same message for both)
        """
        try:
            user = await self.users.authenticate_user(data.email, data.password)
            if user is None:
                return Result.failure(ErrorKind.UNAUTHENTICATED, "Invalid email or password")
            view = await build_user_view(self.users, user)
        except Exception as e:
            logger.error(f"Login failed for {data.email}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Login failed")

        return Result.success(view)
