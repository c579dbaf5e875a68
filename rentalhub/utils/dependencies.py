"""
FastAPI dependency injection utilities for authentication and services.
Every mutating route depends on `require_identity`, which runs the AuthGate
before the route body.
"""

from typing import Optional
import uuid
from fastapi import Depends, Request
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession
from rentalhub.config import settings
from rentalhub.database import get_db
from rentalhub.repositories import ListingRepository, UserRepository, UnitOfWork
from rentalhub.services.auth import AuthGate, AccountService
from rentalhub.services.attachments import ImageAttachmentResolver, LocalAttachmentStore
from rentalhub.services.listing import ListingService
from rentalhub.services.user import UserService


# Session token cookie; a missing cookie is reported by the gate, not here
session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)


def get_auth_gate() -> AuthGate:
    return AuthGate()


def get_attachment_resolver() -> ImageAttachmentResolver:
    return LocalAttachmentStore()


async def get_listing_service(
    db: AsyncSession = Depends(get_db),
    attachments: ImageAttachmentResolver = Depends(get_attachment_resolver)
) -> ListingService:
    """
    Get listing service instance.
    Both stores share the request's session so the unit of work covers them.
    """
    return ListingService(
        listings=ListingRepository(db),
        users=UserRepository(db),
        attachments=attachments,
        uow=UnitOfWork(db)
    )


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db))


async def get_account_service(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(UserRepository(db), UnitOfWork(db))


async def require_identity(
    request: Request,
    token: Optional[str] = Depends(session_cookie),
    gate: AuthGate = Depends(get_auth_gate)
) -> uuid.UUID:
    """
    Verify the session cookie and return the caller's user id.

    Raises:
        APIException (UNAUTHENTICATED): If the token is missing, invalid or expired
        APIException (INTERNAL): If the verifier is misconfigured

    The raise happens while dependencies are being solved, so the route
    handler is never entered for a rejected request.
    """
    user_id = gate.authenticate(token).unwrap()
    request.state.user_id = user_id
    return user_id
