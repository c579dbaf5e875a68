"""
User service for reading the current user.
"""

import logging
import uuid

from rentalhub.models.user import User
from rentalhub.repositories.interfaces import UserDirectory
from rentalhub.schemas.user import UserView
from rentalhub.services.result import ErrorKind, Result

logger = logging.getLogger(__name__)


async def build_user_view(users: UserDirectory, user: User) -> UserView:
    """Assemble the public view of a user. The password hash is not copied."""
    owned = await users.get_owned_listing_ids(user.id)
    return UserView(
        id=user.id,
        name=user.name,
        email=user.email,
        owned_listing_ids=sorted(owned, key=str),
        owned_booking_ids=list(user.booking_ids or []),
        created_at=user.created_at,
    )


class UserService:
    """Read access to user records through the user directory."""

    def __init__(self, users: UserDirectory):
        self.users = users

    async def get_current_user(self, user_id: uuid.UUID) -> Result[UserView]:
        """
        Get a user without the password credential.

        Failures:
            NOT_FOUND: no user with this id
            INTERNAL: storage failure
        """
        try:
            user = await self.users.get_by_id(user_id)
            if user is None:
                return Result.not_found("User", user_id)
            view = await build_user_view(self.users, user)
        except Exception as e:
            logger.error(f"Failed to get user {user_id}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to retrieve user")

        logger.debug(f"Retrieved current user {user_id}")
        return Result.success(view)
