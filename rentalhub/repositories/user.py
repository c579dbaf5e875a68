"""
User repository for account lookups and owned-listing set maintenance.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite
from rentalhub.repositories.base import BaseRepository
from rentalhub.repositories.interfaces import UserDirectory
from rentalhub.models.user import User, UserListing
from typing import Optional, Dict, Any, Set
import uuid
import logging

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserRepository(BaseRepository[User], UserDirectory):
    """
    Repository for users and their owned-listing sets.
    The owned set is one row per (user, listing) pair, so adding to it is a
    single insert and never a read-modify-write of a shared value.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include name, email and password

        Returns:
            Created user instance (not yet committed)

        Raises:
            ValueError: If validation fails or the email is taken
        """
        email = User.validate_email_format(user_data["email"])

        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        user = User(name=user_data["name"], email=email, booking_ids=[])
        user.set_password(user_data["password"])
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"Created user: {user.email} (ID: {user.id})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address, or None."""
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User).where(User.email == normalized_email))
        user = result.scalar_one_or_none()

        if not user:
            logger.debug(f"User with email {email} not found")

        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def get_owned_listing_ids(self, user_id: uuid.UUID) -> Set[uuid.UUID]:
        result = await self.db.execute(
            select(UserListing.listing_id).where(UserListing.user_id == user_id)
        )
        return set(result.scalars().all())

    async def attach_listing(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> None:
        """
        Add a listing to the user's owned set.
        An already present pair is left untouched.
        """
        dialect = self.db.get_bind().dialect.name
        insert_fn = _DIALECT_INSERTS.get(dialect)

        if insert_fn is not None:
            stmt = insert_fn(UserListing).values(
                user_id=user_id, listing_id=listing_id
            ).on_conflict_do_nothing()
            await self.db.execute(stmt)
        else:
            # Other backends: the composite primary key still rejects duplicates
            self.db.add(UserListing(user_id=user_id, listing_id=listing_id))
            await self.db.flush()

        logger.debug(f"Attached listing {listing_id} to user {user_id}")

    async def detach_listing(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> None:
        await self.db.execute(
            delete(UserListing).where(
                UserListing.user_id == user_id,
                UserListing.listing_id == listing_id
            )
        )
        logger.debug(f"Detached listing {listing_id} from user {user_id}")
