"""
User model and the owned-listing association.
Handles user accounts for hosts and the set of listings each user owns.
"""

from sqlalchemy import String, JSON, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from rentalhub.database import Base, TimestampMixin
from rentalhub.utils.auth import hash_password, verify_password
from email_validator import validate_email, EmailNotValidError
import uuid
from typing import List


class User(TimestampMixin, Base):
    """
    User model for authentication and listing ownership.
    The owned-listing set lives in the user_listings table.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    booking_ids: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ids of bookings made by this user"
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    def set_password(self, password: str) -> None:
        self.hashed_password = hash_password(password)

    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return verify_password(password, self.hashed_password)


class UserListing(Base):
    """
    One entry of a user's owned-listing set.
    The composite primary key makes attaching the same listing twice impossible.
    """

    __tablename__ = "user_listings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )

    def __repr__(self) -> str:
        return f"<UserListing(user_id={self.user_id}, listing_id={self.listing_id})>"
