"""
Listing model for rental properties.
Stores listing details, the three image references and the owning host.
"""

from sqlalchemy import String, Text, Integer, Numeric, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from rentalhub.database import Base, TimestampMixin
from decimal import Decimal
import uuid
from typing import List


IMAGE_FIELDS = ("image1", "image2", "image3")


class Listing(TimestampMixin, Base):
    """
    Rental listing owned by exactly one host.
    `seq` is the insertion order and only breaks created_at ties.
    """

    __tablename__ = "listings"

    seq: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        default=uuid.uuid4,
        index=True
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Free text description"
    )

    rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Rent per period in local currency"
    )

    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    landmark: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    image1: Mapped[str] = mapped_column(String(500), nullable=False)
    image2: Mapped[str] = mapped_column(String(500), nullable=False)
    image3: Mapped[str] = mapped_column(String(500), nullable=False)

    host: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who owns this listing"
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title[:30]}, host={self.host})>"

    @property
    def images(self) -> List[str]:
        """The three attachment references in display order."""
        return [self.image1, self.image2, self.image3]


# Newest-first listing feed
listing_feed_index = Index(
    "idx_listings_created_seq",
    Listing.created_at.desc(),
    Listing.seq.desc()
)
