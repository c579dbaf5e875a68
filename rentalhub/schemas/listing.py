"""
Pydantic schemas for listing requests and responses.
Handles listing creation fields, partial updates, uploaded images and the listing view.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal
import uuid


MAX_RENT = Decimal("99999999.99")


def _clean_text(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} cannot be empty")
    return value


class ListingFields(BaseModel):
    """Fields supplied when a host adds a listing."""

    title: str = Field(..., max_length=255, description="Listing title", examples=["Flat"])
    description: str = Field("", max_length=5000, description="Listing description")
    rent: Decimal = Field(..., gt=0, decimal_places=2, description="Rent in local currency", examples=[1200])
    city: str = Field(..., max_length=100, description="City", examples=["Pune"])
    landmark: str = Field(..., max_length=255, description="Nearby landmark")
    category: str = Field(..., max_length=100, description="Property category", examples=["Apartment"])

    @field_validator("title", "city", "landmark", "category")
    @classmethod
    def validate_required_text(cls, v, info):
        """Required text fields must not be blank."""
        return _clean_text(v, info.field_name.capitalize())

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        return (v or "").strip()

    @field_validator("rent")
    @classmethod
    def validate_rent(cls, v):
        """Validate rent value."""
        if v > MAX_RENT:
            raise ValueError("Rent exceeds maximum allowed value")
        return v


class ListingUpdate(BaseModel):
    """Partial update of a listing's mutable text and price fields."""

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    rent: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    city: Optional[str] = Field(None, max_length=100)
    landmark: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("title", "city", "landmark", "category")
    @classmethod
    def validate_optional_text(cls, v, info):
        return _clean_text(v, info.field_name.capitalize())

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        return v.strip() if v is not None else v

    @field_validator("rent")
    @classmethod
    def validate_rent(cls, v):
        if v is not None and v > MAX_RENT:
            raise ValueError("Rent exceeds maximum allowed value")
        return v

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


class ImageUpload(BaseModel):
    """Raw image bytes received from the client, before resolution."""

    filename: str
    content_type: Optional[str] = None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class ListingView(BaseModel):
    """Listing as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    rent: float
    city: str
    landmark: str
    category: str
    image1: str
    image2: str
    image3: str
    host: uuid.UUID
    created_at: datetime
    updated_at: datetime

    @field_validator("rent", mode="before")
    @classmethod
    def rent_as_float(cls, v):
        return float(v) if isinstance(v, Decimal) else v
