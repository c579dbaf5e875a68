"""
Pydantic schemas for user responses.
The credential hash is never part of any user schema.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List
from datetime import datetime
import uuid


class UserView(BaseModel):
    """Current user as returned to clients, without the password credential."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    owned_listing_ids: List[uuid.UUID] = Field(default_factory=list)
    owned_booking_ids: List[str] = Field(default_factory=list)
    created_at: datetime
