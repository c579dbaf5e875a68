"""
Pydantic schemas for account requests.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from rentalhub.utils.auth import MAX_PASSWORD_BYTES


class SignUpRequest(BaseModel):
    """Schema for registering a new account."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Asha Patil"])
    email: EmailStr = Field(..., examples=["asha@example.com"])
    password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        """bcrypt only reads the first 72 bytes of a password."""
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginRequest(BaseModel):
    """Schema for logging in."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()
