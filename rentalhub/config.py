"""
Configuration management using Pydantic settings.
Handles database URL, session token secrets, and upload storage settings.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application configuration
    app_name: str = "RentalHub API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/rentalhub"

    # Session token configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    session_cookie_name: str = "token"
    session_cookie_secure: bool = True
    session_cookie_samesite: str = "lax"

    # Image attachment storage
    upload_dir: str = "./uploads"
    media_url_prefix: str = "/uploads"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]
    attachment_timeout_seconds: float = 10.0
    attachment_max_retries: int = 1

    # API configuration
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("session_cookie_samesite")
    @classmethod
    def validate_samesite(cls, v):
        if v.lower() not in ("lax", "strict", "none"):
            raise ValueError("session_cookie_samesite must be lax, strict or none")
        return v.lower()

    @field_validator("attachment_max_retries")
    @classmethod
    def validate_max_retries(cls, v):
        """Attachment uploads are retried at most once."""
        if v < 0 or v > 1:
            raise ValueError("attachment_max_retries must be 0 or 1")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing" or self.testing

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
