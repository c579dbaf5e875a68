"""
Test configuration and fixtures for the RentalHub API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the test environment must be in place first
_TEST_ROOT = tempfile.mkdtemp(prefix="rentalhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/rentalhub_test.db"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["JWT_SECRET_KEY"] = "rentalhub-test-secret-key-0123456789abcdef"

import io
import uuid
from pathlib import Path
from typing import AsyncGenerator, Dict, List, Optional, Set

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from rentalhub.config import settings
from rentalhub.database import Base, get_db
from rentalhub.main import app
from rentalhub.models import Listing, User, UserListing
from rentalhub.repositories import ListingRepository, UserRepository
from rentalhub.schemas.listing import ImageUpload, ListingFields
from rentalhub.services.attachments import LocalAttachmentStore
from rentalhub.utils.auth import create_access_token
from rentalhub.utils.dependencies import get_attachment_resolver


# Every checkout opens a fresh connection, so no connection outlives a test's event loop
test_engine = create_async_engine(settings.database_url, echo=False, poolclass=NullPool)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture
async def setup_test_database():
    """Recreate the schema for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
async def db_session(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def attachment_store(upload_dir: Path) -> LocalAttachmentStore:
    """Attachment store writing into a per-test directory."""
    return LocalAttachmentStore(upload_dir=upload_dir, timeout=2.0, max_retries=1)


@pytest.fixture
async def client(setup_test_database, attachment_store) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client.
    Each request gets its own session, like a real deployment.
    """
    async def override_get_db():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_resolver] = lambda: attachment_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test Host"
    ) -> dict:
        """Create user data dictionary."""
        return {
            "name": name,
            "email": email or f"host{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
        }

    @staticmethod
    async def create_user(
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test Host"
    ) -> User:
        """Create and commit a test user in its own session."""
        async with TestSessionLocal() as session:
            user = await UserRepository(session).create_user(
                UserFactory.create_user_data(email=email, password=password, name=name)
            )
            await session.commit()
            return user


class ListingFactory:
    """Factory for creating listing fields and uploads."""

    @staticmethod
    def create_listing_form(
        title: str = "Flat",
        description: str = "Two bedroom flat close to the station",
        rent: str = "1200",
        city: str = "Pune",
        landmark: str = "Near Station",
        category: str = "Apartment"
    ) -> Dict[str, str]:
        """Form fields for POST /listing."""
        return {
            "title": title,
            "description": description,
            "rent": rent,
            "city": city,
            "landmark": landmark,
            "category": category,
        }

    @staticmethod
    def create_listing_fields(**overrides) -> ListingFields:
        return ListingFields(**ListingFactory.create_listing_form(**overrides))

    @staticmethod
    def create_image_bytes(image_format: str = "PNG", color=(200, 80, 40)) -> bytes:
        """A small real image in the given format."""
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), color).save(buffer, format=image_format)
        return buffer.getvalue()

    @staticmethod
    def create_image_upload(filename: str = "room.png", content: bytes = None) -> ImageUpload:
        return ImageUpload(
            filename=filename,
            content_type="image/png",
            content=content or ListingFactory.create_image_bytes()
        )

    @staticmethod
    def create_image_files(count: int = 3) -> Dict[str, tuple]:
        """Multipart files for image1..imageN."""
        return {
            f"image{i}": (f"room{i}.png", ListingFactory.create_image_bytes(color=(i * 40, 80, 40)), "image/png")
            for i in range(1, count + 1)
        }


def session_headers(user_id: uuid.UUID, **token_options) -> Dict[str, str]:
    """Request headers carrying a session cookie for the given user."""
    token = create_access_token(user_id, **token_options)
    return {"Cookie": f"{settings.session_cookie_name}={token}"}


def stored_files(upload_dir: Path) -> List[Path]:
    """Attachment files currently on disk."""
    listing_dir = upload_dir / "listings"
    if not listing_dir.exists():
        return []
    return sorted(p for p in listing_dir.iterdir() if p.is_file())


async def count_listings() -> int:
    async with TestSessionLocal() as session:
        result = await session.execute(select(func.count()).select_from(Listing))
        return result.scalar_one()


async def fetch_listing(listing_id: uuid.UUID) -> Optional[Listing]:
    async with TestSessionLocal() as session:
        result = await session.execute(select(Listing).where(Listing.id == listing_id))
        return result.scalar_one_or_none()


async def owned_listing_ids(user_id: uuid.UUID) -> Set[uuid.UUID]:
    async with TestSessionLocal() as session:
        result = await session.execute(
            select(UserListing.listing_id).where(UserListing.user_id == user_id)
        )
        return set(result.scalars().all())


@pytest.fixture
async def test_host(setup_test_database) -> User:
    return await UserFactory.create_user(email="host@example.com", name="Asha Host")


@pytest.fixture
async def other_host(setup_test_database) -> User:
    return await UserFactory.create_user(email="other@example.com", name="Ravi Other")


@pytest.fixture
async def test_listing(client: AsyncClient, test_host: User) -> dict:
    """A listing created through the API by test_host."""
    response = await client.post(
        "/listing",
        data=ListingFactory.create_listing_form(),
        files=ListingFactory.create_image_files(),
        headers=session_headers(test_host.id)
    )
    assert response.status_code == 201, response.text
    return response.json()
