"""
Tests for the listing and user services.
Focus on atomicity of the listing write and owned-set update, and on
compensating image attachments when an operation does not complete.
"""

import asyncio
import uuid
from typing import List, Optional
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentalhub.models import Listing, User
from rentalhub.repositories import ListingRepository, UnitOfWork, UserRepository
from rentalhub.schemas.listing import ImageUpload, ListingUpdate
from rentalhub.services.attachments import AttachmentError, ImageAttachmentResolver
from rentalhub.services.listing import ListingService
from rentalhub.services.result import ErrorKind
from rentalhub.services.user import UserService
from rentalhub.utils.exceptions import ValidationError
from tests.conftest import ListingFactory, TestSessionLocal, UserFactory


class RecordingResolver(ImageAttachmentResolver):
    """In-memory resolver that records what it stored and discarded."""

    def __init__(self, fail_on: Optional[str] = None, error: Optional[Exception] = None, hang_on: Optional[str] = None):
        self.fail_on = fail_on
        self.error = error
        self.hang_on = hang_on
        self.stored: List[str] = []
        self.discarded: List[str] = []

    async def resolve(self, image: ImageUpload) -> str:
        if image.filename == self.hang_on:
            await asyncio.Event().wait()
        if image.filename == self.fail_on:
            raise self.error
        reference = f"/uploads/listings/{uuid.uuid4()}-{image.filename}"
        self.stored.append(reference)
        return reference

    async def discard(self, reference: str) -> None:
        self.discarded.append(reference)

    @property
    def live(self) -> List[str]:
        return [r for r in self.stored if r not in self.discarded]


def make_images(*names: str) -> List[ImageUpload]:
    return [ListingFactory.create_image_upload(filename=name) for name in names]


async def count_rows(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.fixture
async def host(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(email="service-host@example.com")


@pytest.fixture
def resolver() -> RecordingResolver:
    return RecordingResolver()


def build_service(db: AsyncSession, resolver: ImageAttachmentResolver) -> ListingService:
    return ListingService(
        listings=ListingRepository(db),
        users=UserRepository(db),
        attachments=resolver,
        uow=UnitOfWork(db)
    )


class TestAddListing:
    """Test ListingService.add_listing."""

    @pytest.mark.asyncio
    async def test_listing_and_owned_set_written_together(self, db_session, host, resolver):
        service = build_service(db_session, resolver)

        result = await service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )

        assert result.ok
        listing = result.value
        assert listing.host == host.id
        assert [listing.image1, listing.image2, listing.image3] == resolver.stored
        owned = await UserRepository(db_session).get_owned_listing_ids(host.id)
        assert owned == {listing.id}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 2, 4])
    async def test_wrong_image_count(self, db_session, host, resolver, count):
        service = build_service(db_session, resolver)
        images = make_images(*[f"{i}.png" for i in range(count)])

        result = await service.add_listing(host.id, ListingFactory.create_listing_fields(), images)

        assert result.kind == ErrorKind.VALIDATION
        assert resolver.stored == []
        assert await count_rows(db_session, Listing) == 0

    @pytest.mark.asyncio
    async def test_store_failure_discards_resolved_images(self, db_session, host):
        """One failed upload leaves no stored images and no listing."""
        resolver = RecordingResolver(fail_on="b.png", error=AttachmentError("store unavailable"))
        service = build_service(db_session, resolver)

        result = await service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )

        assert result.kind == ErrorKind.INTERNAL
        assert result.error.message == "Failed to store listing images"
        assert len(resolver.stored) == 2
        assert resolver.live == []
        assert await count_rows(db_session, Listing) == 0

    @pytest.mark.asyncio
    async def test_invalid_image_is_validation_failure(self, db_session, host):
        resolver = RecordingResolver(fail_on="c.png", error=ValidationError("Invalid image file"))
        service = build_service(db_session, resolver)

        result = await service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )

        assert result.kind == ErrorKind.VALIDATION
        assert result.error.message == "Invalid image file"
        assert resolver.live == []

    @pytest.mark.asyncio
    async def test_owned_set_failure_rolls_back_listing(self, db_session, host, resolver):
        """If the owned-set update fails, the listing row is rolled back too."""
        service = build_service(db_session, resolver)

        with patch.object(service.users, "attach_listing", AsyncMock(side_effect=RuntimeError("lost connection"))):
            result = await service.add_listing(
                host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
            )

        assert result.kind == ErrorKind.INTERNAL
        assert result.error.message == "Failed to create listing"
        assert await count_rows(db_session, Listing) == 0
        assert resolver.live == []

    @pytest.mark.asyncio
    async def test_unknown_host(self, db_session, resolver):
        service = build_service(db_session, resolver)
        missing = uuid.uuid4()

        result = await service.add_listing(
            missing, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )

        assert result.kind == ErrorKind.NOT_FOUND
        assert result.error.message == f"User not found with ID: {missing}"
        assert await count_rows(db_session, Listing) == 0
        assert resolver.live == []

    @pytest.mark.asyncio
    async def test_cancellation_discards_resolved_images(self, db_session, host):
        resolver = RecordingResolver(hang_on="c.png")
        service = build_service(db_session, resolver)

        task = asyncio.ensure_future(service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        ))
        for _ in range(20):
            await asyncio.sleep(0)
            if len(resolver.stored) == 2:
                break
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(resolver.stored) == 2
        assert resolver.live == []
        assert await count_rows(db_session, Listing) == 0

    @pytest.mark.asyncio
    async def test_adds_on_separate_sessions_keep_every_listing(self, setup_test_database, host):
        """Adds for the same host through separate sessions all land in the owned set."""
        async def add_one(title: str):
            async with TestSessionLocal() as session:
                service = build_service(session, RecordingResolver())
                return await service.add_listing(
                    host.id,
                    ListingFactory.create_listing_fields(title=title),
                    make_images("a.png", "b.png", "c.png")
                )

        results = []
        for title in ("One", "Two", "Three"):
            results.append(await add_one(title))

        assert all(r.ok for r in results)
        async with TestSessionLocal() as session:
            owned = await UserRepository(session).get_owned_listing_ids(host.id)
        assert owned == {r.value.id for r in results}


class TestUpdateListing:
    """Test ListingService.update_listing."""

    @pytest.fixture
    async def listing(self, db_session, host, resolver):
        service = build_service(db_session, resolver)
        result = await service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )
        return result.value

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, host, resolver, listing):
        service = build_service(db_session, resolver)

        result = await service.update_listing(host.id, listing.id, ListingUpdate(rent="1750.50"))

        assert result.ok
        assert result.value.rent == 1750.5
        assert result.value.title == listing.title
        assert result.value.created_at == listing.created_at

    @pytest.mark.asyncio
    async def test_non_host_is_forbidden_before_any_upload(self, db_session, resolver, listing):
        stranger = await UserFactory.create_user(email="stranger@example.com")
        service = build_service(db_session, resolver)
        stored_before = list(resolver.stored)

        result = await service.update_listing(
            stranger.id, listing.id, ListingUpdate(title="Taken"),
            {"image1": ListingFactory.create_image_upload("x.png")}
        )

        assert result.kind == ErrorKind.FORBIDDEN
        assert resolver.stored == stored_before
        unchanged = await ListingRepository(db_session).get_by_id(listing.id)
        assert unchanged.title == listing.title

    @pytest.mark.asyncio
    async def test_image_replacement_discards_old_after_commit(self, db_session, host, resolver, listing):
        service = build_service(db_session, resolver)

        result = await service.update_listing(
            host.id, listing.id, ListingUpdate(),
            {"image3": ListingFactory.create_image_upload("new.png")}
        )

        assert result.ok
        assert result.value.image3 != listing.image3
        assert resolver.discarded == [listing.image3]
        assert result.value.image3 in resolver.live

    @pytest.mark.asyncio
    async def test_failed_write_keeps_old_images(self, db_session, host, resolver, listing):
        service = build_service(db_session, resolver)

        with patch.object(service.listings, "update_fields", AsyncMock(side_effect=RuntimeError("disk full"))):
            result = await service.update_listing(
                host.id, listing.id, ListingUpdate(title="New"),
                {"image1": ListingFactory.create_image_upload("new.png")}
            )

        assert result.kind == ErrorKind.INTERNAL
        new_reference = resolver.stored[-1]
        assert resolver.discarded == [new_reference]
        assert listing.image1 in resolver.live

    @pytest.mark.asyncio
    async def test_unknown_image_slot(self, db_session, host, resolver, listing):
        service = build_service(db_session, resolver)

        result = await service.update_listing(
            host.id, listing.id, ListingUpdate(),
            {"image4": ListingFactory.create_image_upload("x.png")}
        )

        assert result.kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_missing_listing(self, db_session, host, resolver):
        service = build_service(db_session, resolver)

        result = await service.update_listing(host.id, uuid.uuid4(), ListingUpdate(title="x"))

        assert result.kind == ErrorKind.NOT_FOUND


class TestDeleteListing:
    """Test ListingService.delete_listing."""

    @pytest.mark.asyncio
    async def test_delete_retracts_owned_entry(self, db_session, host, resolver):
        service = build_service(db_session, resolver)
        listing = (await service.add_listing(
            host.id, ListingFactory.create_listing_fields(), make_images("a.png", "b.png", "c.png")
        )).value

        result = await service.delete_listing(host.id, listing.id)

        assert result.ok
        assert await ListingRepository(db_session).get_by_id(listing.id) is None
        assert await UserRepository(db_session).get_owned_listing_ids(host.id) == set()
        assert sorted(resolver.discarded) == sorted(resolver.stored)


class TestUserService:
    """Test UserService.get_current_user."""

    @pytest.mark.asyncio
    async def test_current_user_view(self, db_session, host):
        result = await UserService(UserRepository(db_session)).get_current_user(host.id)

        assert result.ok
        assert result.value.email == host.email
        assert result.value.owned_listing_ids == []
        assert "hashed_password" not in result.value.model_dump()

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        result = await UserService(UserRepository(db_session)).get_current_user(uuid.uuid4())

        assert result.kind == ErrorKind.NOT_FOUND
