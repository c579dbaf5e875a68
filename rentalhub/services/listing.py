"""
Listing service.
Implements adding, reading, updating and deleting listings while keeping each
host's owned-listing set consistent with the listings' host references.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Sequence

from rentalhub.models.listing import IMAGE_FIELDS, Listing
from rentalhub.repositories.interfaces import ListingStore, UserDirectory
from rentalhub.repositories.uow import UnitOfWork
from rentalhub.schemas.listing import ImageUpload, ListingFields, ListingUpdate, ListingView
from rentalhub.services.attachments import AttachmentError, ImageAttachmentResolver
from rentalhub.services.result import ErrorKind, Result
from rentalhub.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

REQUIRED_IMAGE_COUNT = 3


class ListingService:
    """
    Orchestrates the listing store, the user directory and the attachment
    resolver. Every public method returns a Result.

    Multi-step writes follow one pattern: resolve attachments first, then
    write both stores inside a single unit of work. If the write does not
    commit, the attachments resolved for it are discarded.
    """

    def __init__(
        self,
        listings: ListingStore,
        users: UserDirectory,
        attachments: ImageAttachmentResolver,
        uow: UnitOfWork
    ):
        self.listings = listings
        self.users = users
        self.attachments = attachments
        self.uow = uow

    async def add_listing(
        self,
        host_id: uuid.UUID,
        fields: ListingFields,
        images: Sequence[ImageUpload]
    ) -> Result[ListingView]:
        """
        Create a listing owned by `host_id` and add it to the host's owned set.

        Failures:
            VALIDATION: wrong image count or an unacceptable image
            NOT_FOUND: the host does not exist
            INTERNAL: attachment storage or database failure
        """
        if len(images) != REQUIRED_IMAGE_COUNT:
            return Result.failure(
                ErrorKind.VALIDATION,
                f"Exactly {REQUIRED_IMAGE_COUNT} images are required, got {len(images)}"
            )

        resolved = await self._resolve_images(list(images))
        if not resolved.ok:
            return resolved
        references: List[str] = resolved.value

        listing_data = fields.model_dump()
        listing_data.update(zip(IMAGE_FIELDS, references))
        listing_data["host"] = host_id

        listing: Optional[Listing] = None
        try:
            async with self.uow:
                if await self.users.get_by_id(host_id) is not None:
                    listing = await self.listings.create_listing(listing_data)
                    await self.users.attach_listing(host_id, listing.id)
        except asyncio.CancelledError:
            await asyncio.shield(self.attachments.discard_all(references))
            raise
        except Exception as e:
            logger.error(f"Failed to add listing for host {host_id}: {e}", exc_info=True)
            await self.attachments.discard_all(references)
            return Result.failure(ErrorKind.INTERNAL, "Failed to create listing")

        if listing is None:
            await self.attachments.discard_all(references)
            return Result.not_found("User", host_id)

        logger.info(f"Listing created by host {host_id}: {listing.title} (ID: {listing.id})")
        return Result.success(ListingView.model_validate(listing))

    async def get_listings(self) -> Result[List[ListingView]]:
        """All listings, newest first."""
        try:
            listings = await self.listings.list_newest_first()
        except Exception as e:
            logger.error(f"Failed to list listings: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to retrieve listings")

        return Result.success([ListingView.model_validate(listing) for listing in listings])

    async def get_listing(self, listing_id: uuid.UUID) -> Result[ListingView]:
        try:
            listing = await self.listings.get_by_id(listing_id)
        except Exception as e:
            logger.error(f"Failed to get listing {listing_id}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to retrieve listing")

        if listing is None:
            return Result.not_found("Listing", listing_id)
        return Result.success(ListingView.model_validate(listing))

    async def update_listing(
        self,
        requester_id: uuid.UUID,
        listing_id: uuid.UUID,
        changes: ListingUpdate,
        images: Optional[Dict[str, ImageUpload]] = None
    ) -> Result[ListingView]:
        """
        Apply a partial update on behalf of the listing's host.

        `images` maps any of image1/image2/image3 to a replacement upload.
        Replaced attachments are discarded only after the update commits.
        """
        images = images or {}
        unknown = set(images) - set(IMAGE_FIELDS)
        if unknown:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown image fields: {', '.join(sorted(unknown))}")

        owned = await self._get_owned_listing(requester_id, listing_id, "update")
        if not owned.ok:
            return owned
        listing: Listing = owned.value

        field_changes = changes.changes()
        if not field_changes and not images:
            return Result.success(ListingView.model_validate(listing))

        slots = list(images)
        resolved = await self._resolve_images([images[slot] for slot in slots])
        if not resolved.ok:
            return resolved
        new_references = dict(zip(slots, resolved.value))
        old_references = [getattr(listing, slot) for slot in slots]
        field_changes.update(new_references)

        try:
            async with self.uow:
                updated = await self.listings.update_fields(listing_id, field_changes)
        except asyncio.CancelledError:
            await asyncio.shield(self.attachments.discard_all(new_references.values()))
            raise
        except Exception as e:
            logger.error(f"Failed to update listing {listing_id}: {e}", exc_info=True)
            await self.attachments.discard_all(new_references.values())
            return Result.failure(ErrorKind.INTERNAL, "Failed to update listing")

        if updated is None:
            await self.attachments.discard_all(new_references.values())
            return Result.not_found("Listing", listing_id)

        await self.attachments.discard_all(old_references)
        logger.info(f"Listing {listing_id} updated by host {requester_id}: {sorted(field_changes)}")
        return Result.success(ListingView.model_validate(updated))

    async def delete_listing(self, requester_id: uuid.UUID, listing_id: uuid.UUID) -> Result[None]:
        """Remove a listing and retract it from the host's owned set in one transaction."""
        owned = await self._get_owned_listing(requester_id, listing_id, "delete")
        if not owned.ok:
            return owned
        references = owned.value.images

        try:
            async with self.uow:
                await self.users.detach_listing(requester_id, listing_id)
                deleted = await self.listings.delete_listing(listing_id)
        except Exception as e:
            logger.error(f"Failed to delete listing {listing_id}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to delete listing")

        if not deleted:
            return Result.not_found("Listing", listing_id)

        await self.attachments.discard_all(references)
        logger.info(f"Listing {listing_id} deleted by host {requester_id}")
        return Result.success(None)

    # Private helpers

    async def _get_owned_listing(
        self,
        requester_id: uuid.UUID,
        listing_id: uuid.UUID,
        action: str
    ) -> Result[Listing]:
        try:
            listing = await self.listings.get_by_id(listing_id)
        except Exception as e:
            logger.error(f"Failed to load listing {listing_id}: {e}", exc_info=True)
            return Result.failure(ErrorKind.INTERNAL, "Failed to retrieve listing")

        if listing is None:
            return Result.not_found("Listing", listing_id)

        if listing.host != requester_id:
            logger.warning(f"User {requester_id} tried to {action} listing {listing_id} owned by {listing.host}")
            return Result.failure(ErrorKind.FORBIDDEN, f"Only the host can {action} this listing")

        return Result.success(listing)

    async def _resolve_images(self, images: List[ImageUpload]) -> Result[List[str]]:
        """
        Resolve uploads concurrently. On any failure, or if the caller is
        cancelled, whatever was already stored is discarded.
        """
        if not images:
            return Result.success([])

        tasks = [asyncio.ensure_future(self.attachments.resolve(image)) for image in images]
        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            stored = [t.result() for t in tasks if t.done() and not t.cancelled() and t.exception() is None]
            await asyncio.shield(self.attachments.discard_all(stored))
            raise

        references = [o for o in outcomes if isinstance(o, str)]
        failures = [o for o in outcomes if not isinstance(o, str)]
        if not failures:
            return Result.success(references)

        await self.attachments.discard_all(references)

        for failure in failures:
            if isinstance(failure, asyncio.CancelledError):
                raise failure
        for failure in failures:
            if isinstance(failure, ValidationError):
                return Result.failure(ErrorKind.VALIDATION, failure.detail)

        failure = failures[0]
        if isinstance(failure, AttachmentError):
            logger.error(f"Image attachment resolution failed: {failure}")
        else:
            logger.error(f"Unexpected image attachment error: {failure!r}", exc_info=failure)
        return Result.failure(ErrorKind.INTERNAL, "Failed to store listing images")
