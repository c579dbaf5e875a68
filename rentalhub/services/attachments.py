"""
Image attachment resolution.
Turns uploaded image bytes into durable public references and discards them
again when a listing operation has to be compensated.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
import aiofiles.os

from rentalhub.config import get_settings
from rentalhub.schemas.listing import ImageUpload
from rentalhub.utils.file_utils import FileValidator
import logging

logger = logging.getLogger(__name__)


class AttachmentError(Exception):
    """The object store could not accept the upload."""


class ImageAttachmentResolver(ABC):
    """Object-store collaborator: accepts bytes, returns a reference or fails."""

    @abstractmethod
    async def resolve(self, image: ImageUpload) -> str:
        """
        Store one image and return its public reference.

        Raises:
            ValidationError: If the upload is not an acceptable image
            AttachmentError: If storing failed after the allowed retry
        """
        ...

    @abstractmethod
    async def discard(self, reference: str) -> None:
        """Remove a previously resolved reference. Unknown references are ignored."""
        ...

    async def discard_all(self, references: Iterable[str]) -> None:
        """Best-effort removal of several references; failures are logged, not raised."""
        for reference in references:
            try:
                await self.discard(reference)
            except Exception as e:
                logger.error(f"Failed to discard attachment {reference}: {e}", exc_info=True)


class LocalAttachmentStore(ImageAttachmentResolver):
    """
    Stores attachments under the upload directory and serves them from the
    media URL prefix. Each write attempt is bounded by a timeout and a failed
    attempt is retried at most `max_retries` times.
    """

    def __init__(
        self,
        upload_dir: Optional[Path] = None,
        media_url_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None
    ):
        settings = get_settings()
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.media_url_prefix = (media_url_prefix or settings.media_url_prefix).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.attachment_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.attachment_max_retries

    @property
    def listing_dir(self) -> Path:
        return self.upload_dir / "listings"

    async def resolve(self, image: ImageUpload) -> str:
        # Image decoding runs in a worker thread, off the event loop
        extension = await asyncio.to_thread(
            FileValidator.validate_image, image.filename, image.content_type, image.content
        )

        name = f"{uuid.uuid4()}{extension}"
        file_path = self.listing_dir / name
        last_error: Optional[BaseException] = None

        for attempt in range(1 + self.max_retries):
            try:
                await asyncio.wait_for(self._write(file_path, image.content), timeout=self.timeout)
                logger.debug(f"Stored attachment {name} ({image.size} bytes)")
                return f"{self.media_url_prefix}/listings/{name}"
            except asyncio.CancelledError:
                await asyncio.shield(self._remove(file_path))
                raise
            except (OSError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Attachment write attempt {attempt + 1} failed for {image.filename}: {e!r}")
                await self._remove(file_path)

        raise AttachmentError(f"Could not store {image.filename}: {last_error!r}")

    async def discard(self, reference: str) -> None:
        file_path = self._path_for(reference)
        if file_path is None:
            logger.warning(f"Ignoring discard of foreign attachment reference {reference}")
            return
        if await self._remove(file_path):
            logger.info(f"Discarded attachment {reference}")

    async def _write(self, file_path: Path, content: bytes) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(content)

    async def _remove(self, file_path: Path) -> bool:
        try:
            await aiofiles.os.remove(file_path)
            return True
        except FileNotFoundError:
            return False

    def _path_for(self, reference: str) -> Optional[Path]:
        """Map a public reference back to a file inside the listing directory."""
        prefix = f"{self.media_url_prefix}/listings/"
        if not reference.startswith(prefix):
            return None
        name = reference[len(prefix):]
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return None
        return self.listing_dir / name
