"""
File upload utilities for image validation.
Checks extension, MIME type, size and that the bytes really are an image.
"""

import io
from pathlib import Path
from typing import Optional
from PIL import Image, UnidentifiedImageError

from rentalhub.config import get_settings
from rentalhub.utils.exceptions import ValidationError

settings = get_settings()


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their file extensions
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    # Pillow format names per MIME type
    PIL_FORMATS = {
        'image/jpeg': {'jpeg', 'mpo'},
        'image/png': {'png'},
        'image/webp': {'webp'}
    }

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Returns:
            Lowercase file extension

        Raises:
            ValidationError: If extension is missing or not supported
        """
        if not filename:
            raise ValidationError("Filename is required")

        extension = Path(filename).suffix.lower()

        if not extension:
            raise ValidationError("File must have an extension")

        supported_extensions = [ext for exts in cls.SUPPORTED_FORMATS.values() for ext in exts]
        if extension not in supported_extensions:
            raise ValidationError(
                f"File extension '{extension}' not supported. "
                f"Supported extensions: {', '.join(supported_extensions)}"
            )

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: Optional[str]) -> str:
        """Validate MIME type against the configured allow-list."""
        if not mime_type:
            raise ValidationError("MIME type is required")

        allowed = [t for t in settings.allowed_file_types if t in cls.SUPPORTED_FORMATS]
        if mime_type not in allowed:
            raise ValidationError(
                f"MIME type '{mime_type}' not supported. "
                f"Supported types: {', '.join(allowed)}"
            )

        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        """Reject empty files and files larger than the limit."""
        max_size = max_size or settings.max_file_size

        if file_size <= 0:
            raise ValidationError("File is empty")

        if file_size > max_size:
            max_mb = max_size / (1024 * 1024)
            raise ValidationError(f"File size exceeds maximum allowed size of {max_mb:.1f}MB")

        return file_size

    @classmethod
    def validate_image_content(cls, content: bytes, mime_type: str) -> None:
        """Make sure the bytes decode as an image of the declared type."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                pil_format = (img.format or "").lower()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format not in cls.PIL_FORMATS.get(mime_type, set()):
            raise ValidationError(f"File content doesn't match declared type {mime_type}")

    @classmethod
    def validate_image(cls, filename: str, mime_type: Optional[str], content: bytes) -> str:
        """
        Run every check on an uploaded image.

        Returns:
            The normalised file extension
        """
        extension = cls.validate_file_extension(filename)
        cls.validate_mime_type(mime_type)
        cls.validate_file_size(len(content))
        cls.validate_image_content(content, mime_type)
        return extension
