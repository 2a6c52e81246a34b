"""
Local image input.

Turns a user-supplied file into an ImageArtifact without any network call.
Only image media types are accepted.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional, Union

import aiofiles

from core.errors import ValidationError

from .models import ImageArtifact

logger = logging.getLogger(__name__)

INVALID_IMAGE_MESSAGE = "Please upload a valid image file."


def is_image_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("image/")


def image_from_bytes(raw: bytes, content_type: Optional[str]) -> ImageArtifact:
    """Encode uploaded bytes. Raises ValidationError for non-image types."""
    if not is_image_type(content_type):
        raise ValidationError(INVALID_IMAGE_MESSAGE, error_code="NOT_AN_IMAGE")
    return ImageArtifact.from_bytes(raw, content_type)


async def load_image_file(
    path: Union[str, Path],
    content_type: Optional[str] = None,
) -> ImageArtifact:
    """
    Read an image file from disk into an ImageArtifact.

    The media type is guessed from the file name unless given. The type is
    checked before the file is opened; read failures propagate as OSError.
    """
    path = Path(path)
    content_type = content_type or mimetypes.guess_type(path.name)[0]
    if not is_image_type(content_type):
        raise ValidationError(INVALID_IMAGE_MESSAGE, error_code="NOT_AN_IMAGE")

    async with aiofiles.open(path, "rb") as f:
        raw = await f.read()

    logger.info(f"Loaded image {path.name} ({content_type}, {len(raw)} bytes)")
    return ImageArtifact.from_bytes(raw, content_type)
