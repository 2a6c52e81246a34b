"""
Artifacts exchanged between the generation gateway and the studio.
"""

import base64
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class AspectRatio(str, Enum):
    """Aspect ratios accepted for animation."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


class ImageArtifact(BaseModel):
    """A generated or uploaded image, base64 encoded."""

    model_config = ConfigDict(frozen=True)

    data: str = Field(description="Image bytes as base64 text")
    mime_type: str = Field(description="Media type, e.g. image/png")

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "ImageArtifact":
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class VideoHandle(BaseModel):
    """A downloaded video materialized as a session file."""

    model_config = ConfigDict(frozen=True)

    path: Path
    mime_type: str = "video/mp4"
    size_bytes: int = 0

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def release(self):
        """Delete the backing file. Safe to call more than once."""
        try:
            self.path.unlink(missing_ok=True)
            logger.debug(f"Released video handle {self.path}")
        except OSError as e:
            logger.warning(f"Failed to release video handle {self.path}: {e}")
