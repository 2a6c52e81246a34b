"""
Generation Service

Provides access to the generative media endpoints:
- Text-to-image logo generation
- Image-to-video animation with job polling and download
- Local image input for animation
"""

from .client import GenerationGateway, JobStage
from .models import AspectRatio, ImageArtifact, VideoHandle
from .uploads import image_from_bytes, load_image_file

__all__ = [
    "GenerationGateway",
    "JobStage",
    "AspectRatio",
    "ImageArtifact",
    "VideoHandle",
    "image_from_bytes",
    "load_image_file",
]
