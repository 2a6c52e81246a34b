"""
Logo Studio Orchestrator

Owns the image and video workflows of the studio.

Implements:
- Image sub-machine (idle, requesting, ready, failed)
- Video sub-machine with credential check and recovery
- Rotating status messages while an animation runs
- HTTP + SSE surface for a browser (server.py)
"""

from .state import StudioState, ImagePhase, VideoPhase, CredentialState
from .studio import LogoStudio

__all__ = [
    "LogoStudio",
    "StudioState",
    "ImagePhase",
    "VideoPhase",
    "CredentialState",
]
