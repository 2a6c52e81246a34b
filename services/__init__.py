"""
Logo Animator Services

Services behind the logo studio:
- generation: Gateway to the image and video endpoints
- orchestrator: Studio state machine and HTTP surface
- streaming: Rotating status messages
"""

from .orchestrator import LogoStudio, StudioState

__all__ = [
    "LogoStudio",
    "StudioState",
]
