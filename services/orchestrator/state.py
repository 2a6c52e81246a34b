"""
Logo Studio State

Defines the immutable state of the studio and the pure transitions over it.
Every transition takes a StudioState and returns a new one; nothing is
mutated in place. The studio applies them and notifies listeners.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from services.generation.models import AspectRatio, ImageArtifact, VideoHandle

# User-facing messages
EMPTY_PROMPT_MESSAGE = "Please enter a description for your logo."
NO_IMAGE_MESSAGE = "Please generate or upload a logo first."
CREDENTIAL_ERROR_MESSAGE = "API Key error. Please re-select your API Key and try again."
NO_CREDENTIAL_MESSAGE = "Please select an API key to animate your logo."
IMAGE_FAILED_PREFIX = "Image generation failed"
VIDEO_FAILED_PREFIX = "Video animation failed"
READ_FAILED_PREFIX = "Failed to read file"


class ImagePhase(str, Enum):
    """Image sub-machine states."""
    IDLE = "idle"
    REQUESTING = "requesting"
    READY = "ready"
    FAILED = "failed"


class VideoPhase(str, Enum):
    """Video sub-machine states."""
    IDLE = "idle"
    CREDENTIAL_CHECK = "credential_check"
    AWAITING_CREDENTIAL = "awaiting_credential"
    REQUESTING = "requesting"
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        return self not in (VideoPhase.IDLE, VideoPhase.READY, VideoPhase.FAILED)


@dataclass(frozen=True)
class CredentialState:
    """
    Whether a usable API key is selected in the host.

    rejected marks a key the service refused; it is only cleared by a new
    selection, so the host answering "yes" for the same key is not enough.
    """
    selected: bool = False
    rejected: bool = False


@dataclass(frozen=True)
class StudioState:
    """Complete display state of the studio."""

    prompt: str = ""
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE

    image_phase: ImagePhase = ImagePhase.IDLE
    video_phase: VideoPhase = VideoPhase.IDLE

    # Single slots, replaced wholesale
    image: Optional[ImageArtifact] = None
    video: Optional[VideoHandle] = None

    credential: CredentialState = field(default_factory=CredentialState)
    error: Optional[str] = None
    status_message: str = ""

    @property
    def is_generating_image(self) -> bool:
        return self.image_phase == ImagePhase.REQUESTING

    @property
    def is_generating_video(self) -> bool:
        return self.video_phase.is_busy

    @property
    def actions_enabled(self) -> bool:
        """Triggers are disabled while either sub-machine is busy."""
        return not (self.is_generating_image or self.is_generating_video)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe summary for the presentation layer."""
        return {
            "prompt": self.prompt,
            "aspect_ratio": self.aspect_ratio.value,
            "image_phase": self.image_phase.value,
            "video_phase": self.video_phase.value,
            "has_image": self.image is not None,
            "image_mime_type": self.image.mime_type if self.image else None,
            "has_video": self.video is not None,
            "video_size_bytes": self.video.size_bytes if self.video else None,
            "credential_selected": self.credential.selected,
            "credential_rejected": self.credential.rejected,
            "error": self.error,
            "status_message": self.status_message,
            "is_generating_image": self.is_generating_image,
            "is_generating_video": self.is_generating_video,
            "actions_enabled": self.actions_enabled,
        }


# ============================================================
# Input transitions
# ============================================================

def prompt_changed(state: StudioState, prompt: str) -> StudioState:
    return replace(state, prompt=prompt)


def aspect_ratio_selected(state: StudioState, aspect_ratio: AspectRatio) -> StudioState:
    return replace(state, aspect_ratio=aspect_ratio)


def validation_failed(state: StudioState, message: str) -> StudioState:
    """Report a validation error without starting any sub-machine."""
    return replace(state, error=message)


# ============================================================
# Image sub-machine
# ============================================================

def image_requested(state: StudioState) -> StudioState:
    """Idle/Ready/Failed -> Requesting. Clears the image and the stale video."""
    return replace(
        state,
        image_phase=ImagePhase.REQUESTING,
        image=None,
        video=None,
        video_phase=VideoPhase.IDLE,
        error=None,
    )


def image_ready(state: StudioState, image: ImageArtifact) -> StudioState:
    return replace(state, image_phase=ImagePhase.READY, image=image, video=None)


def image_failed(state: StudioState, message: str) -> StudioState:
    return replace(state, image_phase=ImagePhase.FAILED, error=f"{IMAGE_FAILED_PREFIX}: {message}")


def upload_started(state: StudioState) -> StudioState:
    """A valid image file was chosen; the current video is stale from here on."""
    return replace(state, error=None, video=None, video_phase=VideoPhase.IDLE)


def image_uploaded(state: StudioState, image: ImageArtifact) -> StudioState:
    return replace(state, image_phase=ImagePhase.READY, image=image, video=None)


def upload_failed(state: StudioState, message: str) -> StudioState:
    return replace(
        state,
        image_phase=ImagePhase.IDLE,
        image=None,
        error=f"{READ_FAILED_PREFIX}: {message}",
    )


# ============================================================
# Credential transitions
# ============================================================

def credential_checked(state: StudioState, selected: bool) -> StudioState:
    """Video Idle -> CredentialCheck with the host's answer recorded."""
    rejected = state.credential.rejected
    return replace(
        state,
        video_phase=VideoPhase.CREDENTIAL_CHECK,
        credential=CredentialState(selected=selected and not rejected, rejected=rejected),
    )


def credential_requested(state: StudioState) -> StudioState:
    return replace(state, video_phase=VideoPhase.AWAITING_CREDENTIAL)


def credential_selected(state: StudioState, selected: bool = True) -> StudioState:
    """Record a (re)selection. A selected key clears an earlier rejection."""
    rejected = state.credential.rejected and not selected
    return replace(state, credential=CredentialState(selected=selected, rejected=rejected))


def credential_missing(state: StudioState) -> StudioState:
    """The picker returned and no key is selected; video goes back to idle."""
    return replace(
        state,
        video_phase=VideoPhase.IDLE,
        credential=CredentialState(selected=False, rejected=state.credential.rejected),
        error=NO_CREDENTIAL_MESSAGE,
    )


# ============================================================
# Video sub-machine
# ============================================================

def video_requested(state: StudioState) -> StudioState:
    return replace(state, video_phase=VideoPhase.REQUESTING, video=None, error=None)


def video_polling(state: StudioState) -> StudioState:
    if state.video_phase != VideoPhase.REQUESTING:
        return state
    return replace(state, video_phase=VideoPhase.POLLING)


def video_ready(state: StudioState, video: VideoHandle, source: ImageArtifact) -> StudioState:
    """
    Polling -> Ready. A video made from an image that is no longer current
    is dropped, the video slot stays empty.
    """
    if state.image is not source:
        return replace(state, video_phase=VideoPhase.IDLE, status_message="")
    return replace(state, video_phase=VideoPhase.READY, video=video, status_message="")


def video_failed(state: StudioState, message: str, credential_rejected: bool = False) -> StudioState:
    """Polling -> Failed. A rejected key resets the credential state."""
    if credential_rejected:
        return replace(
            state,
            video_phase=VideoPhase.FAILED,
            error=CREDENTIAL_ERROR_MESSAGE,
            credential=CredentialState(selected=False, rejected=True),
            status_message="",
        )
    return replace(
        state,
        video_phase=VideoPhase.FAILED,
        error=f"{VIDEO_FAILED_PREFIX}: {message}",
        status_message="",
    )


def status_changed(state: StudioState, message: str) -> StudioState:
    return replace(state, status_message=message)


def workflows_cancelled(state: StudioState) -> StudioState:
    """Teardown interrupted whatever was running; busy phases go back to idle."""
    image_phase = ImagePhase.IDLE if state.is_generating_image else state.image_phase
    video_phase = VideoPhase.IDLE if state.is_generating_video else state.video_phase
    if (image_phase, video_phase) == (state.image_phase, state.video_phase) and not state.status_message:
        return state
    return replace(state, image_phase=image_phase, video_phase=video_phase, status_message="")
