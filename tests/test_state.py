"""
Tests for the pure studio state transitions.

Run with:
    python -m pytest tests/test_state.py -v
"""

import os
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.generation.models import AspectRatio, ImageArtifact, VideoHandle
from services.orchestrator import state as transitions
from services.orchestrator.state import (
    CREDENTIAL_ERROR_MESSAGE,
    NO_CREDENTIAL_MESSAGE,
    CredentialState,
    ImagePhase,
    StudioState,
    VideoPhase,
)

LOGO = ImageArtifact.from_bytes(b"logo", "image/png")
VIDEO = VideoHandle(path=Path("/tmp/never-created.mp4"), size_bytes=3)


def ready_state(**overrides) -> StudioState:
    base = StudioState(
        prompt="owl",
        image=LOGO,
        image_phase=ImagePhase.READY,
        video=VIDEO,
        video_phase=VideoPhase.READY,
        credential=CredentialState(selected=True),
    )
    return replace(base, **overrides)


class TestImageTransitions:

    def test_request_clears_image_video_and_error(self):
        state = transitions.image_requested(ready_state(error="old"))

        assert state.image_phase == ImagePhase.REQUESTING
        assert state.image is None
        assert state.video is None
        assert state.video_phase == VideoPhase.IDLE
        assert state.error is None
        assert not state.actions_enabled

    def test_failed_prefixes_message(self):
        state = transitions.image_failed(StudioState(), "quota exceeded")

        assert state.image_phase == ImagePhase.FAILED
        assert state.error == "Image generation failed: quota exceeded"

    def test_upload_failed_clears_image(self):
        state = transitions.upload_failed(ready_state(), "permission denied")

        assert state.image is None
        assert state.image_phase == ImagePhase.IDLE
        assert state.error == "Failed to read file: permission denied"

    def test_transitions_do_not_mutate(self):
        original = ready_state()
        transitions.image_requested(original)

        assert original.image is LOGO
        assert original.video is VIDEO


class TestVideoTransitions:

    def test_polling_only_follows_requesting(self):
        idle = StudioState()
        assert transitions.video_polling(idle) is idle

        requesting = transitions.video_requested(ready_state())
        assert transitions.video_polling(requesting).video_phase == VideoPhase.POLLING

    def test_ready_for_current_image(self):
        polling = ready_state(video=None, video_phase=VideoPhase.POLLING, status_message="Rendering")

        state = transitions.video_ready(polling, VIDEO, LOGO)

        assert state.video is VIDEO
        assert state.video_phase == VideoPhase.READY
        assert state.status_message == ""

    def test_ready_for_stale_image_is_dropped(self):
        other = ImageArtifact.from_bytes(b"other", "image/png")
        polling = ready_state(image=other, video=None, video_phase=VideoPhase.POLLING)

        state = transitions.video_ready(polling, VIDEO, LOGO)

        assert state.video is None
        assert state.video_phase == VideoPhase.IDLE

    def test_credential_rejection(self):
        state = transitions.video_failed(ready_state(), "Requested entity was not found", True)

        assert state.video_phase == VideoPhase.FAILED
        assert state.error == CREDENTIAL_ERROR_MESSAGE
        assert state.credential.selected is False
        assert state.credential.rejected is True

    def test_rejected_key_survives_host_answer(self):
        rejected = transitions.video_failed(ready_state(), "Requested entity was not found", True)

        state = transitions.credential_checked(rejected, True)

        assert state.video_phase == VideoPhase.CREDENTIAL_CHECK
        assert state.credential.selected is False
        assert state.credential.rejected is True

    def test_new_selection_clears_rejection(self):
        rejected = transitions.video_failed(ready_state(), "Requested entity was not found", True)

        state = transitions.credential_selected(rejected, True)

        assert state.credential == CredentialState(selected=True, rejected=False)

    def test_cancelled_workflows_return_to_idle(self):
        busy = ready_state(
            image_phase=ImagePhase.REQUESTING,
            video_phase=VideoPhase.POLLING,
            status_message="Rendering",
        )

        state = transitions.workflows_cancelled(busy)

        assert state.image_phase == ImagePhase.IDLE
        assert state.video_phase == VideoPhase.IDLE
        assert state.status_message == ""
        assert state.actions_enabled

        idle = ready_state()
        assert transitions.workflows_cancelled(idle) is idle

    def test_generic_failure_keeps_credential(self):
        state = transitions.video_failed(ready_state(status_message="Rendering"), "boom")

        assert state.error == "Video animation failed: boom"
        assert state.credential.selected is True
        assert state.status_message == ""

    def test_credential_missing(self):
        awaiting = transitions.credential_requested(ready_state())
        assert awaiting.video_phase == VideoPhase.AWAITING_CREDENTIAL

        state = transitions.credential_missing(awaiting)

        assert state.video_phase == VideoPhase.IDLE
        assert state.error == NO_CREDENTIAL_MESSAGE


class TestStudioState:

    def test_to_dict(self):
        data = ready_state(aspect_ratio=AspectRatio.PORTRAIT).to_dict()

        assert data["aspect_ratio"] == "9:16"
        assert data["image_phase"] == "ready"
        assert data["video_phase"] == "ready"
        assert data["has_image"] is True
        assert data["has_video"] is True
        assert data["video_size_bytes"] == 3
        assert data["actions_enabled"] is True

    def test_busy_video_phases(self):
        for phase in (
            VideoPhase.CREDENTIAL_CHECK,
            VideoPhase.AWAITING_CREDENTIAL,
            VideoPhase.REQUESTING,
            VideoPhase.POLLING,
        ):
            assert StudioState(video_phase=phase).is_generating_video
        for phase in (VideoPhase.IDLE, VideoPhase.READY, VideoPhase.FAILED):
            assert not StudioState(video_phase=phase).is_generating_video
