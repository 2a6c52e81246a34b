"""
Logo Studio Orchestrator

Owns the current image and video, sequences the two gateway calls and turns
every outcome into display state. All transitions go through the pure
functions in state.py; this class only holds the latest StudioState and
notifies listeners when it changes.

Usage:
    studio = LogoStudio()
    studio.on_change(lambda state: print(state.status_message))

    await studio.generate_logo("A minimalist owl icon for an education app")
    await studio.animate_logo("16:9")

    if studio.state.video:
        print(studio.state.video.path)

    await studio.close()
"""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Any, Callable, Optional, Union

from core.config import get_config
from core.credentials import CredentialProvider, EnvCredentialProvider
from core.errors import GenerationError, LogoAnimatorError
from services.generation.client import GenerationGateway, JobStage
from services.generation.models import AspectRatio
from services.generation.uploads import (
    INVALID_IMAGE_MESSAGE,
    image_from_bytes,
    is_image_type,
    load_image_file,
)
from services.streaming.status_rotator import StatusRotator

from . import state as transitions
from .state import NO_IMAGE_MESSAGE, EMPTY_PROMPT_MESSAGE, StudioState

logger = logging.getLogger(__name__)


class LogoStudio:
    """
    Job orchestrator for the logo studio.

    The studio never raises for user or remote failures: they all end up in
    state.error. Mutual exclusion between the image and video workflows is
    left to the caller (see StudioState.actions_enabled).
    """

    def __init__(
        self,
        gateway: Optional[GenerationGateway] = None,
        credentials: Optional[CredentialProvider] = None,
        config: Optional[Any] = None,
        initial_state: Optional[StudioState] = None,
    ):
        self.config = config or get_config()
        self.credentials = credentials or EnvCredentialProvider()
        self.gateway = gateway or GenerationGateway(self.credentials, config=self.config)
        if getattr(self.gateway, "on_progress", None) is None:
            self.gateway.on_progress = self._on_job_stage

        self._state = initial_state or StudioState(
            prompt=self.config.studio.default_prompt,
            aspect_ratio=AspectRatio(self.config.studio.default_aspect_ratio),
        )
        self._callbacks: list[Callable[[StudioState], None]] = []
        self._rotator: Optional[StatusRotator] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> StudioState:
        return self._state

    def on_change(self, callback: Callable[[StudioState], None]):
        """Register callback for state changes."""
        self._callbacks.append(callback)

    def _apply(self, transition: Callable[..., StudioState], *args, **kwargs) -> StudioState:
        """Run a transition, release a displaced video, notify listeners."""
        old = self._state
        new = transition(old, *args, **kwargs)
        if new is old:
            return new
        self._state = new

        if old.video is not None and old.video is not new.video:
            old.video.release()

        if (old.image_phase, old.video_phase) != (new.image_phase, new.video_phase):
            logger.debug(
                f"Studio: image {old.image_phase.value}->{new.image_phase.value}, "
                f"video {old.video_phase.value}->{new.video_phase.value}"
            )

        for callback in self._callbacks:
            try:
                callback(new)
            except Exception as e:
                logger.warning(f"State callback failed: {e}")
        return new

    def _on_job_stage(self, stage: JobStage, message: str):
        if stage == JobStage.POLLING:
            self._apply(transitions.video_polling)

    # ============================================================
    # Inputs
    # ============================================================

    def set_prompt(self, prompt: str) -> StudioState:
        return self._apply(transitions.prompt_changed, prompt)

    def set_aspect_ratio(self, aspect_ratio: Union[AspectRatio, str]) -> StudioState:
        try:
            value = AspectRatio(aspect_ratio)
        except ValueError:
            return self._apply(
                transitions.validation_failed, f"Unsupported aspect ratio: {aspect_ratio}"
            )
        return self._apply(transitions.aspect_ratio_selected, value)

    # ============================================================
    # Credentials
    # ============================================================

    async def refresh_credential(self) -> bool:
        """Ask the host whether a key is selected and record the answer."""
        selected = await self.credentials.has_selected_key()
        self._apply(transitions.credential_selected, selected)
        return selected

    async def select_credential(self) -> StudioState:
        """
        Run the host key picker.

        The picker gives no confirmation, so success is assumed unless
        verify_credential_selection is configured.
        """
        await self.credentials.open_select_key()
        if self.config.studio.verify_credential_selection:
            selected = await self.credentials.has_selected_key()
        else:
            selected = True
        return self._apply(transitions.credential_selected, selected)

    # ============================================================
    # Image workflow
    # ============================================================

    async def generate_logo(self, description: Optional[str] = None) -> StudioState:
        """Generate a new logo from the description (or the current prompt)."""
        if description is not None:
            self.set_prompt(description)

        prompt = self._state.prompt
        if not prompt or not prompt.strip():
            return self._apply(transitions.validation_failed, EMPTY_PROMPT_MESSAGE)

        self._apply(transitions.image_requested)
        logger.info(f"Generating logo: {prompt[:50]}...")

        try:
            image = await self.gateway.generate_image(prompt)
        except Exception as e:
            logger.error(f"Logo generation failed: {e}")
            return self._apply(transitions.image_failed, str(e) or type(e).__name__)

        logger.info("Logo ready")
        return self._apply(transitions.image_ready, image)

    async def upload_file(
        self,
        path: Union[str, Path],
        content_type: Optional[str] = None,
    ) -> StudioState:
        """Use an image file from disk as the current logo."""
        path = Path(path)
        content_type = content_type or mimetypes.guess_type(path.name)[0]
        if not is_image_type(content_type):
            return self._apply(transitions.validation_failed, INVALID_IMAGE_MESSAGE)

        self._apply(transitions.upload_started)
        try:
            image = await load_image_file(path, content_type)
        except (OSError, LogoAnimatorError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return self._apply(transitions.upload_failed, str(e))

        return self._apply(transitions.image_uploaded, image)

    def upload_bytes(self, raw: bytes, content_type: Optional[str]) -> StudioState:
        """Use uploaded image bytes as the current logo."""
        if not is_image_type(content_type):
            return self._apply(transitions.validation_failed, INVALID_IMAGE_MESSAGE)

        self._apply(transitions.upload_started)
        try:
            image = image_from_bytes(raw, content_type)
        except (ValueError, LogoAnimatorError) as e:
            return self._apply(transitions.upload_failed, str(e))

        return self._apply(transitions.image_uploaded, image)

    # ============================================================
    # Video workflow
    # ============================================================

    async def animate_logo(
        self,
        aspect_ratio: Optional[Union[AspectRatio, str]] = None,
    ) -> StudioState:
        """Animate the current logo, checking the credential first."""
        if aspect_ratio is not None:
            try:
                value = AspectRatio(aspect_ratio)
            except ValueError:
                return self._apply(
                    transitions.validation_failed, f"Unsupported aspect ratio: {aspect_ratio}"
                )
            self._apply(transitions.aspect_ratio_selected, value)

        if self._state.image is None:
            return self._apply(transitions.validation_failed, NO_IMAGE_MESSAGE)

        try:
            selected = await self.credentials.has_selected_key()
            state = self._apply(transitions.credential_checked, selected)

            # A key the service rejected is re-acquired even if the host still holds it
            if not state.credential.selected:
                self._apply(transitions.credential_requested)
                await self.select_credential()
                if not self._state.credential.selected:
                    return self._apply(transitions.credential_missing)
        except Exception as e:
            logger.error(f"Credential check failed: {e!r}")
            return self._apply(transitions.video_failed, str(e) or type(e).__name__)

        self._apply(transitions.video_requested)
        source = self._state.image
        aspect = self._state.aspect_ratio
        logger.info(f"Animating logo ({aspect.value})")

        rotator = StatusRotator(
            self.config.studio.status_messages,
            interval_seconds=self.config.studio.status_interval_seconds,
        )
        rotator.on_message(lambda message: self._apply(transitions.status_changed, message))
        self._rotator = rotator

        try:
            async with rotator:
                video = await self.gateway.animate_image(source, aspect)
        except Exception as e:
            if isinstance(e, GenerationError) and e.is_credential_rejected:
                logger.warning("API key rejected by the video service")
                return self._apply(transitions.video_failed, str(e), credential_rejected=True)
            logger.error(f"Logo animation failed: {e}")
            return self._apply(transitions.video_failed, str(e) or type(e).__name__)
        finally:
            self._rotator = None

        state = self._apply(transitions.video_ready, video, source)
        if state.video is not video:
            logger.warning("Discarding video for a logo that is no longer current")
            video.release()
        else:
            logger.info(f"Animation ready: {video.path}")
        return state

    # ============================================================
    # Background execution
    # ============================================================

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def start_generate_logo(self, description: Optional[str] = None) -> asyncio.Task:
        """Run generate_logo in the background."""
        return self._spawn(self.generate_logo(description))

    def start_animate_logo(
        self,
        aspect_ratio: Optional[Union[AspectRatio, str]] = None,
    ) -> asyncio.Task:
        """Run animate_logo in the background."""
        return self._spawn(self.animate_logo(aspect_ratio))

    async def close(self):
        """Cancel running workflows, reset busy phases and release session files."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._rotator is not None:
            await self._rotator.stop()
            self._rotator = None
        self._apply(transitions.workflows_cancelled)

        if self._state.video is not None:
            self._state.video.release()
        self.gateway.close()
        logger.info("Studio closed")
