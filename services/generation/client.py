"""
Generation Gateway

Stateless facade over the generative media service:
- generate_image: one text-to-image round trip, returns an ImageArtifact
- animate_image: submits an image-to-video job, polls it to completion,
  downloads the result and materializes it as a local VideoHandle

Each call builds a fresh SDK client from the currently selected credential,
so a key changed between calls is picked up without a restart.
"""

import asyncio
import logging
import math
import shutil
import tempfile
import uuid
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

import aiofiles
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from core.config import get_config
from core.credentials import CredentialProvider
from core.errors import (
    DownloadError,
    GenerationError,
    MissingResultError,
    PollTimeoutError,
    ValidationError,
)

from .models import AspectRatio, ImageArtifact, VideoHandle

logger = logging.getLogger(__name__)


class JobStage(str, Enum):
    """Stages of the animate workflow, reported through on_progress."""
    SUBMITTING = "submitting"
    POLLING = "polling"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


def _extract_video_uri(operation: Any) -> Optional[str]:
    """Read response.generated_videos[0].video.uri, tolerating gaps."""
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) if response else None
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None) if video else None


class GenerationGateway:
    """
    Gateway to the image and video generation endpoints.

    Usage:
        gateway = GenerationGateway(EnvCredentialProvider())

        image = await gateway.generate_image("A minimalist owl icon")
        video = await gateway.animate_image(image, AspectRatio.LANDSCAPE)
        print(video.path)
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        config: Optional[Any] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        output_dir: Optional[Union[str, Path]] = None,
        on_progress: Optional[Callable[[JobStage, str], None]] = None,
    ):
        """
        Initialize the gateway.

        Args:
            credentials: Host credential interface, queried on every call
            config: Optional config override
            client_factory: Builds an SDK client from an API key
            transport: Optional httpx transport for the video download
            output_dir: Where downloaded videos are written
            on_progress: Callback for workflow stage changes (stage, message)
        """
        self.credentials = credentials
        self.config = config or get_config()
        self._client_factory = client_factory or (lambda api_key: genai.Client(api_key=api_key))
        self._transport = transport
        self._output_dir = Path(output_dir) if output_dir else None
        self._owns_output_dir = False
        self.on_progress = on_progress

    @property
    def output_dir(self) -> Path:
        """Session directory for materialized videos, created on first use."""
        if self._output_dir is None:
            configured = self.config.studio.output_dir
            if configured:
                self._output_dir = Path(configured)
            else:
                self._output_dir = Path(tempfile.mkdtemp(prefix="logo-animator-"))
                self._owns_output_dir = True
        self._output_dir.mkdir(parents=True, exist_ok=True)
        return self._output_dir

    def close(self):
        """Remove the session directory if the gateway created it."""
        if not self._owns_output_dir or self._output_dir is None:
            return
        try:
            shutil.rmtree(self._output_dir)
            logger.debug(f"Removed session directory {self._output_dir}")
        except OSError as e:
            logger.warning(f"Failed to remove session directory {self._output_dir}: {e}")
        self._output_dir = None
        self._owns_output_dir = False

    def _emit_progress(self, stage: JobStage, message: str):
        """Emit progress update via callback."""
        if self.on_progress:
            try:
                self.on_progress(stage, message)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    def _new_client(self) -> Any:
        """Build an SDK client bound to the currently selected key."""
        return self._client_factory(self.credentials.get_api_key())

    async def generate_image(self, description: str) -> ImageArtifact:
        """
        Generate a single square logo image from a description.

        Args:
            description: Natural-language description of the logo

        Returns:
            The generated ImageArtifact

        Raises:
            ValidationError: If the description is empty
            GenerationError: If the call fails or returns no usable image
        """
        if not description or not description.strip():
            raise ValidationError("Please enter a description for your logo.")

        models = self.config.models
        client = self._new_client()
        prompt = models.logo_prompt_template.format(description=description)

        logger.info(f"Image request: model={models.image_model}, description={description[:50]}...")

        try:
            response = await client.aio.models.generate_images(
                model=models.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type=models.image_mime_type,
                    aspect_ratio=models.image_aspect_ratio,
                ),
            )
        except genai_errors.APIError as e:
            raise GenerationError(_describe(e), error_code=f"API_{e.code}") from e
        except Exception as e:
            raise GenerationError(_describe(e), error_code="UNEXPECTED_ERROR") from e

        images = getattr(response, "generated_images", None)
        if not images:
            raise GenerationError(
                "Image generation failed or returned no images.",
                error_code="NO_IMAGES",
            )

        image = getattr(images[0], "image", None)
        image_bytes = getattr(image, "image_bytes", None) if image else None
        if not image_bytes:
            raise GenerationError(
                "Image generation returned a malformed response.",
                error_code="MALFORMED_RESPONSE",
            )

        if isinstance(image_bytes, str):
            artifact = ImageArtifact(data=image_bytes, mime_type=models.image_mime_type)
        else:
            artifact = ImageArtifact.from_bytes(image_bytes, models.image_mime_type)

        logger.info(f"Image generated ({len(artifact.data)} base64 chars)")
        return artifact

    async def animate_image(
        self,
        artifact: ImageArtifact,
        aspect_ratio: Union[AspectRatio, str],
    ) -> VideoHandle:
        """
        Animate an image into a short video clip.

        Submits one job, polls it at a fixed interval until done, then
        downloads and materializes the result.

        Args:
            artifact: The image to animate
            aspect_ratio: Output aspect ratio (16:9 or 9:16)

        Returns:
            VideoHandle pointing at the downloaded clip

        Raises:
            ValidationError: If the artifact or aspect ratio is invalid
            GenerationError: If submitting or polling fails
            PollTimeoutError: If the job outlives the configured cap
            MissingResultError: If the finished job has no download location
            DownloadError: If the video cannot be fetched
        """
        if artifact is None:
            raise ValidationError("Please generate or upload a logo first.")
        try:
            aspect_ratio = AspectRatio(aspect_ratio)
        except ValueError as e:
            raise ValidationError(f"Unsupported aspect ratio: {aspect_ratio}") from e

        models = self.config.models
        api_key = self.credentials.get_api_key()
        client = self._client_factory(api_key)

        self._emit_progress(JobStage.SUBMITTING, "Submitting animation job")
        logger.info(
            f"Video request: model={models.video_model}, aspect_ratio={aspect_ratio.value}"
        )

        try:
            operation = await client.aio.models.generate_videos(
                model=models.video_model,
                prompt=models.animation_prompt,
                image=types.Image(
                    image_bytes=artifact.to_bytes(),
                    mime_type=artifact.mime_type,
                ),
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    resolution=models.video_resolution,
                    aspect_ratio=aspect_ratio.value,
                ),
            )
        except genai_errors.APIError as e:
            raise GenerationError(_describe(e), error_code=f"API_{e.code}") from e
        except Exception as e:
            raise GenerationError(_describe(e), error_code="SUBMIT_FAILED") from e

        logger.info(f"Video job submitted: {getattr(operation, 'name', None)}")
        self._emit_progress(JobStage.POLLING, "Waiting for the video job")

        operation = await self._poll_until_done(client, operation)

        job_error = getattr(operation, "error", None)
        if job_error:
            message = job_error.get("message") if isinstance(job_error, dict) else None
            raise GenerationError(message or str(job_error), error_code="JOB_FAILED")

        video_uri = _extract_video_uri(operation)
        if not video_uri:
            raise MissingResultError(
                "Video generation did not return a valid download link.",
                error_code="NO_VIDEO_URI",
            )

        self._emit_progress(JobStage.DOWNLOADING, "Downloading video")
        handle = await self._download(video_uri, api_key)

        self._emit_progress(JobStage.COMPLETED, "Video ready")
        return handle

    async def _poll_until_done(self, client: Any, operation: Any) -> Any:
        """Re-query the job every interval until it reports done."""
        polling = self.config.polling
        max_polls = None
        if polling.max_wait_seconds:
            max_polls = max(1, math.ceil(polling.max_wait_seconds / max(polling.interval_seconds, 1e-3)))
        polls = 0

        while not operation.done:
            if max_polls is not None and polls >= max_polls:
                raise PollTimeoutError(
                    f"Video job did not complete within {polling.max_wait_seconds:.0f} seconds",
                    waited_seconds=polls * polling.interval_seconds,
                )

            await asyncio.sleep(polling.interval_seconds)

            try:
                operation = await client.aio.operations.get(operation)
            except genai_errors.APIError as e:
                raise GenerationError(_describe(e), error_code=f"API_{e.code}") from e
            except Exception as e:
                raise GenerationError(_describe(e), error_code="POLL_FAILED") from e

            polls += 1
            logger.debug(f"Video job poll {polls}: done={operation.done}")

        logger.info(f"Video job finished after {polls} polls")
        return operation

    async def _download(self, video_uri: str, api_key: str) -> VideoHandle:
        """Fetch the finished video and write it to the session directory."""
        url = httpx.URL(video_uri).copy_merge_params({"key": api_key})

        async with httpx.AsyncClient(
            timeout=self.config.polling.download_timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        ) as http:
            try:
                response = await http.get(url)
            except httpx.HTTPError as e:
                raise DownloadError(f"Failed to fetch video: {_describe(e)}") from e

        if not response.is_success:
            raise DownloadError(
                f"Failed to fetch video: {response.reason_phrase}",
                status_code=response.status_code,
            )

        mime_type = response.headers.get("content-type", "video/mp4").split(";")[0].strip()
        output_path = self.output_dir / f"video_{uuid.uuid4().hex[:8]}.mp4"

        async with aiofiles.open(output_path, "wb") as f:
            await f.write(response.content)

        logger.info(
            f"Video downloaded: {output_path} ({len(response.content) / 1024 / 1024:.1f} MB)"
        )
        return VideoHandle(
            path=output_path,
            mime_type=mime_type or "video/mp4",
            size_bytes=len(response.content),
        )
