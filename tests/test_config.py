"""
Tests for configuration, credentials and local uploads.

Run with:
    python -m pytest tests/test_config.py -v
"""

import os
import sys
from unittest.mock import patch

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Config, get_config, reload_config
from core.credentials import EnvCredentialProvider, PromptCredentialProvider
from core.errors import (
    DownloadError,
    GenerationError,
    ValidationError,
    is_credential_rejection,
)
from services.generation.models import ImageArtifact, VideoHandle
from services.generation.uploads import image_from_bytes, load_image_file


class TestConfig:
    """Test environment-driven configuration."""

    def setup_method(self):
        for name in ("API_KEY", "GOOGLE_API_KEY", "VIDEO_POLL_INTERVAL_SECONDS",
                     "VIDEO_POLL_MAX_SECONDS", "STUDIO_VERIFY_CREDENTIAL"):
            os.environ.pop(name, None)

    teardown_method = setup_method

    def test_defaults(self):
        config = Config.from_env()

        assert config.polling.interval_seconds == 5.0
        assert config.polling.max_wait_seconds == 900.0
        assert config.models.image_aspect_ratio == "1:1"
        assert config.models.video_resolution == "720p"
        assert len(config.studio.status_messages) == 5
        assert config.studio.verify_credential_selection is False

    def test_env_overrides(self):
        os.environ["API_KEY"] = "env-key"
        os.environ["VIDEO_POLL_INTERVAL_SECONDS"] = "2.5"
        os.environ["VIDEO_POLL_MAX_SECONDS"] = "0"
        os.environ["STUDIO_VERIFY_CREDENTIAL"] = "true"

        config = Config.from_env()

        assert config.api.api_key == "env-key"
        assert config.polling.interval_seconds == 2.5
        assert config.polling.max_wait_seconds == 0
        assert config.studio.verify_credential_selection is True

    def test_validate_reports_issues(self):
        config = Config.from_env()
        config.polling.interval_seconds = 0
        config.studio.status_messages = []

        issues = config.validate()

        assert any("API_KEY" in issue for issue in issues)
        assert any("VIDEO_POLL_INTERVAL_SECONDS" in issue for issue in issues)
        assert any("status message" in issue for issue in issues)

    def test_reload_config(self):
        first = get_config()
        reload_config()
        assert get_config() is not first

    def test_prompt_template_embeds_description(self):
        prompt = Config().models.logo_prompt_template.format(description="An owl")
        assert '"An owl"' in prompt


class TestCredentials:
    """Test credential providers."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    @pytest.mark.asyncio
    async def test_no_key(self):
        provider = EnvCredentialProvider()

        assert await provider.has_selected_key() is False
        with pytest.raises(GenerationError) as exc_info:
            provider.get_api_key()
        assert exc_info.value.error_code == "NO_API_KEY"

    @pytest.mark.asyncio
    async def test_env_key(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
        provider = EnvCredentialProvider()

        assert await provider.has_selected_key() is True
        assert provider.get_api_key() == "google-key"

    def test_selected_key_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "env-key")
        provider = EnvCredentialProvider()
        provider.select_key("  picked-key ")

        assert provider.get_api_key() == "picked-key"

        provider.clear()
        assert provider.get_api_key() == "env-key"

    @pytest.mark.asyncio
    async def test_prompt_provider_selects_entered_key(self):
        provider = PromptCredentialProvider()

        with patch("core.credentials.getpass.getpass", return_value="typed-key"):
            await provider.open_select_key()

        assert provider.get_api_key() == "typed-key"

    @pytest.mark.asyncio
    async def test_prompt_provider_ignores_empty_entry(self):
        provider = PromptCredentialProvider()

        with patch("core.credentials.getpass.getpass", return_value=""):
            await provider.open_select_key()

        assert await provider.has_selected_key() is False


class TestErrors:

    def test_credential_rejection_signature(self):
        assert is_credential_rejection(RuntimeError("404: Requested entity was not found."))
        assert not is_credential_rejection(RuntimeError("quota exceeded"))

    def test_download_error_code(self):
        assert DownloadError("x", status_code=403).error_code == "HTTP_403"
        assert DownloadError("x").error_code == "DOWNLOAD_FAILED"


class TestUploads:
    """Test local image input and artifacts."""

    def test_image_from_bytes(self):
        artifact = image_from_bytes(b"\x89PNG data", "image/png")

        assert artifact.mime_type == "image/png"
        assert artifact.to_bytes() == b"\x89PNG data"

    def test_image_from_bytes_rejects_other_types(self):
        with pytest.raises(ValidationError) as exc_info:
            image_from_bytes(b"hello", "text/plain")
        assert exc_info.value.error_code == "NOT_AN_IMAGE"

        with pytest.raises(ValidationError):
            image_from_bytes(b"hello", None)

    @pytest.mark.asyncio
    async def test_load_image_file(self, tmp_path):
        path = tmp_path / "logo.jpg"
        path.write_bytes(b"jpeg-bytes")

        artifact = await load_image_file(path)

        assert artifact.mime_type == "image/jpeg"
        assert artifact.to_bytes() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_load_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            await load_image_file(tmp_path / "missing.png")

    def test_artifact_is_immutable(self):
        artifact = ImageArtifact.from_bytes(b"x", "image/png")
        with pytest.raises(Exception):
            artifact.data = "other"

    def test_video_release_is_idempotent(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"mp4")
        handle = VideoHandle(path=path, size_bytes=3)

        handle.release()
        handle.release()

        assert not handle.exists
