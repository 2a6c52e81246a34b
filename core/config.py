"""
Configuration management for Logo Animator.

Centralizes all configuration including:
- API credential
- Model selections and prompt templates
- Job polling settings
- Studio (presentation) settings
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass
class APIConfig:
    """API configuration for the generative media service."""

    api_key: str = field(
        default_factory=lambda: os.getenv("API_KEY") or os.getenv("GOOGLE_API_KEY", "")
    )


@dataclass
class ModelConfig:
    """Model selection and prompt configuration."""

    image_model: str = field(
        default_factory=lambda: os.getenv("LOGO_IMAGE_MODEL", "imagen-4.0-generate-001")
    )
    video_model: str = field(
        default_factory=lambda: os.getenv("LOGO_VIDEO_MODEL", "veo-3.1-fast-generate-preview")
    )

    # Image generation is always a single square PNG
    image_mime_type: str = "image/png"
    image_aspect_ratio: str = "1:1"

    # Video generation options
    video_resolution: str = "720p"

    logo_prompt_template: str = (
        "A professional, modern, minimalist logo for a company. "
        "The logo should be based on the following description: \"{description}\". "
        "The logo should be on a clean, solid background."
    )
    animation_prompt: str = (
        "Animate this logo with a subtle, professional, and engaging motion. "
        "The animation should be clean and elegant."
    )


@dataclass
class PollingConfig:
    """Configuration for the video job poll loop."""

    interval_seconds: float = field(
        default_factory=lambda: _env_float("VIDEO_POLL_INTERVAL_SECONDS", 5.0)
    )
    # 0 disables the cap
    max_wait_seconds: float = field(
        default_factory=lambda: _env_float("VIDEO_POLL_MAX_SECONDS", 900.0)
    )
    download_timeout_seconds: float = 300.0


@dataclass
class StudioConfig:
    """Configuration for the logo studio."""

    status_messages: list[str] = field(default_factory=lambda: [
        "Warming up the animation engine...",
        "Choreographing pixel movements...",
        "Rendering cinematic magic...",
        "This can take a few minutes, please wait...",
        "Almost there, adding the final touches...",
    ])
    status_interval_seconds: float = 4.0

    default_prompt: str = "A stylized phoenix rising from ashes, for a tech startup."
    default_aspect_ratio: str = "16:9"

    # Empty means a fresh temporary directory per session
    output_dir: str = field(default_factory=lambda: os.getenv("LOGO_OUTPUT_DIR", ""))

    # Re-query the host after the key picker returns instead of assuming success
    verify_credential_selection: bool = field(
        default_factory=lambda: os.getenv("STUDIO_VERIFY_CREDENTIAL", "false").lower() == "true"
    )


@dataclass
class Config:
    """Main configuration class."""

    api: APIConfig = field(default_factory=APIConfig)
    models: ModelConfig = field(default_factory=ModelConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    studio: StudioConfig = field(default_factory=StudioConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.api.api_key:
            issues.append("API_KEY not configured (needed for image and video generation)")

        if self.polling.interval_seconds <= 0:
            issues.append("VIDEO_POLL_INTERVAL_SECONDS must be positive")

        if self.polling.max_wait_seconds < 0:
            issues.append("VIDEO_POLL_MAX_SECONDS must be zero (unbounded) or positive")

        if not self.studio.status_messages:
            issues.append("At least one status message is required")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
