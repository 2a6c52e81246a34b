"""
Logo Animator Core Components

Provides foundational infrastructure for the logo studio:
- Configuration loaded from the environment
- Error taxonomy shared by the gateway and the orchestrator
- Host credential interface
"""

from .config import Config, get_config
from .credentials import CredentialProvider, EnvCredentialProvider, PromptCredentialProvider
from .errors import (
    DownloadError,
    GenerationError,
    LogoAnimatorError,
    MissingResultError,
    PollTimeoutError,
    ValidationError,
)

__all__ = [
    "Config",
    "get_config",
    "CredentialProvider",
    "EnvCredentialProvider",
    "PromptCredentialProvider",
    "LogoAnimatorError",
    "ValidationError",
    "GenerationError",
    "MissingResultError",
    "DownloadError",
    "PollTimeoutError",
]
