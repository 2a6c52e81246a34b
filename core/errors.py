"""
Error taxonomy for Logo Animator.

Every failure the studio can report derives from LogoAnimatorError. The
orchestrator catches these at its boundary and turns them into display
state; none of them is fatal to the process.
"""

from typing import Optional

# Failure signature the service returns when the selected API key is rejected
CREDENTIAL_REJECTED_SIGNATURE = "Requested entity was not found"


class LogoAnimatorError(Exception):
    """Base class for all Logo Animator errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(LogoAnimatorError):
    """Raised for bad user input (empty description, missing or non-image file)."""


class GenerationError(LogoAnimatorError):
    """Raised when the remote service rejects or fails a generation call."""

    @property
    def is_credential_rejected(self) -> bool:
        return is_credential_rejection(self)


class MissingResultError(LogoAnimatorError):
    """Raised when a finished video job carries no download location."""


class DownloadError(LogoAnimatorError):
    """Raised when the finished video cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, error_code=f"HTTP_{status_code}" if status_code else "DOWNLOAD_FAILED")


class PollTimeoutError(LogoAnimatorError):
    """Raised when a video job does not finish within the configured cap."""

    def __init__(self, message: str, waited_seconds: float):
        self.waited_seconds = waited_seconds
        super().__init__(message, error_code="POLL_TIMEOUT")


def is_credential_rejection(error: BaseException) -> bool:
    """Whether an error carries the rejected-credential signature."""
    return CREDENTIAL_REJECTED_SIGNATURE in str(error)
