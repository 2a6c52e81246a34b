"""
Progress display helpers.

Usage:
    from services.streaming import StatusRotator

    async with StatusRotator(messages, interval_seconds=4.0) as rotator:
        ...
"""

from .status_rotator import StatusRotator

__all__ = ["StatusRotator"]
