"""
Host credential interface.

The studio asks the host two things before animating: is a key selected, and
(if not) to let the user pick one. The picker gives no confirmation that a key
was actually chosen, so callers decide whether to trust it.

Usage:
    provider = EnvCredentialProvider()

    if not await provider.has_selected_key():
        await provider.open_select_key()

    api_key = provider.get_api_key()  # read fresh on every gateway call
"""

import asyncio
import getpass
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from .errors import GenerationError

logger = logging.getLogger(__name__)


def _key_from_env() -> str:
    return os.getenv("API_KEY") or os.getenv("GOOGLE_API_KEY", "")


class CredentialProvider(ABC):
    """Abstract host credential interface."""

    @abstractmethod
    def get_api_key(self) -> str:
        """Return the currently selected key. Raises GenerationError if none."""

    @abstractmethod
    async def has_selected_key(self) -> bool:
        """Whether a usable key is currently selected."""

    @abstractmethod
    async def open_select_key(self) -> None:
        """Run the interactive key selection. Returns without confirmation."""


class EnvCredentialProvider(CredentialProvider):
    """
    Credential provider backed by the process environment.

    An explicitly selected key (from select_key) takes precedence over
    API_KEY / GOOGLE_API_KEY. Opening the picker just re-reads the
    environment, which is what a headless host can offer.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._selected_key = api_key or ""

    def select_key(self, api_key: str):
        """Select a key explicitly (e.g. submitted through the HTTP API)."""
        self._selected_key = api_key.strip()
        logger.info("API key selected")

    def clear(self):
        self._selected_key = ""

    def get_api_key(self) -> str:
        key = self._selected_key or _key_from_env()
        if not key:
            raise GenerationError(
                "API_KEY environment variable not set.",
                error_code="NO_API_KEY",
            )
        return key

    async def has_selected_key(self) -> bool:
        return bool(self._selected_key or _key_from_env())

    async def open_select_key(self) -> None:
        logger.info("Key selection requested; re-reading API_KEY from environment")


class PromptCredentialProvider(EnvCredentialProvider):
    """Credential provider that asks for the key on the terminal."""

    def __init__(self, api_key: Optional[str] = None, prompt: str = "Select API key: "):
        super().__init__(api_key)
        self.prompt = prompt

    async def open_select_key(self) -> None:
        # getpass blocks, keep the event loop free
        key = await asyncio.to_thread(getpass.getpass, self.prompt)
        if key.strip():
            self.select_key(key)
        else:
            logger.warning("Key selection returned without a key")
