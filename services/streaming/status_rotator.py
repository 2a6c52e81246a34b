"""
Rotating status messages for long-running animation jobs.

The messages are cosmetic: they cycle on their own timer and say nothing
about the real state of the remote job.

Usage:
    rotator = StatusRotator(messages, interval_seconds=4.0)
    rotator.on_message(lambda text: print(text))

    async with rotator:
        await gateway.animate_image(image, "16:9")
    # rotation stopped and "" emitted, whatever happened inside
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class StatusRotator:
    """Cycles a fixed list of messages on an interval until stopped."""

    def __init__(self, messages: list[str], interval_seconds: float = 4.0):
        if not messages:
            raise ValueError("StatusRotator needs at least one message")
        self.messages = list(messages)
        self.interval_seconds = interval_seconds

        self._index = 0
        self._task: Optional[asyncio.Task] = None
        self._callbacks: list[Callable[[str], None]] = []

    def on_message(self, callback: Callable[[str], None]):
        """Register callback for message changes. "" means cleared."""
        self._callbacks.append(callback)

    @property
    def current(self) -> str:
        return self.messages[self._index] if self.running else ""

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _emit(self, message: str):
        for callback in self._callbacks:
            try:
                callback(message)
            except Exception as e:
                logger.warning(f"Status callback failed: {e}")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            self._index = (self._index + 1) % len(self.messages)
            self._emit(self.messages[self._index])

    def start(self):
        """Emit the first message and start cycling."""
        if self.running:
            return
        self._index = 0
        self._emit(self.messages[0])
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        """Cancel the timer and clear the message."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._emit("")

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False
