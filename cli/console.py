"""
Console rendering for the logo studio.

Prints one line per meaningful state change; rotating status messages are
redrawn in place.

Usage:
    console = StudioConsole()
    studio.on_change(console.render)
"""

import sys
from typing import Optional, TextIO

from services.orchestrator.state import ImagePhase, StudioState, VideoPhase


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Clear line
    CLEAR_LINE = "\033[2K\r"


def colored(text: str, color: str) -> str:
    """Apply color to text."""
    return f"{color}{text}{Colors.RESET}"


IMAGE_LINES = {
    ImagePhase.REQUESTING: ("🎨", "Generating logo...", Colors.CYAN),
    ImagePhase.READY: ("✅", "Logo ready", Colors.GREEN),
}

VIDEO_LINES = {
    VideoPhase.CREDENTIAL_CHECK: ("🔑", "Checking API key", Colors.DIM),
    VideoPhase.AWAITING_CREDENTIAL: ("🔑", "Waiting for API key selection", Colors.YELLOW),
    VideoPhase.REQUESTING: ("🚀", "Submitting animation job", Colors.CYAN),
    VideoPhase.POLLING: ("⏳", "Animation job running", Colors.CYAN),
    VideoPhase.READY: ("🎬", "Animation ready", Colors.GREEN),
}


def format_change(previous: Optional[StudioState], state: StudioState) -> list[str]:
    """Lines describing what changed between two states."""
    lines = []

    if previous is None or previous.image_phase != state.image_phase:
        if state.image_phase in IMAGE_LINES:
            icon, text, color = IMAGE_LINES[state.image_phase]
            lines.append(f"{icon} {colored(text, color)}")

    if previous is None or previous.video_phase != state.video_phase:
        if state.video_phase in VIDEO_LINES:
            icon, text, color = VIDEO_LINES[state.video_phase]
            lines.append(f"{icon} {colored(text, color)}")
        if state.video_phase == VideoPhase.READY and state.video:
            lines.append(colored(f"    → {state.video.path}", Colors.DIM))

    if state.error and (previous is None or previous.error != state.error):
        lines.append(f"❌ {colored('Error: ', Colors.RED + Colors.BOLD)}{colored(state.error, Colors.RED)}")

    return lines


class StudioConsole:
    """Renders studio state changes to a terminal."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._previous: Optional[StudioState] = None
        self._status_shown = False

    def _write(self, text: str):
        self.stream.write(text)
        self.stream.flush()

    def render(self, state: StudioState):
        lines = format_change(self._previous, state)
        previous_status = self._previous.status_message if self._previous else ""
        self._previous = state

        if lines:
            if self._status_shown:
                self._write(Colors.CLEAR_LINE)
                self._status_shown = False
            self._write("\n".join(lines) + "\n")

        if state.status_message != previous_status:
            if state.status_message:
                self._write(f"{Colors.CLEAR_LINE}⏳ {colored(state.status_message, Colors.DIM)}")
                self._status_shown = True
            elif self._status_shown:
                self._write(Colors.CLEAR_LINE)
                self._status_shown = False
