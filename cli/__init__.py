"""
Logo Animator CLI Tools

Command-line helpers for driving the studio from a terminal.

Tools:
- console: Colored rendering of studio state changes
"""

from .console import StudioConsole

__all__ = ["StudioConsole"]
