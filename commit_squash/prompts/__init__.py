"""Prompters that choose commits and confirm the squash message."""

from .interface import SquashPrompter
from .scripted import ScriptedPrompter
from .terminal import TerminalPrompter

__all__ = ["SquashPrompter", "ScriptedPrompter", "TerminalPrompter"]
