"""
Commit Squash Tool

Squash any selection of commits on the current branch into one commit,
replaying everything else and rolling back cleanly on failure.
"""

__version__ = "1.0.0"

from .core.config import SquashConfig
from .core.types import Commit, CommitRange, RepositoryState, SquashResult
from .git.gateway import GitGateway
from .git.history import CommitHistoryReader
from .git.state import RepositoryStateSnapshot
from .prompts.interface import SquashPrompter
from .prompts.scripted import ScriptedPrompter
from .prompts.terminal import TerminalPrompter
from .engine import SquashEngine

__all__ = [
    "SquashConfig",
    "Commit",
    "CommitRange",
    "RepositoryState",
    "SquashResult",
    "GitGateway",
    "CommitHistoryReader",
    "RepositoryStateSnapshot",
    "SquashPrompter",
    "ScriptedPrompter",
    "TerminalPrompter",
    "SquashEngine"
]
