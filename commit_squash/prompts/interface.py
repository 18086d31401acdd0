"""Abstract interface for the user-facing side of a squash."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from ..core.types import Commit


class SquashPrompter(ABC):
    """Chooses commits and confirms the squashed commit's message."""

    @abstractmethod
    def select_commits(self, commits: Sequence[Commit]) -> Optional[List[Commit]]:
        """Let the user pick commits to squash.

        Args:
            commits: Candidate commits, newest first

        Returns:
            The chosen commits, or None if the user cancelled
        """
        pass

    @abstractmethod
    def edit_message(self, default_message: str) -> Optional[str]:
        """Let the user edit the squashed commit's message.

        Args:
            default_message: Message proposed from the selected commits

        Returns:
            Final message, or None if the user cancelled
        """
        pass
