"""Default message for the squashed commit."""

import logging
from typing import Callable, List, Optional, Sequence

from .types import Commit, NoMessageProvidedError

logger = logging.getLogger(__name__)

MessageEditor = Callable[[str], Optional[str]]


class CommitMessageResolver:
    """Builds the squashed commit's message and lets the caller edit it."""

    def __init__(self, read_message: Callable[[Commit], str]):
        self.read_message = read_message

    def default_message(self, commits: Sequence[Commit]) -> str:
        """One message if they are all identical, otherwise all of them.

        Messages are taken oldest to newest and joined by a blank line.
        """
        messages: List[str] = [self.read_message(c) for c in commits]
        if not messages:
            return ""
        if all(m == messages[0] for m in messages):
            return messages[0]
        return "\n\n".join(messages)

    def resolve(self, commits: Sequence[Commit], edit_message: Optional[MessageEditor] = None) -> str:
        """Final message after the caller's edit/confirm step."""
        default = self.default_message(commits)
        if edit_message is None:
            return default

        message = edit_message(default)
        if message is None or not message.strip():
            logger.info("No commit message provided, aborting")
            raise NoMessageProvidedError("Squash cancelled: no commit message provided")
        return message
