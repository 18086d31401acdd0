"""Non-interactive prompter with a fixed selection and message."""

import logging
from typing import List, Optional, Sequence
from .interface import SquashPrompter
from ..core.types import Commit

logger = logging.getLogger(__name__)


class ScriptedPrompter(SquashPrompter):
    """Answers prompts from values given up front.

    Used for ``--commits`` runs and in tests. Without a message the default
    message is accepted unchanged.
    """

    def __init__(self, selection: Sequence[Commit], message: Optional[str] = None):
        self.selection = list(selection)
        self.message = message

    def select_commits(self, commits: Sequence[Commit]) -> Optional[List[Commit]]:
        logger.debug("Using scripted selection of %d commits", len(self.selection))
        return list(self.selection)

    def edit_message(self, default_message: str) -> Optional[str]:
        if self.message is None:
            return default_message
        return self.message
