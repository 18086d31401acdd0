"""Interactive terminal prompter."""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from .interface import SquashPrompter
from ..core.types import Commit

logger = logging.getLogger(__name__)

EDITOR_ENV_VARS = ('GIT_EDITOR', 'VISUAL', 'EDITOR')
DEFAULT_EDITOR = 'vi'


def parse_selection(text: str, count: int) -> List[int]:
    """Parse '1,3-5' style input into zero-based indexes.

    Raises:
        ValueError: On malformed input or numbers outside 1..count
    """
    indexes: List[int] = []
    for part in text.replace(' ', '').split(','):
        if not part:
            continue
        if '-' in part:
            start_str, _, end_str = part.partition('-')
            start, end = int(start_str), int(end_str)
            if start > end:
                start, end = end, start
            numbers = range(start, end + 1)
        else:
            numbers = [int(part)]

        for number in numbers:
            if not 1 <= number <= count:
                raise ValueError(f"{number} is not between 1 and {count}")
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes


def find_editor() -> str:
    """Editor command from the environment, git's lookup order."""
    for var in EDITOR_ENV_VARS:
        value = os.environ.get(var, '').strip()
        if value:
            return value
    return DEFAULT_EDITOR


class TerminalPrompter(SquashPrompter):
    """Prompts on stdin/stdout and edits messages in the user's editor."""

    def __init__(self,
                 input_func: Callable[[str], str] = input,
                 editor: Optional[str] = None):
        self.input_func = input_func
        self.editor = editor

    def select_commits(self, commits: Sequence[Commit]) -> Optional[List[Commit]]:
        display_commits(commits)
        while True:
            response = self.input_func(
                "\nCommits to squash (e.g. 1,3-4, empty to cancel): ").strip()
            if not response:
                return None
            try:
                indexes = parse_selection(response, len(commits))
            except ValueError as e:
                print(f"Invalid selection: {e}")
                continue
            return [commits[i] for i in indexes]

    def edit_message(self, default_message: str) -> Optional[str]:
        editor = self.editor or find_editor()
        with tempfile.TemporaryDirectory(prefix="commit-squash-") as temp_dir:
            path = Path(temp_dir) / "SQUASH_MSG"
            path.write_text(default_message + "\n")

            logger.debug("Opening editor: %s %s", editor, path)
            # run through the shell with the file as $1, as git does
            try:
                result = subprocess.run([f'{editor} "$@"', editor, str(path)], shell=True)
            except OSError as e:
                logger.error("Could not start editor %s: %s", editor, e)
                return None
            if result.returncode != 0:
                logger.warning("Editor exited with status %d", result.returncode)
                return None

            message = path.read_text().rstrip()

        return message or None


def display_commits(commits: Sequence[Commit]) -> None:
    """Print commits as a numbered list, newest first."""
    print("\n" + "=" * 80)
    print("RECENT COMMITS")
    print("=" * 80)
    width = len(str(len(commits)))
    for number, commit in enumerate(commits, 1):
        when = commit.timestamp.strftime('%Y-%m-%d %H:%M:%S')
        print(f"{number:>{width}}. {commit.short_id}  {commit.message}")
        print(f"{' ' * width}  {commit.author}, {when}")
