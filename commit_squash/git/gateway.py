"""The single point of contact with the git binary."""

import logging
import subprocess
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from ..core.config import SquashConfig
from ..core.types import GatewayFailureError, SquashTimeoutError

logger = logging.getLogger(__name__)


class GitGateway:
    """Runs git commands against one repository.

    Commands run strictly one after another. When a time limit is active the
    deadline is checked before each command is started; a command that is
    already running is never interrupted.
    """

    def __init__(self,
                 repo_path: Optional[Union[str, Path]] = None,
                 config: Optional[SquashConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or SquashConfig()
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self._clock = clock
        self._deadline: Optional[float] = None
        self._validate_git_repository()

    def execute(self, args: Sequence[str], check: bool = True,
                cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        """Run a git command and return the completed process."""
        self._check_deadline(args)

        full_cmd = [self.config.git_binary] + list(args)
        logger.debug("Running git command: %s", " ".join(full_cmd))

        try:
            result = subprocess.run(
                full_cmd,
                cwd=cwd or self.repo_path,
                capture_output=True,
                text=True,
                # reflog subjects and messages are not re-encoded by git
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise GatewayFailureError(args, None, str(e)) from e

        if result.returncode != 0:
            logger.debug("Git command exited %d: %s\nStderr: %s",
                         result.returncode, " ".join(full_cmd), result.stderr.strip())
            if check:
                raise GatewayFailureError(args, result.returncode, result.stderr or result.stdout)
        return result

    def run(self, args: Sequence[str], cwd: Optional[Path] = None) -> str:
        """Run a git command and return its standard output."""
        return self.execute(args, check=True, cwd=cwd).stdout

    def probe(self, args: Sequence[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        """Run a git command whose exit status is the answer."""
        return self.execute(args, check=False, cwd=cwd)

    def ref_exists(self, ref: str) -> bool:
        """Check if a ref or revision resolves."""
        return self.probe(["rev-parse", "--verify", "--quiet", ref]).returncode == 0

    def branch_exists(self, branch_name: str) -> bool:
        """Check if a local branch exists."""
        result = self.probe(["show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}"])
        return result.returncode == 0

    @contextmanager
    def time_limit(self, seconds: Optional[float]) -> Iterator[None]:
        """Fail commands started after ``seconds`` have elapsed."""
        previous = self._deadline
        if seconds is not None:
            deadline = self._clock() + seconds
            self._deadline = deadline if previous is None else min(previous, deadline)
        try:
            yield
        finally:
            self._deadline = previous

    @contextmanager
    def unrestricted(self) -> Iterator[None]:
        """Lift any active time limit, e.g. while rolling back."""
        previous = self._deadline
        self._deadline = None
        try:
            yield
        finally:
            self._deadline = previous

    def _check_deadline(self, args: Sequence[str]) -> None:
        if self._deadline is not None and self._clock() >= self._deadline:
            raise SquashTimeoutError(
                f"Time limit expired before running: git {' '.join(args)}")

    def _validate_git_repository(self) -> None:
        """Validate that the path is inside a git repository."""
        try:
            git_dir = self.run(["rev-parse", "--git-dir"]).strip()
            logger.debug("Git repository found at: %s", git_dir)
        except GatewayFailureError as e:
            raise GatewayFailureError(
                e.command, e.returncode,
                f"Not a git repository: {self.repo_path}") from e


def split_lines(output: str) -> List[str]:
    """Non-empty lines of command output."""
    # str.splitlines would also break on separators a subject may contain
    return [line.rstrip("\r") for line in output.split("\n") if line.strip()]
