"""Type definitions for the commit squash tool."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Commit:
    """A single non-merge commit as read from history."""
    short_id: str
    full_id: str
    author: str
    timestamp: datetime
    message: str  # subject line

    def __eq__(self, other):
        if not isinstance(other, Commit):
            return NotImplemented
        return self.full_id == other.full_id

    def __hash__(self):
        return hash(self.full_id)

    @property
    def display_name(self) -> str:
        """Short id and subject, for listings and logs."""
        return f"{self.short_id} {self.message}"


@dataclass(frozen=True)
class CommitRange:
    """Commits affected by one squash attempt, each part oldest first."""
    anchor_id: str
    to_squash: Tuple[Commit, ...]
    to_reapply: Tuple[Commit, ...] = ()
    later: Tuple[Commit, ...] = ()
    tip_id: str = ""  # HEAD the range was computed against

    @property
    def earliest(self) -> Commit:
        return self.to_squash[0]

    @property
    def latest(self) -> Commit:
        return self.to_squash[-1]

    @property
    def replay_order(self) -> Tuple[Commit, ...]:
        """Commits replayed on top of the squashed commit."""
        return self.to_reapply + self.later

    @property
    def all_commits(self) -> Tuple[Commit, ...]:
        return self.to_squash + self.to_reapply + self.later


@dataclass(frozen=True)
class RepositoryState:
    """Everything needed to put the repository back as it was."""
    current_branch: str
    original_head_id: str
    scratch_branch: str
    had_uncommitted_changes: bool
    stash_token: str


class SquashStage(Enum):
    """Stages of a single squash attempt."""
    IDLE = "idle"
    VALIDATING = "validating"
    RANGE_COMPUTED = "range-computed"
    MESSAGE_PREPARED = "message-prepared"
    STATE_SAVED = "state-saved"
    REWRITING = "rewriting"
    INTEGRATING = "integrating"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled-back"


class ReplayOutcome(Enum):
    """Result of replaying one commit."""
    APPLIED = "applied"
    SKIPPED_EMPTY = "skipped-empty"


@dataclass
class SquashResult:
    """Outcome of a successful squash."""
    branch: str
    original_head_id: str
    squashed_commit_id: str
    new_head_id: str
    message: str
    commit_range: CommitRange
    skipped: List[Commit] = field(default_factory=list)
    cleanup_errors: List[str] = field(default_factory=list)

    @property
    def replayed_count(self) -> int:
        """Number of preserved commits that were replayed."""
        return len(self.commit_range.replay_order) - sum(
            1 for c in self.skipped if c in self.commit_range.replay_order)

    def summary_stats(self) -> str:
        """Get summary statistics as string."""
        squashed = len(self.commit_range.to_squash)
        return (f"{squashed} commits → 1 squashed commit, "
                f"{self.replayed_count} commits replayed")


class SquashError(Exception):
    """Base exception for squash operations."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.cleanup_errors: List[str] = []


class InsufficientSelectionError(SquashError):
    """Raised when fewer than two commits are selected."""
    pass


class NoParentForAnchorError(SquashError):
    """Raised when the earliest selected commit is a root commit."""

    def __init__(self, commit_id: str):
        super().__init__(
            f"Commit {commit_id[:8]} has no parent; the root commit cannot be squashed")
        self.commit_id = commit_id


class NoMessageProvidedError(SquashError):
    """Raised when the message edit step is cancelled."""
    pass


class HistoryUnavailableError(SquashError):
    """Raised when commit history cannot be read."""
    pass


class UnsupportedHistoryError(SquashError):
    """Raised when the selection or its range cannot be rewritten."""
    pass


class DetachedHeadError(SquashError):
    """Raised when HEAD is not on a branch."""
    pass


class ReplayConflictError(SquashError):
    """Raised when replaying a commit does not apply cleanly."""

    def __init__(self, commit_id: str, paths: Optional[Sequence[str]] = None, detail: str = ""):
        self.commit_id = commit_id
        self.paths = list(paths or [])
        message = f"Conflict while replaying commit {commit_id[:8]}"
        if self.paths:
            message += f" ({', '.join(self.paths)})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class GatewayFailureError(SquashError):
    """Raised when a git command fails."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], stderr: str):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git {' '.join(self.command)} failed ({returncode}): {stderr.strip()}")


class SquashTimeoutError(SquashError):
    """Raised when the caller's time limit for an attempt expires."""
    pass
