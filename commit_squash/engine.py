"""Squash engine: rewrite history so selected commits become one."""

import logging
from typing import List, Optional, Sequence

from .core.config import SquashConfig
from .core.message import CommitMessageResolver, MessageEditor
from .core.types import (
    Commit, CommitRange, InsufficientSelectionError, RepositoryState,
    SquashError, SquashResult, SquashStage, UnsupportedHistoryError
)
from .git.gateway import GitGateway
from .git.history import CommitHistoryReader
from .git.replay import CommitReplayer
from .git.state import RepositoryStateSnapshot

logger = logging.getLogger(__name__)


class SquashEngine:
    """Squashes an arbitrary selection of commits on the current branch.

    The rewrite happens on a scratch branch created at the parent of the
    earliest selected commit. The selected commits are cherry-picked there
    and folded into one new commit; the original branch is then moved onto
    that commit and every unselected commit is replayed on top, oldest
    first. If anything fails once the repository state has been saved, the
    branch, working tree and stash are put back exactly as they were.
    """

    def __init__(self,
                 gateway: GitGateway,
                 history: CommitHistoryReader,
                 snapshot: RepositoryStateSnapshot,
                 replayer: CommitReplayer,
                 message_resolver: CommitMessageResolver,
                 config: SquashConfig):
        self.gateway = gateway
        self.history = history
        self.snapshot = snapshot
        self.replayer = replayer
        self.message_resolver = message_resolver
        self.config = config
        self.stage = SquashStage.IDLE

    @classmethod
    def from_gateway(cls, gateway: GitGateway, config: Optional[SquashConfig] = None) -> 'SquashEngine':
        """Build an engine with the default collaborators."""
        config = config or gateway.config
        history = CommitHistoryReader(gateway, config)
        return cls(
            gateway=gateway,
            history=history,
            snapshot=RepositoryStateSnapshot(gateway, config),
            replayer=CommitReplayer(gateway),
            message_resolver=CommitMessageResolver(history.read_message),
            config=config,
        )

    def squash(self, selected: Sequence[Commit],
               edit_message: Optional[MessageEditor] = None) -> SquashResult:
        """Squash ``selected`` into a single commit.

        Args:
            selected: Commits to fold together, in any order
            edit_message: Called with the default message; returns the final
                message, or None to cancel

        Returns:
            Description of the rewritten history
        """
        self.stage = SquashStage.IDLE
        self._enter(SquashStage.VALIDATING)
        unique_ids = {c.full_id for c in selected}
        if len(unique_ids) < 2:
            raise InsufficientSelectionError("Select at least two commits to squash")

        with self.gateway.time_limit(self.config.timeout_seconds):
            commit_range = self.history.compute_range(selected)
            self._enter(SquashStage.RANGE_COMPUTED)

            message = self.message_resolver.resolve(commit_range.to_squash, edit_message)
            self._enter(SquashStage.MESSAGE_PREPARED)

            state = self.snapshot.capture()
            if state.original_head_id != commit_range.tip_id:
                raise UnsupportedHistoryError(
                    f"HEAD moved from {commit_range.tip_id[:8]} to "
                    f"{state.original_head_id[:8]} while the squash was being prepared")
            self._enter(SquashStage.STATE_SAVED)

            try:
                self.snapshot.set_aside(state)
                squashed_id, skipped = self._rewrite(state, commit_range, message)
                skipped += self._integrate(state, commit_range, squashed_id)
                new_head = self.gateway.run(["rev-parse", "HEAD"]).strip()
            except BaseException as error:
                # KeyboardInterrupt included: an abandoned rewrite must not stay
                self._roll_back(state, error)
                raise

        with self.gateway.unrestricted():
            cleanup_errors = self.snapshot.restore(state, failure_occurred=False)
        self._enter(SquashStage.COMMITTED)

        result = SquashResult(
            branch=state.current_branch,
            original_head_id=state.original_head_id,
            squashed_commit_id=squashed_id,
            new_head_id=new_head,
            message=message,
            commit_range=commit_range,
            skipped=skipped,
            cleanup_errors=cleanup_errors,
        )
        logger.info("Squash complete: %s", result.summary_stats())
        return result

    def _rewrite(self, state: RepositoryState, commit_range: CommitRange,
                 message: str) -> tuple[str, List[Commit]]:
        """Build the squashed commit on the scratch branch."""
        self._enter(SquashStage.REWRITING)
        anchor = commit_range.anchor_id

        logger.info("Creating scratch branch %s at %s", state.scratch_branch, anchor[:8])
        self.gateway.run(["checkout", "-b", state.scratch_branch, anchor])

        skipped = self.replayer.apply_all(commit_range.to_squash)

        tree_hash = self.gateway.run(["rev-parse", "HEAD^{tree}"]).strip()
        squashed_id = self.gateway.run(
            ["commit-tree", tree_hash, "-p", anchor, "-m", message]).strip()
        logger.info("Created squashed commit %s", squashed_id[:8])
        return squashed_id, skipped

    def _integrate(self, state: RepositoryState, commit_range: CommitRange,
                   squashed_id: str) -> List[Commit]:
        """Move the branch onto the squashed commit and replay the rest."""
        self._enter(SquashStage.INTEGRATING)

        self.gateway.run(["checkout", state.current_branch])
        logger.info("Resetting %s to %s", state.current_branch, squashed_id[:8])
        self.gateway.run(["reset", "--hard", squashed_id])

        skipped = self.replayer.apply_all(commit_range.to_reapply)
        skipped += self.replayer.apply_all(commit_range.later)
        return skipped

    def _roll_back(self, state: RepositoryState, error: BaseException) -> None:
        logger.error("Squash failed during %s: %s", self.stage.value, error)
        with self.gateway.unrestricted():
            cleanup_errors = self.snapshot.restore(state, failure_occurred=True)
        self._enter(SquashStage.ROLLED_BACK)

        if cleanup_errors:
            if isinstance(error, SquashError):
                error.cleanup_errors.extend(cleanup_errors)
            error.add_note(
                "Restoring the repository also failed; manual intervention may be needed:\n"
                + "\n".join(f"  - {e}" for e in cleanup_errors))

    def _enter(self, stage: SquashStage) -> None:
        logger.debug("Stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage
