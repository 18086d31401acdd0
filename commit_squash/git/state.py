"""Capturing and restoring repository state around a rewrite."""

import logging
import secrets
import time
from typing import List, Optional

from ..core.config import SquashConfig
from ..core.types import DetachedHeadError, RepositoryState, SquashError
from .gateway import GitGateway, split_lines

logger = logging.getLogger(__name__)


class RepositoryStateSnapshot:
    """Records the pre-operation state and puts it back afterwards."""

    def __init__(self, gateway: GitGateway, config: Optional[SquashConfig] = None):
        self.gateway = gateway
        self.config = config or gateway.config

    def capture(self) -> RepositoryState:
        """Describe the current state without changing anything."""
        current_branch = self.gateway.run(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
        if current_branch == "HEAD":
            raise DetachedHeadError("HEAD is detached; check out a branch before squashing")

        original_head = self.gateway.run(["rev-parse", "HEAD"]).strip()
        status = self.gateway.run(["status", "--porcelain"])
        had_changes = bool(status.strip())

        state = RepositoryState(
            current_branch=current_branch,
            original_head_id=original_head,
            scratch_branch=self._unique_branch_name(),
            had_uncommitted_changes=had_changes,
            stash_token=self._unique_token(self.config.stash_prefix),
        )
        logger.info("Saved state: %s at %s%s", state.current_branch,
                    state.original_head_id[:8],
                    " (uncommitted changes)" if had_changes else "")
        return state

    def set_aside(self, state: RepositoryState) -> None:
        """Stash uncommitted changes under the state's token."""
        if not state.had_uncommitted_changes:
            return

        cmd = ["stash", "push"]
        if self.config.stash_untracked:
            cmd.append("--include-untracked")
        cmd.extend(["-m", state.stash_token])

        logger.info("Stashing uncommitted changes as %s", state.stash_token)
        self.gateway.run(cmd)

    def restore(self, state: RepositoryState, failure_occurred: bool) -> List[str]:
        """Return to the saved branch, undoing the rewrite if it failed.

        Every step is attempted even if an earlier one fails. Problems are
        logged and returned rather than raised, so the caller's original
        error stays the one that is reported. Calling this twice is safe.
        """
        errors: List[str] = []

        def attempt(description: str, action) -> None:
            try:
                action()
            except Exception as e:
                logger.warning("Cleanup step failed (%s): %s", description, e)
                errors.append(f"{description}: {e}")

        if failure_occurred:
            attempt("abort cherry-pick", self._abort_cherry_pick)

        # Branch and HEAD are only touched when they differ from the snapshot,
        # so a repeated call cannot discard changes an earlier one unstashed.
        if self._current_branch() != state.current_branch:
            checkout = ["checkout", state.current_branch]
            if failure_occurred:
                checkout.insert(1, "--force")
            attempt(f"checkout {state.current_branch}", lambda: self.gateway.run(checkout))

        if failure_occurred and self._head() != state.original_head_id:
            logger.info("Resetting %s to %s", state.current_branch, state.original_head_id[:8])
            attempt(f"reset to {state.original_head_id[:8]}",
                    lambda: self.gateway.run(["reset", "--hard", state.original_head_id]))

        attempt(f"delete {state.scratch_branch}", lambda: self._delete_scratch_branch(state))

        if state.had_uncommitted_changes:
            attempt("restore stashed changes", lambda: self._pop_stash(state.stash_token))

        if errors:
            logger.warning("Cleanup finished with %d problem(s); manual intervention may be needed",
                           len(errors))
        return errors

    def _current_branch(self) -> str:
        return self._resolve(["rev-parse", "--abbrev-ref", "HEAD"])

    def _head(self) -> str:
        return self._resolve(["rev-parse", "HEAD"])

    def _resolve(self, args: List[str]) -> str:
        """Output of a query, or "" when it cannot be answered."""
        try:
            result = self.gateway.probe(args)
        except SquashError as e:
            logger.debug("Could not run git %s: %s", " ".join(args), e)
            return ""
        return result.stdout.strip() if result.returncode == 0 else ""

    def _abort_cherry_pick(self) -> None:
        if self.gateway.ref_exists("CHERRY_PICK_HEAD"):
            logger.info("Aborting in-progress cherry-pick")
            self.gateway.run(["cherry-pick", "--abort"])

    def _delete_scratch_branch(self, state: RepositoryState) -> None:
        if not self.gateway.branch_exists(state.scratch_branch):
            logger.debug("Scratch branch %s already gone", state.scratch_branch)
            return
        self.gateway.run(["branch", "-D", state.scratch_branch])

    def _pop_stash(self, token: str) -> None:
        output = self.gateway.run(["stash", "list", "--format=%gd%x1f%gs"])
        for line in split_lines(output):
            ref, _, subject = line.partition("\x1f")
            if token in subject:
                logger.info("Restoring stashed changes from %s", ref)
                self.gateway.run(["stash", "pop", "--index", ref])
                return
        logger.info("No stashed changes found for '%s'", token)

    def _unique_branch_name(self) -> str:
        """A scratch branch name no existing ref uses."""
        while True:
            name = self._unique_token(self.config.scratch_branch_prefix)
            if not self.gateway.branch_exists(name):
                return name
            logger.debug("Scratch branch name %s taken, generating another", name)

    @staticmethod
    def _unique_token(prefix: str) -> str:
        return f"{prefix}-{time.time_ns()}-{secrets.token_hex(4)}"
