"""Replaying commits with cherry-pick."""

import logging
from typing import Iterable, List

from ..core.types import Commit, GatewayFailureError, ReplayConflictError, ReplayOutcome
from .gateway import GitGateway, split_lines

logger = logging.getLogger(__name__)


class CommitReplayer:
    """Cherry-picks commits onto the checked out branch.

    A pick that changes nothing is skipped. Anything else that stops a pick
    aborts it and raises ReplayConflictError; there is no partial conflict
    resolution. Whether a failed pick was empty or conflicted is read from
    the repository itself (unmerged paths, CHERRY_PICK_HEAD, index vs HEAD),
    not from git's error text.
    """

    def __init__(self, gateway: GitGateway):
        self.gateway = gateway

    def apply(self, commit: Commit) -> ReplayOutcome:
        """Cherry-pick a single commit."""
        logger.info("Replaying %s", commit.display_name)
        try:
            self.gateway.run(["cherry-pick", commit.full_id])
            return ReplayOutcome.APPLIED
        except GatewayFailureError as e:
            failure = e

        conflicted = self.conflicted_paths()
        in_progress = self.gateway.ref_exists("CHERRY_PICK_HEAD")

        if not conflicted and in_progress and self._index_matches_head():
            logger.info("Skipping %s: no changes left to apply", commit.short_id)
            self.gateway.run(["cherry-pick", "--skip"])
            return ReplayOutcome.SKIPPED_EMPTY

        if in_progress:
            self.gateway.run(["cherry-pick", "--abort"])

        logger.error("Replaying %s failed%s", commit.short_id,
                     f" with conflicts in {', '.join(conflicted)}" if conflicted else "")
        raise ReplayConflictError(commit.full_id, conflicted, failure.stderr.strip()) from failure

    def apply_all(self, commits: Iterable[Commit]) -> List[Commit]:
        """Replay commits in order; returns those skipped as empty."""
        skipped = []
        for commit in commits:
            if self.apply(commit) is ReplayOutcome.SKIPPED_EMPTY:
                skipped.append(commit)
        return skipped

    def conflicted_paths(self) -> List[str]:
        """Paths with unresolved merge conflicts."""
        result = self.gateway.probe(["diff", "--name-only", "--diff-filter=U"])
        if result.returncode != 0:
            return []
        return split_lines(result.stdout)

    def _index_matches_head(self) -> bool:
        result = self.gateway.probe(["diff", "--cached", "--quiet", "HEAD"])
        return result.returncode == 0
