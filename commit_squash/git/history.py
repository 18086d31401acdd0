"""Reading commit history and deriving the range touched by a squash."""

import logging
from datetime import datetime
from functools import cmp_to_key
from typing import Iterable, List, Optional, Sequence

from ..core.config import SquashConfig
from ..core.types import (
    Commit, CommitRange, GatewayFailureError, HistoryUnavailableError,
    NoParentForAnchorError, UnsupportedHistoryError
)
from .gateway import GitGateway, split_lines

logger = logging.getLogger(__name__)

# ASCII unit separator (0x1F) - never part of an id, author name or date.
# The subject goes last so a stray separator in it cannot shift the fields.
FIELD_SEPARATOR = "\x1f"
COMMIT_FORMAT = "%h%x1f%H%x1f%an%x1f%aI%x1f%s"
COMMIT_FIELDS = 5


class CommitHistoryReader:
    """Queries linear, non-merge history through the gateway."""

    def __init__(self, gateway: GitGateway, config: Optional[SquashConfig] = None):
        self.gateway = gateway
        self.config = config or gateway.config

    def list_recent_commits(self, limit: Optional[int] = None) -> List[Commit]:
        """Most recent non-merge commits on the current branch, newest first."""
        if limit is None:
            limit = self.config.max_commits
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        if not self.gateway.ref_exists("HEAD"):
            raise HistoryUnavailableError("Repository has no commits")

        try:
            output = self.gateway.run([
                "log", "-n", str(limit), "--no-merges",
                f"--pretty=format:{COMMIT_FORMAT}",
            ])
        except GatewayFailureError as e:
            raise HistoryUnavailableError(f"Failed to read commit log: {e.stderr.strip()}") from e

        commits = self._parse_log(output)
        if not commits:
            raise HistoryUnavailableError("No commits found on the current branch")

        logger.info("Found %d recent commits", len(commits))
        return commits

    def read_commits(self, revisions: Sequence[str]) -> List[Commit]:
        """Resolve revisions (ids, abbreviations, refs) to commits, in order."""
        full_ids = []
        for revision in revisions:
            result = self.gateway.probe(
                ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])
            if result.returncode != 0:
                raise HistoryUnavailableError(f"Unknown commit: {revision}")
            full_ids.append(result.stdout.strip())

        if not full_ids:
            return []

        output = self.gateway.run([
            "log", "--no-walk=unsorted", f"--pretty=format:{COMMIT_FORMAT}", *full_ids
        ])
        by_id = {c.full_id: c for c in self._parse_log(output)}
        return [by_id[full_id] for full_id in full_ids]

    def read_message(self, commit: Commit) -> str:
        """Full commit message, embedded newlines preserved."""
        output = self.gateway.run(["log", "-1", "--pretty=format:%B", commit.full_id])
        return output.rstrip()

    def sort_by_ancestry(self, commits: Iterable[Commit]) -> List[Commit]:
        """De-duplicate and order commits oldest first by ancestry."""
        unique = list({c.full_id: c for c in commits}.values())

        for commit in unique:
            if not self._is_ancestor(commit.full_id, "HEAD"):
                raise UnsupportedHistoryError(
                    f"Commit {commit.short_id} is not on the current branch")

        def compare(a: Commit, b: Commit) -> int:
            if self._is_ancestor(a.full_id, b.full_id):
                return -1
            if self._is_ancestor(b.full_id, a.full_id):
                return 1
            raise UnsupportedHistoryError(
                f"Commits {a.short_id} and {b.short_id} are not on one line of history")

        return sorted(unique, key=cmp_to_key(compare))

    def compute_range(self, selected: Sequence[Commit]) -> CommitRange:
        """Partition the history touched by squashing ``selected``."""
        if not selected:
            raise ValueError("compute_range needs at least one commit")

        tip_id = self.gateway.run(["rev-parse", "HEAD"]).strip()
        ordered = self.sort_by_ancestry(selected)
        earliest, latest = ordered[0], ordered[-1]

        parent = self.gateway.probe(
            ["rev-parse", "--verify", "--quiet", f"{earliest.full_id}^"])
        if parent.returncode != 0:
            raise NoParentForAnchorError(earliest.full_id)
        anchor_id = parent.stdout.strip()

        merges = self.gateway.run(["rev-list", "--merges", "--count", f"{anchor_id}..{tip_id}"])
        if int(merges.strip() or 0) > 0:
            raise UnsupportedHistoryError(
                "Merge commits between the selection and HEAD cannot be replayed")

        selected_ids = {c.full_id for c in ordered}
        span = self._read_range(f"{anchor_id}..{latest.full_id}")
        to_squash = tuple(c for c in span if c.full_id in selected_ids)
        to_reapply = tuple(c for c in span if c.full_id not in selected_ids)
        later = tuple(self._read_range(f"{latest.full_id}..{tip_id}"))

        commit_range = CommitRange(
            anchor_id=anchor_id,
            to_squash=to_squash,
            to_reapply=to_reapply,
            later=later,
            tip_id=tip_id,
        )
        self._verify_range(commit_range, len(selected_ids))

        logger.info("Range from %s: %d to squash, %d to reapply, %d later",
                    anchor_id[:8], len(to_squash), len(to_reapply), len(later))
        return commit_range

    def _verify_range(self, commit_range: CommitRange, selected_count: int) -> None:
        """Every commit between the anchor and HEAD appears exactly once."""
        if len(commit_range.to_squash) != selected_count:
            raise UnsupportedHistoryError(
                "Selected commits are not all between the anchor and HEAD")

        expected = split_lines(self.gateway.run(
            ["rev-list", f"{commit_range.anchor_id}..{commit_range.tip_id}"]))
        actual = [c.full_id for c in commit_range.all_commits]
        if len(actual) != len(set(actual)) or set(actual) != set(expected):
            raise UnsupportedHistoryError(
                "Computed commit range does not cover the history being rewritten")

    def _read_range(self, revision_range: str) -> List[Commit]:
        """Commits in a revision range, topologically ordered oldest first."""
        output = self.gateway.run([
            "log", "--topo-order", "--reverse",
            f"--pretty=format:{COMMIT_FORMAT}", revision_range
        ])
        return self._parse_log(output)

    def _is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = self.gateway.probe(["merge-base", "--is-ancestor", ancestor, descendant])
        return result.returncode == 0

    def _parse_log(self, output: str) -> List[Commit]:
        commits = []
        for line in split_lines(output):
            parts = line.split(FIELD_SEPARATOR, COMMIT_FIELDS - 1)
            if len(parts) != COMMIT_FIELDS:
                logger.warning("Skipping malformed commit line: %s", repr(line))
                continue

            short_id, full_id, author, date_str, subject = parts
            try:
                timestamp = datetime.fromisoformat(date_str)
            except ValueError as e:
                raise HistoryUnavailableError(
                    f"Unparseable date '{date_str}' for commit {short_id}") from e

            commits.append(Commit(
                short_id=short_id,
                full_id=full_id,
                author=author,
                timestamp=timestamp,
                message=subject,
            ))
        return commits
