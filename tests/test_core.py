"""Tests for configuration, data types and the message resolver."""

import argparse
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from commit_squash import SquashConfig
from commit_squash.core.message import CommitMessageResolver
from commit_squash.core.types import (
    Commit, CommitRange, SquashResult, GatewayFailureError,
    NoMessageProvidedError, ReplayConflictError, NoParentForAnchorError
)


def make_commit(full_id: str, message: str = "subject") -> Commit:
    return Commit(
        short_id=full_id[:7],
        full_id=full_id,
        author="Test User",
        timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc),
        message=message,
    )


class TestSquashConfig:
    """Test configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = SquashConfig()

        assert config.max_commits == 10
        assert config.scratch_branch_prefix == "temp-squash"
        assert config.stash_prefix == "temp-squash"
        assert config.stash_untracked is True
        assert config.git_binary == "git"
        assert config.timeout_seconds is None

    def test_config_with_overrides(self):
        """Test configuration with overrides."""
        config = SquashConfig()

        new_config = config.with_overrides(max_commits=25, timeout_seconds=30)

        assert new_config.max_commits == 25
        assert new_config.timeout_seconds == 30
        assert new_config.scratch_branch_prefix == "temp-squash"  # unchanged
        assert config.max_commits == 10

    def test_from_cli_args(self):
        """Test creating config from CLI args."""
        args = argparse.Namespace(limit=5, scratch_prefix="tmp/squash",
                                  keep_untracked=True, timeout=12.5)

        config = SquashConfig.from_cli_args(args)

        assert config.max_commits == 5
        assert config.scratch_branch_prefix == "tmp/squash"
        assert config.stash_untracked is False
        assert config.timeout_seconds == 12.5

    def test_from_cli_args_invalid(self):
        """Invalid CLI values are reported as configuration errors."""
        args = argparse.Namespace(limit=-1, scratch_prefix=None,
                                  keep_untracked=False, timeout=None)

        with pytest.raises(ValueError, match="Invalid configuration"):
            SquashConfig.from_cli_args(args)

    def test_from_cli_args_zero_limit_rejected(self):
        """A zero limit is an error, not a request for the default."""
        args = argparse.Namespace(limit=0, scratch_prefix=None,
                                  keep_untracked=False, timeout=None)

        with pytest.raises(ValueError, match="max_commits must be positive"):
            SquashConfig.from_cli_args(args)

    def test_from_cli_args_missing_values_use_defaults(self):
        config = SquashConfig.from_cli_args(argparse.Namespace())

        assert config.max_commits == 10
        assert config.scratch_branch_prefix == "temp-squash"

    @pytest.mark.parametrize("prefix", ["has space", "a..b", "x~1", "we:ird", "-dash", ""])
    def test_invalid_scratch_prefix(self, prefix):
        """Prefixes that cannot start a branch name are rejected."""
        with pytest.raises(ValueError):
            SquashConfig(scratch_branch_prefix=prefix)

    def test_invalid_timeout(self):
        with pytest.raises(ValueError, match="timeout_seconds"):
            SquashConfig(timeout_seconds=0)


class TestTypes:
    """Test data types."""

    def test_commit_identity_is_full_id(self):
        """Two records of the same commit compare equal."""
        first = make_commit("a" * 40, "one subject")
        second = make_commit("a" * 40, "another subject")

        assert first == second
        assert len({first, second}) == 1
        assert first != make_commit("b" * 40, "one subject")

    def test_commit_range_parts(self):
        a, b, c, d = (make_commit(ch * 40) for ch in "abcd")
        commit_range = CommitRange(anchor_id="0" * 40, to_squash=(a, c),
                                   to_reapply=(b,), later=(d,))

        assert commit_range.earliest == a
        assert commit_range.latest == c
        assert commit_range.replay_order == (b, d)
        assert commit_range.all_commits == (a, c, b, d)

    def test_result_summary(self):
        a, b, c, d = (make_commit(ch * 40) for ch in "abcd")
        commit_range = CommitRange(anchor_id="0" * 40, to_squash=(a, c),
                                   to_reapply=(b,), later=(d,))
        result = SquashResult(branch="main", original_head_id="1" * 40,
                              squashed_commit_id="2" * 40, new_head_id="3" * 40,
                              message="msg", commit_range=commit_range, skipped=[d])

        assert result.replayed_count == 1
        assert result.summary_stats() == "2 commits → 1 squashed commit, 1 commits replayed"

    def test_error_messages(self):
        conflict = ReplayConflictError("c" * 40, ["a.txt"], "could not apply")
        assert "cccccccc" in str(conflict)
        assert "a.txt" in str(conflict)
        assert conflict.cleanup_errors == []

        failure = GatewayFailureError(["checkout", "main"], 1, "error: pathspec\n")
        assert str(failure) == "git checkout main failed (1): error: pathspec"

        root = NoParentForAnchorError("d" * 40)
        assert root.commit_id == "d" * 40


class TestCommitMessageResolver:
    """Test default message derivation and the edit step."""

    def setup_method(self):
        """Set up test fixtures."""
        self.messages = {}
        self.resolver = CommitMessageResolver(lambda c: self.messages[c.full_id])
        self.commits = [make_commit(ch * 40) for ch in "abc"]

    def test_identical_messages_are_unified(self):
        for commit in self.commits:
            self.messages[commit.full_id] = "Fix typo\n\nIn the README."

        assert self.resolver.default_message(self.commits) == "Fix typo\n\nIn the README."

    def test_different_messages_are_concatenated_oldest_first(self):
        self.messages.update({
            self.commits[0].full_id: "First",
            self.commits[1].full_id: "Second\n\nwith body",
            self.commits[2].full_id: "Third",
        })

        default = self.resolver.default_message(self.commits)

        assert default == "First\n\nSecond\n\nwith body\n\nThird"

    def test_edited_message_is_used(self):
        for commit in self.commits:
            self.messages[commit.full_id] = "Same"
        editor = Mock(return_value="Edited message")

        assert self.resolver.resolve(self.commits, editor) == "Edited message"
        editor.assert_called_once_with("Same")

    def test_no_editor_accepts_default(self):
        for commit in self.commits:
            self.messages[commit.full_id] = "Same"

        assert self.resolver.resolve(self.commits) == "Same"

    @pytest.mark.parametrize("answer", [None, "", "   \n"])
    def test_cancelled_edit(self, answer):
        for commit in self.commits:
            self.messages[commit.full_id] = "Same"

        with pytest.raises(NoMessageProvidedError):
            self.resolver.resolve(self.commits, lambda default: answer)
