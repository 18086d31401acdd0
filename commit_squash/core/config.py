"""Configuration management for the commit squash tool."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SquashConfig:
    """Configuration for squash operations."""

    # Commit listing
    max_commits: int = 10

    # Scratch refs
    scratch_branch_prefix: str = "temp-squash"
    stash_prefix: str = "temp-squash"

    # Stash untracked files too, so the rewrite runs on a clean tree
    stash_untracked: bool = True

    # External tool
    git_binary: str = "git"

    # Whole-attempt time limit, None means no limit
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        if self.max_commits <= 0:
            raise ValueError(
                f"max_commits must be positive, got {self.max_commits}")

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}")

        if not isinstance(self.git_binary, str) or not self.git_binary:
            raise ValueError(
                f"git_binary must be a non-empty string, got {self.git_binary!r}")

        for name in ("scratch_branch_prefix", "stash_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {type(value)}")
            if not value:
                raise ValueError(f"{name} cannot be empty")

        # Prefixes end up in ref names
        invalid_chars = [' ', '\n', '\t', '..',
                         '~', '^', ':', '?', '*', '[', '\\', '@{']
        for char in invalid_chars:
            if char in self.scratch_branch_prefix:
                raise ValueError(
                    f"scratch_branch_prefix contains invalid character '{char}': {self.scratch_branch_prefix}")
            if char in self.stash_prefix:
                raise ValueError(
                    f"stash_prefix contains invalid character '{char}': {self.stash_prefix}")
        if self.scratch_branch_prefix.startswith(('-', '/')) or self.scratch_branch_prefix.endswith('.lock'):
            raise ValueError(
                f"scratch_branch_prefix is not a valid branch name prefix: {self.scratch_branch_prefix}")

    @classmethod
    def from_cli_args(cls, args) -> 'SquashConfig':
        """Create config from command line arguments."""
        limit = getattr(args, 'limit', None)
        scratch_prefix = getattr(args, 'scratch_prefix', None)
        try:
            return cls(
                max_commits=cls.max_commits if limit is None else limit,
                scratch_branch_prefix=(cls.scratch_branch_prefix if scratch_prefix is None
                                       else scratch_prefix),
                stash_untracked=not getattr(args, 'keep_untracked', False),
                timeout_seconds=getattr(args, 'timeout', None),
            )
        except ValueError as e:
            raise ValueError(
                f"Invalid configuration from command line arguments: {e}") from e

    def with_overrides(self, **kwargs) -> 'SquashConfig':
        """Create a new config with specific overrides."""
        fields = {field.name: getattr(self, field.name)
                  for field in self.__dataclass_fields__.values()}
        fields.update(kwargs)
        return SquashConfig(**fields)
