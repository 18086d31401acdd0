"""Shared fixtures: throw-away git repositories and a recording gateway."""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from commit_squash import GitGateway, SquashConfig, SquashEngine, CommitHistoryReader

MUTATING_COMMANDS = {"checkout", "reset", "branch", "stash", "cherry-pick", "commit-tree"}


class GitTestRepository:
    """Helper for managing test git repositories."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.repo_path.mkdir(parents=True, exist_ok=True)

    def run_git(self, *args, env=None, check=True) -> subprocess.CompletedProcess:
        """Execute a git command."""
        cmd = ["git"] + list(args)
        return subprocess.run(
            cmd,
            cwd=self.repo_path,
            capture_output=True,
            text=True,
            check=check,
            env=env or os.environ
        )

    def init_repo(self, initial_branch: str = "main"):
        """Initialize repository."""
        self.run_git("init")
        self.run_git("symbolic-ref", "HEAD", f"refs/heads/{initial_branch}")
        self.run_git("config", "user.name", "Test User")
        self.run_git("config", "user.email", "test@example.com")
        self.run_git("config", "commit.gpgsign", "false")

    def commit_file(self, path: str, content: str, message: Optional[str] = None) -> str:
        """Write a file, commit it and return the new commit id."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        self.run_git("add", path)
        self.run_git("commit", "-m", message or f"Update {path}")
        return self.head()

    def commit_files(self, files: Dict[str, str], message: str) -> str:
        """Commit several files at once."""
        for path, content in files.items():
            file_path = self.repo_path / path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
            self.run_git("add", path)
        self.run_git("commit", "-m", message)
        return self.head()

    def head(self) -> str:
        return self.run_git("rev-parse", "HEAD").stdout.strip()

    def current_branch(self) -> str:
        return self.run_git("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def commit_ids(self, revision: str = "HEAD") -> List[str]:
        """Commit ids reachable from revision, newest first."""
        return self.run_git("rev-list", revision).stdout.split()

    def subjects(self, revision: str = "HEAD") -> List[str]:
        """Commit subjects, newest first."""
        output = self.run_git("log", "--pretty=format:%s", revision).stdout
        return output.split("\n") if output else []

    def message(self, revision: str = "HEAD") -> str:
        return self.run_git("log", "-1", "--pretty=format:%B", revision).stdout.rstrip()

    def parent(self, revision: str) -> str:
        return self.run_git("rev-parse", f"{revision}^").stdout.strip()

    def files_in(self, revision: str) -> List[str]:
        output = self.run_git("ls-tree", "-r", "--name-only", revision).stdout
        return sorted(output.split())

    def changed_files(self, revision: str) -> List[str]:
        """Files touched by a single commit."""
        output = self.run_git("diff-tree", "--no-commit-id", "--name-only", "-r", revision).stdout
        return sorted(output.split())

    def status(self) -> str:
        return self.run_git("status", "--porcelain").stdout

    def branches(self) -> List[str]:
        output = self.run_git("branch", "--format=%(refname:short)").stdout
        return output.split()

    def stash_list(self) -> str:
        return self.run_git("stash", "list").stdout

    def read(self, path: str) -> str:
        return (self.repo_path / path).read_text()

    def write(self, path: str, content: str) -> None:
        (self.repo_path / path).write_text(content)

    def file_exists(self, path: str) -> bool:
        return (self.repo_path / path).exists()


class RecordingGateway(GitGateway):
    """Gateway that remembers every command it runs."""

    def __init__(self, *args, **kwargs):
        self.commands: List[List[str]] = []
        super().__init__(*args, **kwargs)

    def execute(self, args, check=True, cwd=None):
        self.commands.append(list(args))
        return super().execute(args, check=check, cwd=cwd)

    def mutating_commands(self) -> List[List[str]]:
        """Commands that change refs, the index or the working tree."""
        mutating = []
        for cmd in self.commands:
            if cmd[0] not in MUTATING_COMMANDS:
                continue
            # read-only forms of otherwise mutating commands
            if cmd[0] == "stash" and cmd[1:2] == ["list"]:
                continue
            mutating.append(cmd)
        return mutating


@pytest.fixture
def git_repo(tmp_path: Path) -> GitTestRepository:
    """A repository with a single initial commit on main."""
    repo = GitTestRepository(tmp_path / "test_repo")
    repo.init_repo()
    repo.commit_file("README.md", "# Test Repository\n", "Initial commit")
    return repo


@pytest.fixture
def abc_repo(git_repo: GitTestRepository) -> GitTestRepository:
    """Initial commit followed by A, B and C, each adding one file."""
    git_repo.commit_file("a.txt", "a\n", "Add a")
    git_repo.commit_file("b.txt", "b\n", "Add b")
    git_repo.commit_file("c.txt", "c\n", "Add c")
    return git_repo


@pytest.fixture
def config() -> SquashConfig:
    return SquashConfig()


@pytest.fixture
def gateway(git_repo: GitTestRepository, config: SquashConfig) -> RecordingGateway:
    return RecordingGateway(git_repo.repo_path, config=config)


@pytest.fixture
def history(gateway: RecordingGateway) -> CommitHistoryReader:
    return CommitHistoryReader(gateway)


@pytest.fixture
def engine(gateway: RecordingGateway) -> SquashEngine:
    return SquashEngine.from_gateway(gateway)


@pytest.fixture
def repo_factory(tmp_path: Path):
    """Create extra initialized repositories without commits."""
    def make(name: str) -> GitTestRepository:
        repo = GitTestRepository(tmp_path / name)
        repo.init_repo()
        return repo
    return make
