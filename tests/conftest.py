"""Pytest fixtures for forest tests"""
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
import git

from forest.config import Config, ConfigStore
from forest.core import Forest
from forest.exceptions import GitOperationError
from forest.services.git.gateway import VersionControlGateway


MAIN_PATH = "/repos/widgets"

SAMPLE_PORCELAIN = """\
worktree /repos/widgets
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /wt/widgets/feature-auth
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature/auth

worktree /wt/widgets/feature-api
HEAD 3333333333333333333333333333333333333333
branch refs/heads/feature/api

worktree /wt/widgets/bugfix-login
HEAD 4444444444444444444444444444444444444444
branch refs/heads/bugfix/login
locked waiting on review
"""


class FakeGateway(VersionControlGateway):
    """In-memory VersionControlGateway.

    Outputs are configured per worktree path. ``failures`` maps
    ``(method, path)`` to an error message; a ``None`` path fails the method
    for every path. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        worktree_output: str = SAMPLE_PORCELAIN,
        remote: Optional[str] = "git@github.com:acme/widgets.git",
        toplevel: Optional[str] = MAIN_PATH,
    ):
        self.worktree_output = worktree_output
        self.remote = remote
        self.toplevel_dir = toplevel
        self.statuses: Dict[str, str] = {}
        self.upstreams: Dict[str, str] = {}
        self.counts: Dict[str, Tuple[int, int]] = {}
        self.head_commits: Dict[str, str] = {}
        self.failures: Dict[Tuple[str, Optional[str]], str] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.added: List[dict] = []

    def fail(self, method: str, path: Optional[str] = None, message: str = "fatal: boom"):
        self.failures[(method, path)] = message

    def calls_to(self, method: str) -> List[Optional[str]]:
        return [path for name, path in self.calls if name == method]

    def _check(self, method: str, path: Optional[str] = None):
        self.calls.append((method, path))
        message = self.failures.get((method, path)) or self.failures.get((method, None))
        if message is not None:
            raise GitOperationError(method, path, message, stderr=message, status=128)

    def list_worktrees(self) -> str:
        self._check("list")
        return self.worktree_output

    def status(self, path: str) -> str:
        self._check("status", path)
        return self.statuses.get(path, "")

    def upstream(self, path: str) -> str:
        self._check("upstream", path)
        if path not in self.upstreams:
            raise GitOperationError("upstream", path, "no upstream configured", status=128)
        return self.upstreams[path]

    def ahead_behind(self, path: str) -> Tuple[int, int]:
        self._check("ahead-behind", path)
        return self.counts.get(path, (0, 0))

    def add_worktree(self, path, branch=None, new_branch=False, base=None, detach=False) -> None:
        self._check("add", path)
        self.added.append(
            {"path": path, "branch": branch, "new_branch": new_branch, "base": base, "detach": detach}
        )

    def remove_worktree(self, path: str, force: bool = False) -> None:
        self._check("remove", path)

    def prune_worktrees(self, dry_run: bool = False) -> str:
        self._check("prune")
        return ""

    def lock_worktree(self, path: str, reason: Optional[str] = None) -> None:
        self._check("lock", path)

    def unlock_worktree(self, path: str) -> None:
        self._check("unlock", path)

    def stash(self, path: str, message: Optional[str] = None) -> None:
        self._check("stash", path)

    def pull(self, path: str) -> None:
        self._check("pull", path)

    def remote_url(self, name: str = "origin") -> str:
        self._check("remote")
        if self.remote is None:
            raise GitOperationError("remote", None, f"No such remote '{name}'", status=2)
        return self.remote

    def toplevel(self) -> str:
        self._check("toplevel")
        if self.toplevel_dir is None:
            raise GitOperationError("toplevel", None, "not a git repository", status=128)
        return self.toplevel_dir

    def head_commit(self, path: str) -> str:
        self._check("rev-parse", path)
        return self.head_commits.get(path, "abcdef0123456789abcdef0123456789abcdef01")

    def last_commit_subject(self, path: str) -> str:
        self._check("log", path)
        return "Initial commit"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_home(temp_dir, monkeypatch):
    """Point HOME at an empty directory so config and logs stay out of the real one."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def fake_gateway():
    """FakeGateway listing a main checkout and three linked worktrees."""
    return FakeGateway()


@pytest.fixture
def worktree_root(temp_dir):
    return temp_dir / "worktrees"


@pytest.fixture
def forest(fake_gateway, worktree_root, temp_dir):
    """Forest wired to the fake gateway and a throwaway config file."""
    return Forest(
        MAIN_PATH,
        config=Config(directory=str(worktree_root)),
        gateway=fake_gateway,
        config_store=ConfigStore(temp_dir / "config.json"),
    )


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "widgets"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits (shared by every linked worktree)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    readme = repo_path / "README.md"
    readme.write_text("# Widgets\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def real_forest(git_repo, worktree_root, temp_dir):
    """Forest on the real repository, generating worktrees under worktree_root."""
    return Forest(
        git_repo.working_dir,
        config=Config(directory=str(worktree_root)),
        config_store=ConfigStore(temp_dir / "config.json"),
    )
