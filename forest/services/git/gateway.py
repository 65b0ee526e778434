"""Access to the git binary.

Everything forest knows about a repository comes from git itself, through the
``VersionControlGateway`` interface. ``GitGateway`` is the GitPython-backed
implementation; tests substitute an in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import git

from forest.constants import DEFAULT_REMOTE
from forest.exceptions import GitOperationError, NotARepositoryError
from forest.logging_config import get_logger

logger = get_logger(__name__)


class VersionControlGateway(ABC):
    """Primitive git operations forest is built on.

    Every method raises GitOperationError when git reports a failure.
    Methods taking a ``path`` run inside that worktree; the others run
    against the repository forest was started in.
    """

    @abstractmethod
    def list_worktrees(self) -> str:
        """Machine-readable worktree listing (``git worktree list --porcelain``)."""

    @abstractmethod
    def status(self, path: str) -> str:
        """Short-form working tree status (``git status --porcelain``)."""

    @abstractmethod
    def upstream(self, path: str) -> str:
        """Name of the upstream tracking reference of the checked-out branch."""

    @abstractmethod
    def ahead_behind(self, path: str) -> Tuple[int, int]:
        """Left/right commit counts between upstream and HEAD as (behind, ahead)."""

    @abstractmethod
    def add_worktree(
        self,
        path: str,
        branch: Optional[str] = None,
        new_branch: bool = False,
        base: Optional[str] = None,
        detach: bool = False,
    ) -> None:
        """Register a new worktree, optionally creating ``branch`` from ``base``."""

    @abstractmethod
    def remove_worktree(self, path: str, force: bool = False) -> None:
        """Remove a registered worktree."""

    @abstractmethod
    def prune_worktrees(self, dry_run: bool = False) -> str:
        """Drop metadata of worktrees whose directories are gone."""

    @abstractmethod
    def lock_worktree(self, path: str, reason: Optional[str] = None) -> None:
        """Lock a worktree, optionally recording why."""

    @abstractmethod
    def unlock_worktree(self, path: str) -> None:
        """Unlock a worktree."""

    @abstractmethod
    def stash(self, path: str, message: Optional[str] = None) -> None:
        """Stash local changes, untracked files included."""

    @abstractmethod
    def pull(self, path: str) -> None:
        """Fast-forward the worktree from its upstream."""

    @abstractmethod
    def remote_url(self, name: str = DEFAULT_REMOTE) -> str:
        """URL of the named remote."""

    @abstractmethod
    def toplevel(self) -> str:
        """Top-level directory of the current working tree."""

    @abstractmethod
    def head_commit(self, path: str) -> str:
        """Full hash of HEAD in the worktree."""

    @abstractmethod
    def last_commit_subject(self, path: str) -> str:
        """Subject line of the last commit in the worktree."""


class GitGateway(VersionControlGateway):
    """VersionControlGateway that shells out to git through GitPython."""

    def __init__(self, repo_path: str):
        """Initialize the gateway.

        Args:
            repo_path: Any directory inside the repository

        Raises:
            NotARepositoryError: If repo_path is not inside a git repository
        """
        self.repo_path = repo_path
        try:
            repo = git.Repo(repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise NotARepositoryError(repo_path) from e
        self.working_dir = repo.working_tree_dir or repo_path
        repo.close()

    def _get_repo(self):
        """Get a fresh git.Repo instance.

        A new instance per call keeps the gateway safe to use from the
        status worker threads.
        """
        return git.Repo(self.working_dir)

    def _run(
        self,
        operation: str,
        args: List[str],
        path: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> str:
        """Run ``git -C <path> <args>`` and translate failures.

        ``subject`` names the worktree in error messages when the command runs
        from the main repository rather than inside that worktree.
        """
        target = path or self.working_dir
        subject = subject or path
        try:
            repo = self._get_repo()
            return repo.git.execute(["git", "-C", target, *args])
        except git.exc.GitCommandError as e:
            stderr = (e.stderr if e.stderr else str(e)).strip()
            status = e.status if e.status is not None else "unknown"
            if stderr:
                detail = f"git {' '.join(args[:2])} failed (exit {status}): {stderr}"
            else:
                detail = f"git {' '.join(args[:2])} failed with exit code {status}"
            logger.debug(detail)
            raise GitOperationError(
                operation, subject, detail, stderr=stderr, status=status
            ) from e
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError(operation, subject, f"not a repository: {e}") from e

    def list_worktrees(self) -> str:
        return self._run("list", ["worktree", "list", "--porcelain"])

    def status(self, path: str) -> str:
        return self._run("status", ["status", "--porcelain"], path)

    def upstream(self, path: str) -> str:
        return self._run(
            "upstream",
            ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"],
            path,
        ).strip()

    def ahead_behind(self, path: str) -> Tuple[int, int]:
        output = self._run(
            "ahead-behind", ["rev-list", "--left-right", "--count", "@{upstream}...HEAD"], path
        )
        try:
            behind, ahead = (int(part) for part in output.split())
        except ValueError as e:
            raise GitOperationError(
                "ahead-behind", path, f"unexpected rev-list output: {output!r}"
            ) from e
        return behind, ahead

    def add_worktree(
        self,
        path: str,
        branch: Optional[str] = None,
        new_branch: bool = False,
        base: Optional[str] = None,
        detach: bool = False,
    ) -> None:
        args = ["worktree", "add"]
        if new_branch and branch:
            args += ["-b", branch]
        if detach:
            args.append("--detach")
        args.append(path)
        if base:
            args.append(base)
        elif branch and not new_branch and not detach:
            args.append(branch)
        self._run("add", args, subject=path)
        logger.info(f"Added worktree at {path}")

    def remove_worktree(self, path: str, force: bool = False) -> None:
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        self._run("remove", args + [path], subject=path)
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self, dry_run: bool = False) -> str:
        args = ["worktree", "prune", "--verbose"]
        if dry_run:
            args.append("--dry-run")
        output = self._run("prune", args)
        logger.info("Pruned worktree metadata" + (" (dry run)" if dry_run else ""))
        return output

    def lock_worktree(self, path: str, reason: Optional[str] = None) -> None:
        args = ["worktree", "lock"]
        if reason:
            args += ["--reason", reason]
        self._run("lock", args + [path], subject=path)
        logger.info(f"Locked worktree at {path}")

    def unlock_worktree(self, path: str) -> None:
        self._run("unlock", ["worktree", "unlock", path], subject=path)
        logger.info(f"Unlocked worktree at {path}")

    def stash(self, path: str, message: Optional[str] = None) -> None:
        args = ["stash", "push", "--include-untracked"]
        if message:
            args += ["-m", message]
        self._run("stash", args, path)

    def pull(self, path: str) -> None:
        self._run("pull", ["pull", "--ff-only"], path)

    def remote_url(self, name: str = DEFAULT_REMOTE) -> str:
        return self._run("remote", ["remote", "get-url", name]).strip()

    def toplevel(self) -> str:
        return self._run("toplevel", ["rev-parse", "--show-toplevel"]).strip()

    def head_commit(self, path: str) -> str:
        return self._run("rev-parse", ["rev-parse", "HEAD"], path).strip()

    def last_commit_subject(self, path: str) -> str:
        return self._run("log", ["log", "-1", "--format=%s"], path).strip()
