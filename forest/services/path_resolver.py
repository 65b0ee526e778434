"""Map branch names to worktree directories."""

import os
from typing import Optional

from forest.config import Config
from forest.constants import (
    DEFAULT_REMOTE,
    DEFAULT_REPO_IDENTITY,
    EMPTY_BRANCH_PLACEHOLDER,
    SANITIZED_REPLACEMENT,
    UNSAFE_PATH_CHARS,
)
from forest.exceptions import GitOperationError
from forest.logging_config import get_logger
from forest.services.git.gateway import VersionControlGateway

logger = get_logger(__name__)

_SANITIZE_TABLE = str.maketrans({char: SANITIZED_REPLACEMENT for char in UNSAFE_PATH_CHARS})


def sanitize_branch_name(branch: str) -> str:
    """Turn a branch name into a single directory name.

    ``feature/auth`` becomes ``feature-auth``. Never returns an empty string.
    """
    sanitized = branch.translate(_SANITIZE_TABLE).strip(SANITIZED_REPLACEMENT)
    return sanitized or EMPTY_BRANCH_PLACEHOLDER


def _identity_from_url(url: Optional[str]) -> str:
    if not url:
        return ""
    name = url.strip().rstrip("/").split("/")[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def repository_identity(gateway: VersionControlGateway) -> str:
    """Name used to keep worktrees of different repositories apart.

    Taken from the ``origin`` URL, then from the top-level directory name,
    then the literal ``repo``.
    """
    try:
        identity = _identity_from_url(gateway.remote_url(DEFAULT_REMOTE))
        if identity:
            return identity
    except GitOperationError as e:
        logger.debug(f"No {DEFAULT_REMOTE} remote URL: {e}")

    try:
        toplevel = gateway.toplevel()
        identity = os.path.basename(toplevel.rstrip("/"))
        if identity:
            return identity
    except GitOperationError as e:
        logger.debug(f"Could not read top-level directory: {e}")

    return DEFAULT_REPO_IDENTITY


def is_explicit_path(target: str) -> bool:
    """True when the argument names a path rather than a branch."""
    return "/" in target or "\\" in target or os.sep in target


class PathResolver:
    """Resolve ``branch-or-path`` arguments to worktree directories.

    Paths are ``<config.directory>/<repository identity>/<sanitized branch>``.
    """

    def __init__(self, config: Config, gateway: VersionControlGateway):
        self.config = config
        self.gateway = gateway
        self._identity: Optional[str] = None

    @property
    def identity(self) -> str:
        if self._identity is None:
            self._identity = repository_identity(self.gateway)
            logger.debug(f"Repository identity: {self._identity}")
        return self._identity

    @property
    def repository_root(self) -> str:
        """Directory holding every generated worktree of this repository."""
        return os.path.join(str(self.config.root_directory), self.identity)

    def resolve(self, branch_or_path: str) -> str:
        """Resolve a branch name or explicit path to a worktree directory.

        Explicit paths (anything with a separator) are returned unchanged.
        """
        if is_explicit_path(branch_or_path):
            return branch_or_path
        return self.path_for_branch(branch_or_path)

    def path_for_branch(self, branch: str) -> str:
        """Generated directory for a branch, namespaced branches included."""
        return os.path.join(self.repository_root, sanitize_branch_name(branch))
