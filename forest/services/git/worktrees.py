"""Worktree inventory and lifecycle operations for forest."""

import os
import re
from typing import Dict, Any, List, Optional

from forest.constants import DETACHED_BRANCH, SHORT_COMMIT_LENGTH, ErrorCode
from forest.exceptions import ForestError, GitOperationError, WorktreeNotFoundError
from forest.logging_config import get_logger
from forest.models.worktree import Worktree
from forest.services.git.gateway import VersionControlGateway

logger = get_logger(__name__)

COMMIT_PATTERN = re.compile(r"^[0-9a-f]{7,}$")
BARE_MARKERS = ("locked", "prunable", DETACHED_BRANCH)
HEADS_PREFIX = "refs/heads/"


def _branch_from_ref(ref: str) -> str:
    """Short branch name of a reference.

    Local branches keep their namespace (``refs/heads/feature/auth`` gives
    ``feature/auth``); any other reference is reduced to its last segment.
    """
    if ref.startswith(HEADS_PREFIX):
        return ref[len(HEADS_PREFIX):]
    return ref.rsplit("/", 1)[-1]


def _is_marker_run(tokens: List[str]) -> bool:
    """True when every token is a stanza marker (``branch`` taking one argument)."""
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "branch":
            if i + 1 >= len(tokens):
                return False
            i += 2
            continue
        if not (
            token in BARE_MARKERS
            or token.startswith("branch=")
            or COMMIT_PATTERN.match(token)
        ):
            return False
        i += 1
    return True


def _split_inline_markers(rest: str):
    """Split ``<path> <markers...>`` where the markers run to the end of the line.

    Returns the path and the marker tokens; the whole text is the path when
    no trailing run of markers exists.
    """
    tokens = rest.split()
    for i in range(1, len(tokens)):
        if _is_marker_run(tokens[i:]):
            return " ".join(tokens[:i]), tokens[i:]
    return rest, []


def _apply_tokens(entry: Dict[str, Any], tokens: List[str]) -> None:
    """Fold one line's worth of stanza tokens into ``entry``."""
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "branch" and i + 1 < len(tokens):
            entry["branch"] = _branch_from_ref(tokens[i + 1])
            i += 2
            continue
        if token.startswith("branch="):
            entry["branch"] = _branch_from_ref(token.split("=", 1)[1])
        elif token == DETACHED_BRANCH:
            entry["branch"] = DETACHED_BRANCH
        elif token == "locked":
            entry["locked"] = True
        elif token == "prunable":
            entry["prunable"] = True
        elif COMMIT_PATTERN.match(token) and not entry.get("commit"):
            entry["commit"] = token[:SHORT_COMMIT_LENGTH]
        i += 1


def _entry_to_worktree(entry: Dict[str, Any], is_main: bool) -> Worktree:
    rest = entry["rest"]
    if entry.get("has_head"):
        # Full porcelain stanza: the worktree line holds nothing but the path
        path = rest
    else:
        path, markers = _split_inline_markers(rest)
        inline: Dict[str, Any] = {}
        _apply_tokens(inline, markers)
        for key, value in inline.items():
            entry.setdefault(key, value)
    return Worktree(
        path=path,
        branch=entry.get("branch", ""),
        commit=entry.get("commit", ""),
        locked=entry.get("locked", False),
        prunable=entry.get("prunable", False),
        is_main=is_main,
    )


def parse_worktree_porcelain(output: str) -> List[Worktree]:
    """Parse ``git worktree list --porcelain`` output.

    A stanza starts at each ``worktree <path>`` line and runs until the next
    one. Inside a stanza, ``HEAD <sha>``/bare hex tokens give the commit,
    ``branch <ref>`` the branch, and ``detached``, ``locked`` and ``prunable``
    are flags. In a stanza carrying a ``HEAD`` (or ``bare``) line the rest of
    the ``worktree`` line is the path, spaces and all; otherwise a trailing
    run of markers may follow the path on that line. Lines outside any
    stanza, or that mean nothing, are skipped.

    Args:
        output: Raw listing text

    Returns:
        One Worktree per stanza, in listing order; the first is the main checkout
    """
    worktrees: List[Worktree] = []
    current: Optional[Dict[str, Any]] = None

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        tokens = line.split()
        if tokens[0] == "worktree":
            if current is not None:
                worktrees.append(_entry_to_worktree(current, is_main=not worktrees))
            if len(tokens) < 2:
                logger.debug(f"Skipping worktree line without a path: {raw_line!r}")
                current = None
                continue

            # Path and any inline markers are separated once the stanza is complete
            current = {"rest": line[len("worktree"):].strip()}
            continue

        if current is None:
            logger.debug(f"Skipping stray worktree listing line: {raw_line!r}")
            continue

        if tokens[0] in ("locked", "prunable"):
            # "locked <reason>" and "prunable <reason>": the rest is free text
            current[tokens[0]] = True
            continue

        if tokens[0] in ("HEAD", "bare"):
            current["has_head"] = True
            if len(tokens) > 1 and COMMIT_PATTERN.match(tokens[1]):
                current["commit"] = tokens[1][:SHORT_COMMIT_LENGTH]
            continue

        _apply_tokens(current, tokens)

    if current is not None:
        worktrees.append(_entry_to_worktree(current, is_main=not worktrees))

    return worktrees


def _same_path(left: str, right: str) -> bool:
    return os.path.realpath(left) == os.path.realpath(right)


class WorktreeService:
    """Service for listing and managing git worktrees.

    The inventory is re-read from git on every call.
    """

    def __init__(self, gateway: VersionControlGateway):
        """Initialize the worktree service.

        Args:
            gateway: Access to the underlying git commands
        """
        self.gateway = gateway

    def list_worktrees(self) -> List[Worktree]:
        """Get all registered worktrees.

        Returns:
            List of Worktree records, empty if git could not be queried
        """
        try:
            output = self.gateway.list_worktrees()
        except Exception as e:
            logger.debug(f"Could not list worktrees: {e}")
            return []

        worktrees = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def find(self, target: str, resolved_path: Optional[str] = None) -> Worktree:
        """Find a registered worktree by path or branch name.

        Args:
            target: Path or branch name as given by the user
            resolved_path: Path the target resolves to under the worktree root

        Raises:
            WorktreeNotFoundError: If nothing matches
        """
        worktrees = self.list_worktrees()
        candidates = [target] + ([resolved_path] if resolved_path else [])
        for candidate in candidates:
            for wt in worktrees:
                if wt.path == candidate or _same_path(wt.path, candidate):
                    return wt
        for wt in worktrees:
            if wt.branch == target:
                return wt
        raise WorktreeNotFoundError(target)

    def add(
        self,
        path: str,
        branch: str,
        new_branch: bool = False,
        base: Optional[str] = None,
    ) -> None:
        """Create a worktree at ``path`` checking out (or creating) ``branch``."""
        try:
            self.gateway.add_worktree(path, branch=branch, new_branch=new_branch, base=base)
        except GitOperationError as e:
            e.suggestion = (
                "Check that the branch name is free"
                if new_branch
                else "Check that the path is valid and the branch exists"
            )
            logger.error(f"Failed to create worktree at {path}: {e.message}")
            raise

    def clone(self, source: Worktree, path: str, branch: Optional[str] = None) -> str:
        """Create a worktree at ``path`` starting from the commit ``source`` has checked out.

        Args:
            source: Worktree to copy the commit from
            path: Destination directory
            branch: New branch to create at that commit, or None for a detached checkout

        Returns:
            Full hash of the source commit
        """
        try:
            commit = self.gateway.head_commit(source.path)
        except GitOperationError as e:
            e.suggestion = "Check that the source worktree still exists"
            raise
        try:
            if branch:
                self.gateway.add_worktree(path, branch=branch, new_branch=True, base=commit)
            else:
                self.gateway.add_worktree(path, base=commit, detach=True)
        except GitOperationError as e:
            raise GitOperationError(
                "clone",
                path,
                e.stderr or e.message,
                stderr=e.stderr,
                status=e.status,
                suggestion="Check that the destination path and branch are free",
            ) from e
        logger.info(f"Cloned {source.path} ({commit[:7]}) to {path}")
        return commit

    def remove(self, worktree: Worktree, force: bool = False) -> None:
        """Remove a worktree, refusing the main checkout."""
        if worktree.is_main:
            raise ForestError(
                f"Cannot remove the main worktree: {worktree.path}",
                code="REMOVE_ERROR",
                suggestion="Only linked worktrees can be removed",
            )
        try:
            self.gateway.remove_worktree(worktree.path, force=force)
        except GitOperationError as e:
            e.suggestion = (
                "The worktree may have uncommitted changes or be locked; use --force"
                if not force
                else "Check that the path exists and is not the main worktree"
            )
            logger.error(f"Failed to remove worktree at {worktree.path}: {e.message}")
            raise

    def prune(self, dry_run: bool = False) -> List[Worktree]:
        """Prune worktrees git reports as prunable.

        Returns:
            The worktrees that were (or, on a dry run, would be) pruned
        """
        candidates = [wt for wt in self.list_worktrees() if wt.prunable]
        try:
            self.gateway.prune_worktrees(dry_run=dry_run)
        except GitOperationError as e:
            e.suggestion = "Ensure you are in a git repository"
            logger.error(f"Failed to prune worktrees: {e.message}")
            raise
        return candidates

    def lock(self, worktree: Worktree, reason: Optional[str] = None) -> None:
        try:
            self.gateway.lock_worktree(worktree.path, reason=reason)
        except GitOperationError as e:
            e.suggestion = "The worktree may already be locked"
            raise

    def unlock(self, worktree: Worktree, force: bool = False) -> None:
        """Unlock a worktree.

        Without ``force`` a worktree that is not locked is reported as an
        error before git is called.
        """
        if not worktree.locked and not force:
            raise ForestError(
                f"Worktree is not locked: {worktree.path}",
                code=ErrorCode.NOT_LOCKED,
                suggestion="Use --force to run unlock anyway",
            )
        try:
            self.gateway.unlock_worktree(worktree.path)
        except GitOperationError as e:
            e.suggestion = "The worktree may not be locked"
            raise

    def last_commit_subject(self, worktree: Worktree) -> str:
        """Subject of the last commit, or an empty string when unreadable."""
        try:
            return self.gateway.last_commit_subject(worktree.path)
        except GitOperationError as e:
            logger.debug(f"Could not read last commit for {worktree.path}: {e}")
            return ""
