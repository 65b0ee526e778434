"""Service for computing worktree status"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, FrozenSet, List, Optional

from forest.exceptions import GitOperationError
from forest.logging_config import get_logger
from forest.models.worktree import FileChange, Worktree, WorktreeStatus
from forest.services.git.gateway import VersionControlGateway
from forest.utils.threading import get_optimal_worker_count

logger = get_logger(__name__)

# Two-letter codes git uses for unmerged paths
UNMERGED_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

_COLUMN_CHANGES = {
    "T": FileChange.TYPE_CHANGED,
    "A": FileChange.ADDED,
    "D": FileChange.DELETED,
    "R": FileChange.RENAMED,
    "C": FileChange.COPIED,
}


def classify_status_code(code: str) -> FrozenSet[FileChange]:
    """Classify the two status characters of a short-form status line.

    Args:
        code: Index column followed by work-tree column, e.g. ``"M "`` or ``"??"``

    Returns:
        Every FileChange the code implies; empty for an unchanged entry
    """
    code = code.ljust(2)[:2]
    if code == "??":
        return frozenset({FileChange.UNTRACKED})
    if code == "!!":
        return frozenset({FileChange.IGNORED})
    if code in UNMERGED_CODES:
        return frozenset({FileChange.UNMERGED})

    index, worktree = code[0], code[1]
    changes = set()
    if index not in (" ", "?"):
        changes.add(FileChange.MODIFIED_STAGED)
        kind = _COLUMN_CHANGES.get(index)
        if kind:
            changes.add(kind)
    if worktree not in (" ", "?"):
        changes.add(FileChange.MODIFIED_UNSTAGED)
        kind = _COLUMN_CHANGES.get(worktree)
        if kind:
            changes.add(kind)
    return frozenset(changes)


def apply_status_output(status: WorktreeStatus, output: str) -> WorktreeStatus:
    """Fold ``git status --porcelain`` output into the file counters of ``status``."""
    for line in output.splitlines():
        if len(line) < 2 or not line.strip():
            continue

        changes = classify_status_code(line[:2])
        if FileChange.IGNORED in changes:
            continue

        status.dirty = True
        if FileChange.UNTRACKED in changes:
            status.untracked_files += 1
            continue
        if FileChange.UNMERGED in changes:
            # An unmerged path has changes on both sides
            status.conflicts = True
            status.staged_files += 1
            status.unstaged_files += 1
            continue
        if FileChange.MODIFIED_STAGED in changes:
            status.staged_files += 1
        if FileChange.MODIFIED_UNSTAGED in changes:
            status.unstaged_files += 1
    return status


class StatusService:
    """Service for determining worktree status.

    Every query is best effort: a git failure leaves the affected fields at
    their defaults instead of failing the whole status.
    """

    def __init__(self, gateway: VersionControlGateway, workers: Optional[int] = None):
        """Initialize the service.

        Args:
            gateway: Access to the underlying git commands
            workers: Parallel status queries (None = auto-detect)
        """
        self.gateway = gateway
        self.workers = workers

    def status_of(self, worktree: Worktree) -> WorktreeStatus:
        """Get the status of one worktree."""
        status = WorktreeStatus.from_worktree(worktree)

        if worktree.prunable and not os.path.isdir(worktree.path):
            logger.debug(f"Worktree path {worktree.path} doesn't exist, skipping status")
            return status

        try:
            apply_status_output(status, self.gateway.status(worktree.path))
        except GitOperationError as e:
            logger.debug(f"Could not read status for {worktree.path}: {e}")

        try:
            upstream = self.gateway.upstream(worktree.path)
        except GitOperationError as e:
            logger.debug(f"No upstream for {worktree.path}: {e}")
            return status

        status.has_upstream = True
        try:
            status.behind, status.ahead = self.gateway.ahead_behind(worktree.path)
        except GitOperationError as e:
            logger.debug(f"Could not count commits against {upstream} for {worktree.path}: {e}")
            status.has_upstream = False
            status.behind = status.ahead = 0
        return status

    def _safe_status_of(self, worktree: Worktree) -> WorktreeStatus:
        try:
            return self.status_of(worktree)
        except Exception as e:
            logger.error(f"Error computing status for {worktree.path}: {e}")
            return WorktreeStatus.from_worktree(worktree)

    def status_of_all(self, worktrees: List[Worktree]) -> List[WorktreeStatus]:
        """Get the status of every worktree in parallel, keeping input order."""
        if not worktrees:
            return []

        max_workers = get_optimal_worker_count(self.workers, task_count=len(worktrees))
        logger.debug(f"Using {max_workers} workers for {len(worktrees)} status queries")
        if max_workers == 1:
            return [self._safe_status_of(wt) for wt in worktrees]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self._safe_status_of, wt) for wt in worktrees]
            return [future.result() for future in futures]

    @staticmethod
    def summarize(statuses: List[WorktreeStatus]) -> Dict[str, int]:
        """Count clean, dirty, conflicted, ahead and behind worktrees."""
        return {
            "total": len(statuses),
            "clean": sum(1 for s in statuses if not s.dirty),
            "dirty": sum(1 for s in statuses if s.dirty),
            "conflicts": sum(1 for s in statuses if s.conflicts),
            "ahead": sum(1 for s in statuses if s.ahead > 0),
            "behind": sum(1 for s in statuses if s.behind > 0),
            "no_upstream": sum(1 for s in statuses if not s.has_upstream),
        }
