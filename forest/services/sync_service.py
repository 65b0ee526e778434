"""Bulk sync of worktrees with their upstreams."""

from typing import Callable, List, Optional

from forest.exceptions import GitOperationError
from forest.logging_config import get_logger
from forest.models.result import BulkOperationResult, SyncOutcome, SyncState
from forest.models.worktree import Worktree
from forest.services.git.gateway import VersionControlGateway
from forest.services.status_service import StatusService

logger = get_logger(__name__)

STASH_MESSAGE = "forest sync"


class SyncService:
    """Pull every worktree from its upstream, one at a time.

    Each worktree is handled on its own: a failure is recorded against that
    worktree and processing carries on with the next one.
    """

    def __init__(self, gateway: VersionControlGateway, status_service: StatusService):
        self.gateway = gateway
        self.status_service = status_service

    def sync_one(self, worktree: Worktree, force: bool = False) -> SyncOutcome:
        """Drive one worktree from PENDING to a terminal state."""
        outcome = SyncOutcome(worktree=worktree)
        status = self.status_service.status_of(worktree)

        if status.dirty and not force:
            outcome.state = SyncState.SKIPPED_DIRTY
            outcome.reason = (
                f"{status.changed_files} modified file(s); commit them or use --force"
            )
            return outcome

        if not status.has_upstream:
            outcome.state = SyncState.SKIPPED_NO_UPSTREAM
            outcome.reason = "no upstream branch configured"
            return outcome

        if status.dirty:
            try:
                self.gateway.stash(worktree.path, message=STASH_MESSAGE)
            except GitOperationError as e:
                outcome.state = SyncState.STASH_FAILED
                outcome.reason = f"stash failed: {e.stderr or e.message}"
                logger.warning(f"Could not stash changes in {worktree.path}: {e}")
                return outcome
            outcome.state = SyncState.STASHED
            outcome.stashed = True
            logger.info(
                f"Stashed local changes in {worktree.path} (restore with 'git stash pop')"
            )

        try:
            self.gateway.pull(worktree.path)
        except GitOperationError as e:
            outcome.state = SyncState.PULL_FAILED
            outcome.reason = f"pull failed: {e.stderr or e.message}"
            logger.warning(f"Could not pull {worktree.path}: {e}")
            return outcome

        outcome.state = SyncState.SYNCED
        logger.info(f"Synced {worktree.path}")
        return outcome

    def sync_all(
        self,
        worktrees: List[Worktree],
        force: bool = False,
        progress: Optional[Callable[[SyncOutcome], None]] = None,
    ) -> BulkOperationResult:
        """Sync worktrees sequentially and collect the partitioned outcome.

        Args:
            worktrees: Worktrees to sync, in reporting order
            force: Stash local changes instead of skipping dirty worktrees
            progress: Called with each SyncOutcome as soon as it is final

        Returns:
            BulkOperationResult; ``success`` is False only if something failed
        """
        outcomes = []
        for wt in worktrees:
            try:
                outcome = self.sync_one(wt, force=force)
            except Exception as e:
                logger.error(f"Error syncing {wt.path}: {e}")
                outcome = SyncOutcome(worktree=wt, state=SyncState.PULL_FAILED, reason=str(e))
            outcomes.append(outcome)
            if progress:
                progress(outcome)
        return BulkOperationResult.from_outcomes(outcomes)
