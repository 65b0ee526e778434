"""Data models for forest."""

from .worktree import Worktree, WorktreeStatus, FileChange
from .group import Group
from .result import (
    BulkOperationResult,
    CommandError,
    CommandResult,
    FailedItem,
    SkippedItem,
    SyncOutcome,
    SyncState,
)

__all__ = [
    "Worktree",
    "WorktreeStatus",
    "FileChange",
    "Group",
    "BulkOperationResult",
    "CommandError",
    "CommandResult",
    "FailedItem",
    "SkippedItem",
    "SyncOutcome",
    "SyncState",
]
