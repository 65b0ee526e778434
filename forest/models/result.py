"""Command and bulk operation results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from forest.constants import EXIT_FAILURE, EXIT_SUCCESS, EXIT_USAGE, USAGE_ERROR_CODES
from forest.models.worktree import Worktree


@dataclass
class CommandError:
    """Structured failure shared by the JSON and human output."""

    code: str
    message: str
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"code": self.code, "message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


@dataclass
class CommandResult:
    """Outcome of one CLI verb."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[CommandError] = None

    @classmethod
    def ok(cls, **data) -> "CommandResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls, code: str, message: str, suggestion: Optional[str] = None, **data
    ) -> "CommandResult":
        return cls(success=False, data=data, error=CommandError(code, message, suggestion))

    @property
    def exit_code(self) -> int:
        """0 on success, 2 for errors raised before any operation, 1 otherwise."""
        if self.success:
            return EXIT_SUCCESS
        if self.error and self.error.code in USAGE_ERROR_CODES:
            return EXIT_USAGE
        return EXIT_FAILURE

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"success": self.success}
        if self.data or self.success:
            payload["data"] = self.data
        if self.error:
            payload["error"] = self.error.to_dict()
        return payload


class SyncState(Enum):
    """Per-worktree progress through a bulk sync."""

    PENDING = "pending"
    SKIPPED_DIRTY = "skipped-dirty"
    SKIPPED_NO_UPSTREAM = "skipped-no-upstream"
    STASHED = "stashed"
    STASH_FAILED = "stash-failed"
    SYNCED = "synced"
    PULL_FAILED = "pull-failed"

    @property
    def is_skipped(self) -> bool:
        return self in (SyncState.SKIPPED_DIRTY, SyncState.SKIPPED_NO_UPSTREAM)

    @property
    def is_failed(self) -> bool:
        return self in (SyncState.STASH_FAILED, SyncState.PULL_FAILED)


@dataclass
class SyncOutcome:
    """Final state of one worktree in a sync run."""

    worktree: Worktree
    state: SyncState = SyncState.PENDING
    reason: Optional[str] = None
    stashed: bool = False


@dataclass
class SkippedItem:
    path: str
    branch: str
    reason: str

    def to_dict(self) -> dict:
        return {"path": self.path, "branch": self.branch, "reason": self.reason}


@dataclass
class FailedItem:
    path: str
    branch: str
    error: str

    def to_dict(self) -> dict:
        return {"path": self.path, "branch": self.branch, "error": self.error}


@dataclass
class BulkOperationResult:
    """Partitioned outcomes of one sync invocation."""

    synced: List[str] = field(default_factory=list)
    skipped: List[SkippedItem] = field(default_factory=list)
    failed: List[FailedItem] = field(default_factory=list)
    outcomes: List[SyncOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[SyncOutcome]) -> "BulkOperationResult":
        result = cls(outcomes=list(outcomes))
        for outcome in outcomes:
            wt = outcome.worktree
            if outcome.state == SyncState.SYNCED:
                result.synced.append(wt.path)
            elif outcome.state.is_skipped:
                result.skipped.append(SkippedItem(wt.path, wt.branch, outcome.reason or ""))
            elif outcome.state.is_failed:
                result.failed.append(FailedItem(wt.path, wt.branch, outcome.reason or ""))
        return result

    @property
    def success(self) -> bool:
        """Skipped worktrees never make a sync unsuccessful."""
        return not self.failed

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.synced) + len(self.skipped) + len(self.failed),
            "synced": len(self.synced),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }

    def to_dict(self) -> dict:
        return {
            "results": {
                "synced": list(self.synced),
                "skipped": [item.to_dict() for item in self.skipped],
                "failed": [item.to_dict() for item in self.failed],
            },
            "summary": self.summary,
        }
