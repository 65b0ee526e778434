"""Worktree data models."""

from dataclasses import asdict, dataclass, fields
from enum import Enum


class FileChange(Enum):
    """Kind of change reported by one line of short-form git status."""

    UNTRACKED = "untracked"
    IGNORED = "ignored"
    MODIFIED_STAGED = "modified-staged"
    MODIFIED_UNSTAGED = "modified-unstaged"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    TYPE_CHANGED = "type-changed"
    UNMERGED = "unmerged"


@dataclass
class Worktree:
    """A working directory registered with the repository."""

    path: str
    branch: str
    commit: str
    locked: bool = False
    prunable: bool = False
    is_main: bool = False  # First entry of the listing is the main checkout

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        flags = [name for name in ("locked", "prunable") if getattr(self, name)]
        flag_text = f" [{', '.join(flags)}]" if flags else ""
        return f"{self.branch} @ {self.path}{flag_text}"


@dataclass
class WorktreeStatus(Worktree):
    """Worktree enriched with working-tree and upstream state.

    Derived fresh on every query. ``dirty`` is set whenever any file is
    reported, and every conflicted file is also a reported file.
    """

    dirty: bool = False
    conflicts: bool = False
    has_upstream: bool = False
    ahead: int = 0
    behind: int = 0
    staged_files: int = 0
    unstaged_files: int = 0
    untracked_files: int = 0

    @classmethod
    def from_worktree(cls, worktree: Worktree) -> "WorktreeStatus":
        """Start a status record with every status field at its default."""
        base = {f.name: getattr(worktree, f.name) for f in fields(Worktree)}
        return cls(**base)

    @property
    def changed_files(self) -> int:
        return self.staged_files + self.unstaged_files + self.untracked_files
