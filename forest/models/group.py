"""Namespace group model."""

from dataclasses import dataclass, field
from typing import List

from forest.models.worktree import Worktree


@dataclass
class Group:
    """Worktrees sharing the first path segment of their branch name."""

    name: str
    worktrees: List[Worktree] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.worktrees)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "worktrees": [wt.to_dict() for wt in self.worktrees],
        }
