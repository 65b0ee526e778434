"""Git-related services for forest."""

from .gateway import GitGateway, VersionControlGateway
from .worktrees import WorktreeService, parse_worktree_porcelain

__all__ = [
    "GitGateway",
    "VersionControlGateway",
    "WorktreeService",
    "parse_worktree_porcelain",
]
