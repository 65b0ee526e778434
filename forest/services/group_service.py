"""Group worktrees by branch namespace."""

from typing import Dict, List, Optional, TypeVar

from forest.constants import ROOT_GROUP
from forest.models.group import Group
from forest.models.worktree import Worktree

W = TypeVar("W", bound=Worktree)


def namespace_of(branch: str) -> str:
    """Segment of the branch before its first ``/``, or the root group name."""
    if "/" not in branch:
        return ROOT_GROUP
    namespace = branch.split("/", 1)[0]
    return namespace or ROOT_GROUP


def group_by_namespace(worktrees: List[Worktree]) -> List[Group]:
    """Partition worktrees into namespace groups.

    Groups come out in order of first appearance, and every worktree lands
    in exactly one group.
    """
    groups: Dict[str, Group] = {}
    for wt in worktrees:
        name = namespace_of(wt.branch)
        if name not in groups:
            groups[name] = Group(name=name)
        groups[name].worktrees.append(wt)
    return list(groups.values())


def matches_group(branch: str, namespace: str) -> bool:
    """True when ``branch`` belongs to ``namespace``; the root group holds branches without a ``/``."""
    if namespace == ROOT_GROUP:
        return namespace_of(branch) == ROOT_GROUP
    namespace = namespace.rstrip("/")
    return branch == namespace or branch.startswith(namespace + "/")


def filter_by_group(worktrees: List[W], namespace: Optional[str]) -> List[W]:
    """Keep worktrees whose branch is ``namespace`` or lives under ``namespace/``."""
    if not namespace:
        return list(worktrees)
    return [wt for wt in worktrees if matches_group(wt.branch, namespace)]
