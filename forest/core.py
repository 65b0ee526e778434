"""Core functionality for forest"""

import functools
import os
from typing import Callable, List, Optional

from forest.config import Config, ConfigStore
from forest.constants import CONFIG_KEYS, DETACHED_BRANCH, ErrorCode, ROOT_GROUP, SHORT_COMMIT_LENGTH
from forest.exceptions import ForestError, ValidationError
from forest.logging_config import get_logger
from forest.models.group import Group
from forest.models.result import BulkOperationResult, CommandResult, SyncOutcome
from forest.models.worktree import Worktree, WorktreeStatus
from forest.services.git import GitGateway, VersionControlGateway, WorktreeService
from forest.services.group_service import filter_by_group, group_by_namespace, matches_group
from forest.services.path_resolver import PathResolver, is_explicit_path
from forest.services.status_service import StatusService
from forest.services.sync_service import SyncService
from forest.services.validation_service import ValidationResult, validate_branch, validate_path

logger = get_logger(__name__)


def command(func):
    """Turn ForestError raised by a command into a failed CommandResult."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> CommandResult:
        try:
            return func(*args, **kwargs)
        except ForestError as e:
            logger.debug(f"{func.__name__} failed: {e}")
            error = e.to_command_error()
            return CommandResult(success=False, error=error)

    return wrapper


def _require(result: ValidationResult, code: str, suggestion: str) -> None:
    if not result.valid:
        raise ValidationError(result.error or "Invalid argument", code=code, suggestion=suggestion)


def _require_path(path: str) -> None:
    _require(validate_path(path), ErrorCode.INVALID_PATH, "Check that the path is valid and safe")


def _require_branch(branch: str) -> None:
    _require(
        validate_branch(branch), ErrorCode.INVALID_BRANCH, "Check that the branch name is valid"
    )


@command
def config_command(
    store: ConfigStore, action: Optional[str], key: Optional[str] = None, value: Optional[str] = None
) -> CommandResult:
    """Handle ``forest config get|set|reset``.

    Works outside a repository, so it is not tied to a Forest instance.
    """
    if action == "reset":
        config = store.reset()
        return CommandResult.ok(
            message="Config reset to defaults", key="directory", value=config.directory
        )

    if action not in ("get", "set"):
        raise ValidationError(
            f"Unknown config action: {action}",
            suggestion="Usage: forest config get|set|reset [key] [value]",
        )
    if not key:
        raise ValidationError(
            "Missing config key", suggestion=f"Valid keys: {', '.join(CONFIG_KEYS)}"
        )

    if action == "get":
        return CommandResult.ok(key=key, value=store.get(key))

    config = store.set(key, value)
    return CommandResult.ok(
        message=f"Config updated: {key} = {config.directory}", key=key, value=config.directory
    )


class Forest:
    """Worktree manager for one repository and one invocation.

    The configuration is read once, when the instance is created, and
    passed explicitly to the services that need it.
    """

    def __init__(
        self,
        repo_path: str,
        config: Optional[Config] = None,
        gateway: Optional[VersionControlGateway] = None,
        config_store: Optional[ConfigStore] = None,
        workers: Optional[int] = None,
    ):
        """Initialize Forest.

        Args:
            repo_path: Directory inside the repository
            config: Configuration (loaded from config_store when omitted)
            gateway: Git access (a GitGateway on repo_path when omitted)
            config_store: Where the configuration lives
            workers: Parallel status queries (None = auto-detect)

        Raises:
            NotARepositoryError: If repo_path is not inside a git repository
        """
        self.repo_path = repo_path
        self.config_store = config_store or ConfigStore()
        self.config = config if config is not None else self.config_store.load()
        self.gateway = gateway if gateway is not None else GitGateway(repo_path)

        self.resolver = PathResolver(self.config, self.gateway)
        self.worktree_service = WorktreeService(self.gateway)
        self.status_service = StatusService(self.gateway, workers=workers)
        self.sync_service = SyncService(self.gateway, self.status_service)

    # Core operations

    def resolve_path(self, branch_or_path: str) -> str:
        return self.resolver.resolve(branch_or_path)

    def list_worktrees(self) -> List[Worktree]:
        return self.worktree_service.list_worktrees()

    def status_of(self, worktree: Worktree) -> WorktreeStatus:
        return self.status_service.status_of(worktree)

    def status_of_all(self, worktrees: List[Worktree]) -> List[WorktreeStatus]:
        return self.status_service.status_of_all(worktrees)

    def group_by_namespace(self, worktrees: List[Worktree]) -> List[Group]:
        return group_by_namespace(worktrees)

    def sync_all(self, worktrees: List[Worktree], force: bool = False) -> BulkOperationResult:
        return self.sync_service.sync_all(worktrees, force=force)

    def find_worktree(self, target: str) -> Worktree:
        """Registered worktree for a path or branch argument."""
        _require_path(target)
        if not is_explicit_path(target):
            _require_branch(target)
        return self.worktree_service.find(target, self.resolver.resolve(target))

    def select_worktrees(self, group: Optional[str] = None, include_main: bool = False) -> List[Worktree]:
        """Linked worktrees (plus the main checkout when asked), filtered by namespace."""
        worktrees = self.list_worktrees()
        if not include_main:
            worktrees = [wt for wt in worktrees if not wt.is_main]
        return filter_by_group(worktrees, group)

    # Commands

    @command
    def list_command(self, group: Optional[str] = None) -> CommandResult:
        worktrees = filter_by_group(self.list_worktrees(), group)
        return CommandResult.ok(worktrees=[wt.to_dict() for wt in worktrees], count=len(worktrees))

    @command
    def add_command(
        self,
        target: str,
        branch: Optional[str] = None,
        new_branch: bool = False,
        base: Optional[str] = None,
        group: Optional[str] = None,
    ) -> CommandResult:
        """Create a worktree.

        ``add <branch>`` places it under the worktree root; ``add <path> <branch>``
        uses the explicit path. ``group`` prefixes the branch with its namespace.
        """
        explicit_path = target if branch is not None else None
        branch = branch if branch is not None else target

        if explicit_path is not None:
            _require_path(explicit_path)
        _require_branch(branch)
        if base is not None:
            _require_branch(base)
        if group and group != ROOT_GROUP:
            _require_branch(group)
            if not matches_group(branch, group):
                branch = f"{group.rstrip('/')}/{branch}"

        path = explicit_path if explicit_path is not None else self.resolver.path_for_branch(branch)
        _require_path(path)
        path = os.path.abspath(os.path.expanduser(path))

        self.worktree_service.add(path, branch, new_branch=new_branch, base=base)
        return CommandResult.ok(
            message=f"Worktree created: {path} → {branch}",
            path=path,
            branch=branch,
            new_branch=new_branch,
            base=base,
        )

    @command
    def remove_command(self, target: str, force: bool = False) -> CommandResult:
        worktree = self.find_worktree(target)
        self.worktree_service.remove(worktree, force=force)
        return CommandResult.ok(
            message=f"Worktree removed: {worktree.path}",
            path=worktree.path,
            branch=worktree.branch,
            forced=force,
        )

    @command
    def prune_command(self, dry_run: bool = False) -> CommandResult:
        pruned = self.worktree_service.prune(dry_run=dry_run)
        return CommandResult.ok(
            message=f"Pruned {len(pruned)} worktree(s)" + (" (dry run)" if dry_run else ""),
            count=len(pruned),
            pruned=[wt.path for wt in pruned],
            dry_run=dry_run,
        )

    @command
    def info_command(self, target: str) -> CommandResult:
        worktree = self.find_worktree(target)
        data = worktree.to_dict()
        data["last_commit"] = self.worktree_service.last_commit_subject(worktree)
        return CommandResult.ok(**data)

    @command
    def path_command(self, target: str) -> CommandResult:
        """Directory of a worktree: its registered path, else where it would be created."""
        _require_path(target)
        if not is_explicit_path(target):
            _require_branch(target)
        registered = next((wt for wt in self.list_worktrees() if wt.branch == target), None)
        if registered is not None:
            return CommandResult.ok(path=registered.path, branch=target, exists=True)
        return CommandResult.ok(path=self.resolve_path(target), branch=target, exists=False)

    @command
    def status_command(
        self,
        target: Optional[str] = None,
        group: Optional[str] = None,
        include_main: bool = False,
    ) -> CommandResult:
        if target:
            statuses = [self.status_of(self.find_worktree(target))]
        else:
            statuses = self.status_of_all(self.select_worktrees(group, include_main))
        return CommandResult.ok(
            worktrees=[s.to_dict() for s in statuses],
            summary=StatusService.summarize(statuses),
        )

    @command
    def sync_command(
        self,
        group: Optional[str] = None,
        force: bool = False,
        include_main: bool = False,
        progress: Optional[Callable[[SyncOutcome], None]] = None,
    ) -> CommandResult:
        worktrees = self.select_worktrees(group, include_main)
        result = self.sync_service.sync_all(worktrees, force=force, progress=progress)
        if result.success:
            return CommandResult.ok(**result.to_dict())
        return CommandResult.failure(
            ErrorCode.SYNC_FAILED,
            f"{len(result.failed)} worktree(s) failed to sync",
            "See the failed entries for details",
            **result.to_dict(),
        )

    @command
    def groups_command(self) -> CommandResult:
        groups = group_by_namespace(self.list_worktrees())
        return CommandResult.ok(groups=[g.to_dict() for g in groups], total_groups=len(groups))

    @command
    def clone_command(self, source: str, dest: str, new_branch: bool = False) -> CommandResult:
        """Create a worktree at the commit another worktree has checked out."""
        _require_path(dest)
        if new_branch:
            _require_branch(dest)
            path = self.resolver.path_for_branch(dest)
        else:
            path = self.resolve_path(dest)
        source_wt = self.find_worktree(source)
        path = os.path.abspath(os.path.expanduser(path))

        commit = self.worktree_service.clone(source_wt, path, branch=dest if new_branch else None)
        branch = dest if new_branch else DETACHED_BRANCH
        suffix = f" on new branch {dest}" if new_branch else " (detached)"
        return CommandResult.ok(
            message=f"Worktree cloned from {source_wt.path} to {path}{suffix}",
            source=source_wt.path,
            source_commit=commit[:SHORT_COMMIT_LENGTH],
            path=path,
            branch=branch,
            new_branch=new_branch,
        )

    @command
    def lock_command(self, target: str, reason: Optional[str] = None) -> CommandResult:
        worktree = self.find_worktree(target)
        self.worktree_service.lock(worktree, reason=reason)
        return CommandResult.ok(
            message=f"Worktree locked: {worktree.path}", path=worktree.path, reason=reason
        )

    @command
    def unlock_command(self, target: str, force: bool = False) -> CommandResult:
        worktree = self.find_worktree(target)
        self.worktree_service.unlock(worktree, force=force)
        return CommandResult.ok(message=f"Worktree unlocked: {worktree.path}", path=worktree.path)

    def config_command(
        self, action: Optional[str], key: Optional[str] = None, value: Optional[str] = None
    ) -> CommandResult:
        return config_command(self.config_store, action, key, value)
