"""Human-readable rendering of command results"""

from typing import Callable, Dict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from forest.logging_config import get_logger
from forest.models.result import CommandResult, SyncOutcome, SyncState

console = Console()
error_console = Console(stderr=True)
logger = get_logger(__name__)


def _flags(worktree: dict) -> str:
    flags = [name for name in ("locked", "prunable") if worktree.get(name)]
    return ", ".join(flags)


def format_changes(status: dict) -> str:
    """Compact change counters, e.g. ``S1 M2 U3 !``."""
    parts = []
    if status.get("staged_files"):
        parts.append(f"S{status['staged_files']}")
    if status.get("unstaged_files"):
        parts.append(f"M{status['unstaged_files']}")
    if status.get("untracked_files"):
        parts.append(f"U{status['untracked_files']}")
    if status.get("conflicts"):
        parts.append("[red]![/red]")
    return " ".join(parts)


def format_upstream(status: dict) -> str:
    if not status.get("has_upstream"):
        return "[dim]no upstream[/dim]"
    ahead, behind = status.get("ahead", 0), status.get("behind", 0)
    if not ahead and not behind:
        return "up to date"
    parts = []
    if ahead:
        parts.append(f"↑{ahead}")
    if behind:
        parts.append(f"↓{behind}")
    return " ".join(parts)


class DisplayService:
    """Render CommandResult payloads for the terminal."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._renderers: Dict[str, Callable[[dict], None]] = {
            "list": self.display_worktree_list,
            "status": self.display_status_table,
            "sync": self.display_sync_summary,
            "groups": self.display_groups,
            "info": self.display_info,
            "path": self.display_path,
            "prune": self.display_prune,
            "config": self.display_config,
        }

    def render(self, command: str, result: CommandResult) -> None:
        """Print a command result; failures go to stderr."""
        if not result.success:
            if command == "sync" and result.data:
                self.display_sync_summary(result.data)
            self.display_error(result)
            return
        renderer = self._renderers.get(command)
        if renderer:
            renderer(result.data)
        elif "message" in result.data:
            console.print(f"[green]✓[/green] {escape(result.data['message'])}", highlight=False)

    def display_error(self, result: CommandResult) -> None:
        error = result.error
        if error is None:
            return
        error_console.print(f"[red]Error ({error.code}): {escape(error.message)}[/red]", highlight=False)
        if error.suggestion:
            error_console.print(f"[dim]Suggestion: {escape(error.suggestion)}[/dim]", highlight=False)

    def display_worktree_list(self, data: dict) -> None:
        worktrees = data.get("worktrees", [])
        if not worktrees:
            console.print("No worktrees found.")
            return

        table = Table(title="Git Worktrees")
        table.add_column("Branch")
        table.add_column("Commit")
        table.add_column("Path", overflow="fold")
        table.add_column("Flags")
        for wt in worktrees:
            branch = escape(wt["branch"]) + (" [dim](main)[/dim]" if wt.get("is_main") else "")
            table.add_row(branch, wt["commit"], escape(wt["path"]), _flags(wt))
        console.print(table)

    def display_status_table(self, data: dict) -> None:
        statuses = data.get("worktrees", [])
        table = Table(title="Git Worktrees Status")
        table.add_column("Branch")
        table.add_column("State")
        table.add_column("Changes")
        table.add_column("Upstream")
        table.add_column("Path", overflow="fold")
        table.add_column("Flags")

        for status in statuses:
            state = "[yellow]dirty[/yellow]" if status.get("dirty") else "[green]clean[/green]"
            table.add_row(
                escape(status["branch"]),
                state,
                format_changes(status),
                format_upstream(status),
                escape(status["path"]),
                _flags(status),
                style="red" if status.get("conflicts") else None,
            )
        console.print(table)

        summary = data.get("summary", {})
        console.print(
            f"\nTotal: {summary.get('total', 0)}  "
            f"Clean: {summary.get('clean', 0)}  "
            f"Dirty: {summary.get('dirty', 0)}  "
            f"Conflicts: {summary.get('conflicts', 0)}",
            highlight=False,
        )
        if self.verbose:
            console.print("S = Staged  M = Modified  U = Untracked  ! = Conflicts")

    def display_sync_progress(self, outcome: SyncOutcome) -> None:
        wt = outcome.worktree
        if outcome.state == SyncState.SYNCED:
            note = " (local changes stashed)" if outcome.stashed else ""
            console.print(f"[green]✓[/green] Synced {escape(wt.branch)}{note}", highlight=False)
        elif outcome.state.is_skipped:
            console.print(f"[yellow]-[/yellow] Skipped {escape(wt.branch)}: {escape(outcome.reason or '')}", highlight=False)
        else:
            console.print(f"[red]✗[/red] Failed {escape(wt.branch)}: {escape(outcome.reason or '')}", highlight=False)

    def display_sync_summary(self, data: dict) -> None:
        summary = data.get("summary", {})
        console.print(
            f"\nSync complete: {summary.get('synced', 0)} synced, "
            f"{summary.get('skipped', 0)} skipped, "
            f"{summary.get('failed', 0)} failed "
            f"(of {summary.get('total', 0)})",
            highlight=False,
        )

    def display_groups(self, data: dict) -> None:
        groups = data.get("groups", [])
        console.print("[bold]Git Worktree Groups[/bold]")
        if not groups:
            console.print("No worktrees found.")
            return
        for group in groups:
            console.print(f"  {escape(group['name'])} ({group['count']})", highlight=False)
            if self.verbose:
                for wt in group["worktrees"]:
                    console.print(f"    {escape(wt['branch'])}  [dim]{escape(wt['path'])}[/dim]", highlight=False)

    def display_info(self, data: dict) -> None:
        console.print(f"Worktree: {escape(data['path'])}", highlight=False)
        console.print(f"  Branch: {escape(data['branch'])}", highlight=False)
        console.print(f"  Commit: {data['commit']}", highlight=False)
        if data.get("last_commit"):
            console.print(f"  Last commit: {escape(data['last_commit'])}", highlight=False)
        console.print(f"  Locked: {data['locked']}")
        console.print(f"  Prunable: {data['prunable']}")

    def display_path(self, data: dict) -> None:
        # Plain output so the path can be used in shell substitutions
        console.print(data["path"], highlight=False, soft_wrap=True, markup=False)

    def display_prune(self, data: dict) -> None:
        console.print(f"[green]✓[/green] {escape(data['message'])}", highlight=False)
        if data.get("pruned"):
            console.print("Would remove:" if data.get("dry_run") else "Removed:")
            for path in data["pruned"]:
                console.print(f"  - {escape(path)}", highlight=False)

    def display_config(self, data: dict) -> None:
        if "message" in data:
            console.print(f"[green]✓[/green] {escape(data['message'])}", highlight=False)
        else:
            console.print(f"{escape(str(data['key']))}: {escape(str(data['value']))}", highlight=False)

