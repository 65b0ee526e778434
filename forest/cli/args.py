"""Command-line argument parsing for forest."""

import argparse
from typing import List, Optional

from forest.__version__ import __version__


def _common_options() -> argparse.ArgumentParser:
    """Options accepted after every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", help="Output as JSON")
    common.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    common.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    common.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel status queries (default: auto-detect)",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="forest",
        description="Git worktree manager",
        epilog="All commands support --json. Exit codes: 0=success, 1=error, 2=validation error",
    )
    parser.add_argument("--version", action="version", version=f"forest v{__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    p = subparsers.add_parser("list", parents=[common], help="List all worktrees")
    p.add_argument("--group", metavar="NS", help="Only worktrees in this namespace")

    p = subparsers.add_parser("add", parents=[common], help="Create a new worktree")
    p.add_argument("target", metavar="branch|path", help="Branch name, or a path followed by a branch")
    p.add_argument("branch", nargs="?", help="Branch to check out when a path is given")
    p.add_argument(
        "-b", "--new-branch", action="store_true", dest="new_branch", help="Create a new branch"
    )
    p.add_argument("--from", dest="base", metavar="REF", help="Start the new branch from REF")
    p.add_argument("--group", metavar="NS", help="Place the branch in namespace NS")

    p = subparsers.add_parser("remove", parents=[common], help="Remove a worktree")
    p.add_argument("target", metavar="branch|path")
    p.add_argument("--force", action="store_true", help="Remove even with local changes")

    p = subparsers.add_parser("prune", parents=[common], help="Prune stale worktrees")
    p.add_argument("--dry-run", action="store_true", help="Show what would be pruned")

    p = subparsers.add_parser("info", parents=[common], help="Show worktree details")
    p.add_argument("target", metavar="branch|path")

    p = subparsers.add_parser("path", parents=[common], help="Print the path of a worktree")
    p.add_argument("target", metavar="branch|path")

    p = subparsers.add_parser("status", parents=[common], help="Show status of worktrees")
    p.add_argument("target", nargs="?", metavar="branch|path")
    p.add_argument("--group", metavar="NS", help="Only worktrees in this namespace")
    p.add_argument("--all", action="store_true", help="Include the main worktree")

    p = subparsers.add_parser("sync", parents=[common], help="Pull all worktrees from upstream")
    p.add_argument("--group", metavar="NS", help="Only worktrees in this namespace")
    p.add_argument("--force", action="store_true", help="Stash local changes before pulling")
    p.add_argument("--all", action="store_true", help="Include the main worktree")

    p = subparsers.add_parser("groups", parents=[common], help="List namespace groups")

    p = subparsers.add_parser("clone", parents=[common], help="Create a worktree from another")
    p.add_argument("source", metavar="source", help="Worktree to copy the commit from")
    p.add_argument("dest", metavar="dest", help="Name of the new worktree")
    p.add_argument(
        "-b", "--new-branch", action="store_true", dest="new_branch", help="Create branch <dest>"
    )

    p = subparsers.add_parser("lock", parents=[common], help="Lock a worktree")
    p.add_argument("target", metavar="branch|path")
    p.add_argument("--reason", help="Why the worktree is locked")

    p = subparsers.add_parser("unlock", parents=[common], help="Unlock a worktree")
    p.add_argument("target", metavar="branch|path")
    p.add_argument("--force", action="store_true", help="Unlock even if not marked locked")

    p = subparsers.add_parser("config", parents=[common], help="Get or set configuration")
    p.add_argument("action", nargs="?", metavar="get|set|reset")
    p.add_argument("key", nargs="?")
    p.add_argument("value", nargs="?")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
