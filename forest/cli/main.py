"""Command-line interface for forest"""

import json
import os
import sys
from typing import List, Optional

from rich.console import Console

from forest.cli.args import build_parser
from forest.config import ConfigStore
from forest.constants import EXIT_FAILURE, EXIT_SUCCESS, ErrorCode
from forest.core import Forest, config_command
from forest.exceptions import ForestError
from forest.logging_config import get_logger, setup_logging
from forest.models.result import CommandResult
from forest.services.display_service import DisplayService

console = Console(stderr=True)
logger = get_logger(__name__)


def dispatch(forest: Forest, args, display: Optional[DisplayService]) -> CommandResult:
    """Run the Forest method behind a parsed subcommand."""
    command = args.command
    if command == "list":
        return forest.list_command(group=args.group)
    if command == "add":
        return forest.add_command(
            args.target,
            branch=args.branch,
            new_branch=args.new_branch,
            base=args.base,
            group=args.group,
        )
    if command == "remove":
        return forest.remove_command(args.target, force=args.force)
    if command == "prune":
        return forest.prune_command(dry_run=args.dry_run)
    if command == "info":
        return forest.info_command(args.target)
    if command == "path":
        return forest.path_command(args.target)
    if command == "status":
        return forest.status_command(args.target, group=args.group, include_main=args.all)
    if command == "sync":
        return forest.sync_command(
            group=args.group,
            force=args.force,
            include_main=args.all,
            progress=display.display_sync_progress if display else None,
        )
    if command == "groups":
        return forest.groups_command()
    if command == "clone":
        return forest.clone_command(args.source, args.dest, new_branch=args.new_branch)
    if command == "lock":
        return forest.lock_command(args.target, reason=args.reason)
    if command == "unlock":
        return forest.unlock_command(args.target, force=args.force)
    return CommandResult.failure(ErrorCode.UNKNOWN_COMMAND, f"Unknown command: {command}")


def run(args) -> CommandResult:
    """Build the per-invocation objects and execute one command."""
    display = None if args.json else DisplayService(verbose=args.verbose)
    store = ConfigStore()

    if args.command == "config":
        result = config_command(store, args.action, args.key, args.value)
    else:
        try:
            forest = Forest(os.getcwd(), config_store=store, workers=args.workers)
        except ForestError as e:
            result = CommandResult(success=False, error=e.to_command_error())
        else:
            result = dispatch(forest, args, display)

    if args.json:
        print(json.dumps(result.to_dict()))
    elif display is not None:
        display.render(args.command, result)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_SUCCESS

    setup_logging(verbose=args.verbose, debug=args.debug)

    try:
        return run(args).exit_code
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_FAILURE
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        result = CommandResult.failure(
            ErrorCode.INTERNAL_ERROR,
            f"An unexpected error occurred: {e}",
            "Check your git repository and try again",
        )
        if args.json:
            print(json.dumps(result.to_dict()))
        else:
            console.print(f"[red]Error: {e}[/red]")
            if args.debug:
                console.print_exception()
        return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
