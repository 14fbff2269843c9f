"""CLI entry point for worksync."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="worksync",
        description="Sync planning tasks and code comments to GitHub issues",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Path to project root containing worksync.yml (default: current directory)",
    )
    parser.add_argument(
        "--tracking-file",
        type=Path,
        default=None,
        help="Tracking file to use instead of tracking_path from worksync.yml",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v INFO, -vv DEBUG, -vvv also HTTP requests)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    planning = commands.add_parser("planning", help="Sync a planning session's tasks")
    planning.add_argument("session", type=Path, help="Planning session directory")
    planning.add_argument(
        "--dry-run", action="store_true", help="Show what would sync without changing anything"
    )

    todos = commands.add_parser("todos", help="Sync TODO/HACK/DEBUG code comments")
    todos.add_argument(
        "base_dir",
        type=Path,
        nargs="?",
        default=None,
        help="Directory to scan (default: project root)",
    )
    todos.add_argument(
        "--dry-run", action="store_true", help="Show what would sync without changing anything"
    )
    todos.add_argument(
        "--close-removed",
        action="store_true",
        help="Close issues for comments that no longer exist",
    )

    commands.add_parser("status", help="Show tracking statistics and failed records")
    commands.add_parser("reset", help="Reset failed records to pending for retry")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.project_root:
        settings_kwargs["project_root"] = args.project_root
    if args.tracking_file:
        settings_kwargs["tracking_path"] = args.tracking_file
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    setup_logging(settings.verbose, settings.log_file)

    # Import here to keep --help fast
    if args.command == "planning":
        from .cli.sync import run_planning_sync

        exit_code = run_planning_sync(
            settings.project_root,
            args.session,
            dry_run=args.dry_run,
            tracking_path=settings.tracking_path,
        )
    elif args.command == "todos":
        from .cli.sync import run_todo_sync

        exit_code = run_todo_sync(
            settings.project_root,
            args.base_dir,
            dry_run=args.dry_run,
            close_removed=args.close_removed,
            tracking_path=settings.tracking_path,
        )
    elif args.command == "status":
        from .cli.status import run_status

        exit_code = run_status(settings.project_root, settings.tracking_path)
    else:
        from .cli.status import run_reset

        exit_code = run_reset(settings.project_root, settings.tracking_path)

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
