"""Colorful CLI output helpers and sync result rendering."""

import sys

from ..models import SyncAction, SyncStatistics

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗


def _supports_color() -> bool:
    """Check if stdout is a TTY that can render ANSI colors."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _colorize(text: str, color: str) -> str:
    if _supports_color():
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def warning(message: str) -> None:
    """Print warning message with yellow exclamation mark."""
    print(f"{_colorize('!', YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print error message with red cross."""
    print(f"{_colorize(CROSS, RED)} {message}")


def print_sync_summary(stats: SyncStatistics) -> None:
    """Print counts, per-item actions and failure reasons of a sync run."""
    prefix = "[DRY RUN] " if stats.dry_run else ""
    verb = "Would create" if stats.dry_run else "Created"

    print()
    for outcome in stats.outcomes_for(SyncAction.CREATE):
        issue = f" -> #{outcome.issue_number}" if outcome.issue_number else ""
        success(f"{verb}: {outcome.key}{issue}")
    for outcome in stats.outcomes_for(SyncAction.UPDATE):
        fields = ", ".join(outcome.changed_fields) or "retry"
        success(f"Updated: {outcome.key} -> #{outcome.issue_number} ({fields})")
    for outcome in stats.outcomes_for(SyncAction.CLOSE):
        success(f"Closed: #{outcome.issue_number} ({outcome.key} removed)")

    print()
    print(f"{prefix}Sync Summary:")
    print(f"  Created: {stats.created}")
    print(f"  Updated: {stats.updated}")
    print(f"  Skipped: {stats.skipped}")
    if stats.closed:
        print(f"  Closed: {stats.closed}")
    print(f"  Failed: {stats.failed_count}")

    if stats.failed:
        print()
        for failure in stats.failed:
            error(f"{failure.key} ({failure.action.value}): {failure.error}")
        info("Run 'worksync reset' and sync again to retry failed items")
