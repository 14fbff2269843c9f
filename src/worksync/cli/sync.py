"""Sync commands: planning sessions and code comments to GitHub issues."""

from __future__ import annotations

import logging
from pathlib import Path

from ..github.client import GitHubAuthError, GitHubClientError, GitHubIssuesClient
from ..models import GitHubConfig, SyncAction, WorksyncConfig
from ..parsers import (
    PlanningSessionError,
    parse_planning_session,
    scan_code_comments,
    update_todos_with_links,
)
from ..repositories import RecordStore, StorageCorruptError
from ..services.config_service import ConfigService
from ..sync import SyncOrchestrator
from .output import error, header, info, print_sync_summary, warning

logger = logging.getLogger(__name__)


def run_planning_sync(
    project_root: Path,
    session_path: Path,
    dry_run: bool = False,
    tracking_path: Path | None = None,
) -> int:
    """Sync a planning session's tasks to GitHub issues.

    Args:
        project_root: Path to project root containing worksync.yml
        session_path: Planning session directory (holds TODOs.md)
        dry_run: Show what would happen without calling GitHub or saving
        tracking_path: Override for the tracking file location

    Returns:
        Exit code (0 for success, non-zero if anything failed)
    """
    config_service = ConfigService(project_root)
    config = config_service.get_config()
    if not _check_config(config_service, dry_run):
        return 1

    try:
        session = parse_planning_session(session_path)
    except PlanningSessionError as e:
        error(str(e))
        return 1

    store = _load_store(config_service.tracking_path(tracking_path))
    if store is None:
        return 1

    client = None
    if not dry_run and config.github is not None:
        client = _create_client(config.github)
        if client is None:
            return 1

    header(f"Syncing planning session {session.session_id}...")
    try:
        orchestrator = _create_orchestrator(store, client, config, dry_run)
        stats = orchestrator.sync_planning_session(session)
    finally:
        if client is not None:
            client.close()

    if not dry_run:
        links = {
            outcome.key: (outcome.issue_number, outcome.issue_url)
            for outcome in stats.outcomes_for(SyncAction.CREATE)
            if outcome.issue_number is not None and outcome.issue_url is not None
        }
        if links:
            update_todos_with_links(session_path, links)
        store.save()

    print_sync_summary(stats)
    return 0 if not stats.has_errors else 1


def run_todo_sync(
    project_root: Path,
    base_dir: Path | None = None,
    dry_run: bool = False,
    close_removed: bool = False,
    tracking_path: Path | None = None,
) -> int:
    """Sync TODO/HACK/DEBUG comments to GitHub issues.

    Args:
        project_root: Path to project root containing worksync.yml
        base_dir: Directory to scan (default: project root)
        dry_run: Show what would happen without calling GitHub or saving
        close_removed: Close issues whose comment disappeared from the code
        tracking_path: Override for the tracking file location

    Returns:
        Exit code (0 for success, non-zero if anything failed)
    """
    config_service = ConfigService(project_root)
    config = config_service.get_config()
    if not _check_config(config_service, dry_run):
        return 1

    scan_root = base_dir if base_dir is not None else project_root
    header(f"Scanning {scan_root} for comments...")
    try:
        scan = scan_code_comments(
            scan_root,
            include=config.comments.include,
            exclude=config.comments.exclude,
            types=config.comments.types,
            root=project_root,
        )
    except ValueError as e:
        error(str(e))
        return 1
    info(f"Found {scan.comments_found} comment(s) in {scan.files_scanned} file(s)")

    store = _load_store(config_service.tracking_path(tracking_path))
    if store is None:
        return 1

    client = None
    if not dry_run and config.github is not None:
        client = _create_client(config.github)
        if client is None:
            return 1

    header("Syncing comments...")
    try:
        orchestrator = _create_orchestrator(store, client, config, dry_run)
        stats = orchestrator.sync_code_comments(scan.comments, close_removed=close_removed)
    finally:
        if client is not None:
            client.close()

    if not dry_run:
        store.save()

    print_sync_summary(stats)
    return 0 if not stats.has_errors else 1


def _check_config(config_service: ConfigService, dry_run: bool) -> bool:
    """Validate configuration needed for a sync run."""
    if config_service.config_error:
        warning(config_service.config_error)
    if config_service.get_config().github is None and not dry_run:
        error(f"GitHub configuration not found in {ConfigService.CONFIG_FILE}")
        info("Add 'github: {owner: ..., repo: ...}' to configure the target repository")
        return False
    return True


def _load_store(path: Path) -> RecordStore | None:
    store = RecordStore(path)
    try:
        store.load()
    except StorageCorruptError as e:
        logger.error("Cannot load tracking file: %s", e)
        error(str(e))
        info(f"A previous generation may be available at {store.backup_path}")
        return None
    return store


def _create_client(github: GitHubConfig) -> GitHubIssuesClient | None:
    header("Authenticating with GitHub...")
    try:
        return GitHubIssuesClient.from_environment(github.owner, github.repo, github.base_url)
    except GitHubAuthError as e:
        error(f"GitHub authentication failed: {e}")
        info("Set GITHUB_TOKEN environment variable or run 'gh auth login'")
        return None
    except GitHubClientError as e:
        error(f"GitHub client error: {e}")
        return None


def _create_orchestrator(
    store: RecordStore,
    client: GitHubIssuesClient | None,
    config: WorksyncConfig,
    dry_run: bool,
) -> SyncOrchestrator:
    github = config.github
    return SyncOrchestrator(
        store,
        client,
        repository=github.full_name if github else None,
        extra_labels=github.labels if github else None,
        dry_run=dry_run,
    )
