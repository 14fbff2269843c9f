"""Tracking maintenance commands: status report and failed-record reset."""

from pathlib import Path

from ..models import SyncStatus
from ..repositories import RecordStore, StorageCorruptError
from ..services.config_service import ConfigService
from .output import error, header, info, success


def _open_store(project_root: Path, tracking_path: Path | None) -> RecordStore | None:
    store = RecordStore(ConfigService(project_root).tracking_path(tracking_path))
    try:
        store.load()
    except StorageCorruptError as e:
        error(str(e))
        return None
    return store


def run_status(project_root: Path, tracking_path: Path | None = None) -> int:
    """Print tracking statistics and the failed records."""
    store = _open_store(project_root, tracking_path)
    if store is None:
        return 1

    stats = store.get_statistics()
    header(f"Tracking file: {store.path}")
    print(f"  Total records: {stats.total}")
    print()
    print("By status:")
    for status, count in stats.by_status.items():
        print(f"  {status}: {count}")
    print("By type:")
    for record_type, count in stats.by_type.items():
        print(f"  {record_type}: {count}")
    if stats.by_session:
        print("By planning session:")
        for session_id, count in sorted(stats.by_session.items()):
            print(f"  {session_id}: {count}")

    failed = store.get_records_by_status(SyncStatus.FAILED)
    if failed:
        print()
        for record in failed:
            error(
                f"{record.id} ({record.type}, {record.sync_attempts} attempt(s)): "
                f"{record.last_error}"
            )
    return 0


def run_reset(project_root: Path, tracking_path: Path | None = None) -> int:
    """Move failed records back to pending so the next sync retries them."""
    store = _open_store(project_root, tracking_path)
    if store is None:
        return 1

    changed = store.reset_pending()
    if not changed:
        info("No failed records to reset")
        return 0

    store.save()
    success(f"Reset {len(changed)} failed record(s) to pending")
    return 0
