"""JSON file-backed store for tracking records."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, assert_never

from pydantic import ValidationError

from ..models import (
    TRACKING_FILE_VERSION,
    CodeCommentRecord,
    CodeCommentSource,
    ContentSnapshot,
    GitHubReference,
    PlanningTaskRecord,
    PlanningTaskSource,
    RecordDraft,
    RecordType,
    SourceKey,
    SyncStatus,
    TrackingRecord,
    TrackingSource,
    TrackingStatistics,
    tracking_record_adapter,
)
from ..utils.datetime import now_utc
from .errors import (
    DuplicateSourceError,
    NotFoundError,
    StorageCorruptError,
    StoreNotLoadedError,
    TrackingError,
)

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


class RecordStore:
    """
    In-memory collection of tracking records backed by a JSON file.

    Mutations apply to memory immediately; nothing is written until
    ``save()`` is called. ``save()`` writes a temporary file next to the
    target, copies the previous generation to ``<path>.bak`` and renames
    the temporary file into place, so a crash leaves either the old or the
    new contents readable.

    The store does not lock the file across processes. Concurrent
    invocations against the same file must be serialized by the caller;
    the last ``save()`` wins.
    """

    def __init__(self, path: Path) -> None:
        """
        Initialize the store.

        Args:
            path: Path to the tracking JSON file (need not exist yet)
        """
        self.path = path
        self._records: dict[str, TrackingRecord] | None = None
        self._by_source: dict[SourceKey, str] = {}
        self._loaded_mtime_ns: int | None = None

    @property
    def backup_path(self) -> Path:
        """Path of the previous-generation backup file."""
        return self.path.with_name(self.path.name + BACKUP_SUFFIX)

    @property
    def is_loaded(self) -> bool:
        return self._records is not None

    def __len__(self) -> int:
        return len(self._require_loaded())

    def __iter__(self) -> Iterator[TrackingRecord]:
        return iter(list(self._require_loaded().values()))

    # --- Lifecycle ---

    def load(self) -> None:
        """Read the tracking file into memory.

        A missing or empty file yields an empty store.

        Raises:
            StorageCorruptError: If the file exists but is not valid tracking data.
        """
        records: dict[str, TrackingRecord] = {}
        by_source: dict[SourceKey, str] = {}
        mtime_ns: int | None = None

        if self.path.exists():
            try:
                raw = self.path.read_bytes().decode("utf-8")
                mtime_ns = self.path.stat().st_mtime_ns
            except UnicodeDecodeError as e:
                raise StorageCorruptError(self.path, f"not valid UTF-8: {e}") from e
            except OSError as e:
                raise StorageCorruptError(self.path, f"cannot read file: {e}") from e
            if raw.strip():
                records, by_source = self._parse(raw)
        else:
            logger.debug("No tracking file at %s, starting empty", self.path)

        self._records = records
        self._by_source = by_source
        self._loaded_mtime_ns = mtime_ns
        logger.info("Loaded tracking file: %s (%d records)", self.path, len(records))

    def save(self) -> None:
        """Atomically write the in-memory records to the tracking file."""
        records = self._require_loaded()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._warn_if_changed_on_disk()

        payload = self._serialize(records)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            if self.path.exists():
                shutil.copy2(self.path, self.backup_path)
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        self._loaded_mtime_ns = self.path.stat().st_mtime_ns
        logger.info("Saved tracking file: %s (%d records)", self.path, len(records))

    # --- Mutations ---

    def add_record(self, draft: RecordDraft) -> TrackingRecord:
        """Create a record for a new source.

        Raises:
            DuplicateSourceError: If a record for the same source exists.
        """
        records = self._require_loaded()
        key = draft.source.key
        existing_id = self._by_source.get(key)
        if existing_id is not None:
            raise DuplicateSourceError(key, existing_id)

        now = now_utc()
        fields: dict[str, Any] = {
            "id": self._generate_id(),
            "status": draft.status,
            "sync_attempts": draft.sync_attempts,
            "created_at": now,
            "updated_at": now,
        }
        source = draft.source
        record: TrackingRecord
        if isinstance(source, PlanningTaskSource):
            record = PlanningTaskRecord(source=source, **fields)
        elif isinstance(source, CodeCommentSource):
            record = CodeCommentRecord(source=source, **fields)
        else:
            assert_never(source)

        records[record.id] = record
        self._by_source[key] = record.id
        logger.debug("Added tracking record: %s (%s)", record.id, record.type)
        return record

    def update_record(self, record_id: str, patch: Mapping[str, Any]) -> TrackingRecord:
        """Merge ``patch`` into a record and bump ``updated_at``.

        Keys are field names (``status``, ``last_error``, ``github``, ...).
        Unknown keys and identity fields are rejected. A GitHub reference
        cannot be cleared once set, ``sync_attempts`` cannot go down, and
        ``synced``/``updated`` require a GitHub reference.

        Raises:
            NotFoundError: If no record has this id.
            TrackingError: If the patch violates one of the rules above.
        """
        record = self._get(record_id)

        unknown = set(patch) - set(type(record).model_fields)
        if unknown:
            raise TrackingError(f"Unknown field(s) {', '.join(sorted(unknown))} for {record_id}")
        forbidden = set(patch) & (record.IMMUTABLE_FIELDS | {"updated_at"})
        if forbidden:
            raise TrackingError(
                f"Cannot modify field(s) {', '.join(sorted(forbidden))} of {record_id}"
            )
        if record.github is not None and "github" in patch and patch["github"] is None:
            raise TrackingError(f"Cannot clear GitHub reference of {record_id}")
        if patch.get("sync_attempts", record.sync_attempts) < record.sync_attempts:
            raise TrackingError(f"sync_attempts of {record_id} cannot decrease")

        data = record.model_dump()
        data.update(patch)
        data["updated_at"] = now_utc()
        try:
            updated = type(record).model_validate(data)
        except ValidationError as e:
            raise TrackingError(f"Invalid update for {record_id}: {e}") from e
        if updated.status in (SyncStatus.SYNCED, SyncStatus.UPDATED) and updated.github is None:
            raise TrackingError(
                f"{record_id} cannot be {updated.status.value} without a GitHub reference"
            )

        logger.debug("Updated tracking record: %s (%s)", record_id, ", ".join(sorted(patch)))
        return self._replace(updated)

    def delete_record(self, record_id: str) -> bool:
        """Remove a record. Returns False if it did not exist."""
        records = self._require_loaded()
        record = records.pop(record_id, None)
        if record is None:
            return False
        self._by_source.pop(record.source_key, None)
        logger.debug("Deleted tracking record: %s", record_id)
        return True

    def mark_as_synced(
        self,
        record_id: str,
        issue_number: int,
        issue_url: str,
        *,
        status: SyncStatus = SyncStatus.SYNCED,
        snapshot: ContentSnapshot | None = None,
    ) -> TrackingRecord:
        """Record a successful create (``synced``) or update (``updated``).

        ``sync_attempts`` is left unchanged.
        """
        if status not in (SyncStatus.SYNCED, SyncStatus.UPDATED):
            raise ValueError(f"mark_as_synced status must be synced or updated, got {status}")
        record = self._get(record_id)
        now = now_utc()
        update: dict[str, Any] = {
            "status": status,
            "github": GitHubReference(issue_number=issue_number, issue_url=issue_url),
            "last_synced_at": now,
            "last_error": None,
            "updated_at": now,
        }
        if snapshot is not None:
            update["snapshot"] = snapshot

        logger.info(
            "Marked %s as %s -> issue #%d (%s)", record_id, status.value, issue_number, issue_url
        )
        return self._replace(record.model_copy(update=update))

    def mark_as_failed(self, record_id: str, error_message: str) -> TrackingRecord:
        """Record a failed sync attempt. The GitHub reference, if any, is kept."""
        record = self._get(record_id)
        updated = record.model_copy(
            update={
                "status": SyncStatus.FAILED,
                "sync_attempts": record.sync_attempts + 1,
                "last_error": error_message,
                "updated_at": now_utc(),
            }
        )
        logger.warning(
            "Marked %s as failed (attempt %d): %s",
            record_id,
            updated.sync_attempts,
            error_message,
        )
        return self._replace(updated)

    def reset_pending(self) -> list[TrackingRecord]:
        """Move every failed record back to pending.

        The attempt counter is kept so failure history survives the reset.

        Returns:
            The records that were changed.
        """
        changed: list[TrackingRecord] = []
        for record in self.get_records_by_status(SyncStatus.FAILED):
            updated = record.model_copy(
                update={
                    "status": SyncStatus.PENDING,
                    "last_error": None,
                    "updated_at": now_utc(),
                }
            )
            changed.append(self._replace(updated))

        logger.info("Reset %d failed record(s) to pending", len(changed))
        return changed

    # --- Queries ---

    def all_records(self) -> list[TrackingRecord]:
        """All records in insertion order."""
        return list(self._require_loaded().values())

    def find_by_id(self, record_id: str) -> TrackingRecord | None:
        return self._require_loaded().get(record_id)

    def find_by_source(self, source: TrackingSource) -> TrackingRecord | None:
        """Exact lookup by source identity."""
        records = self._require_loaded()
        record_id = self._by_source.get(source.key)
        return records[record_id] if record_id is not None else None

    def find_by_task_id(self, session_id: str, task_id: str) -> TrackingRecord | None:
        return self.find_by_source(PlanningTaskSource(session_id=session_id, task_id=task_id))

    def find_by_comment(
        self, comment_id: str, file_path: str, line_number: int
    ) -> TrackingRecord | None:
        return self.find_by_source(
            CodeCommentSource(comment_id=comment_id, file_path=file_path, line_number=line_number)
        )

    def find_by_issue_number(self, issue_number: int) -> TrackingRecord | None:
        for record in self._require_loaded().values():
            if record.github is not None and record.github.issue_number == issue_number:
                return record
        return None

    def get_records_by_status(self, status: SyncStatus) -> list[TrackingRecord]:
        return [r for r in self._require_loaded().values() if r.status == status]

    def get_records_by_session(self, session_id: str) -> list[TrackingRecord]:
        return [r for r in self._require_loaded().values() if r.session_id == session_id]

    def get_records_by_type(self, record_type: RecordType) -> list[TrackingRecord]:
        return [r for r in self._require_loaded().values() if r.type == record_type.value]

    def get_statistics(self) -> TrackingStatistics:
        """Count records by status, by type and by planning session."""
        stats = TrackingStatistics()
        for record in self._require_loaded().values():
            stats.total += 1
            stats.by_status[record.status.value] += 1
            stats.by_type[record.type] += 1
            session_id = record.session_id
            if session_id is not None:
                stats.by_session[session_id] = stats.by_session.get(session_id, 0) + 1
        return stats

    # --- Private Methods ---

    def _require_loaded(self) -> dict[str, TrackingRecord]:
        if self._records is None:
            raise StoreNotLoadedError("Tracking store not loaded. Call load() first.")
        return self._records

    def _get(self, record_id: str) -> TrackingRecord:
        record = self._require_loaded().get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def _replace(self, record: TrackingRecord) -> TrackingRecord:
        """Swap in a new version of an existing record, keeping its position."""
        self._require_loaded()[record.id] = record
        return record

    def _generate_id(self) -> str:
        records = self._require_loaded()
        while True:
            record_id = f"track-{uuid.uuid4().hex}"
            if record_id not in records:
                return record_id

    def _parse(self, raw: str) -> tuple[dict[str, TrackingRecord], dict[SourceKey, str]]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageCorruptError(self.path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise StorageCorruptError(self.path, "top-level value must be an object")
        version = data.get("version")
        if type(version) is not int or version != TRACKING_FILE_VERSION:
            raise StorageCorruptError(self.path, f"unsupported version: {version!r}")
        raw_records = data.get("records")
        if not isinstance(raw_records, list):
            raise StorageCorruptError(self.path, "'records' must be an array")

        records: dict[str, TrackingRecord] = {}
        by_source: dict[SourceKey, str] = {}
        for index, item in enumerate(raw_records):
            try:
                record = tracking_record_adapter.validate_python(item)
            except ValidationError as e:
                raise StorageCorruptError(self.path, f"record {index} is invalid: {e}") from e
            if record.id in records:
                raise StorageCorruptError(self.path, f"duplicate record id {record.id}")
            if record.source_key in by_source:
                raise StorageCorruptError(
                    self.path, f"duplicate source {':'.join(record.source_key)}"
                )
            records[record.id] = record
            by_source[record.source_key] = record.id
        return records, by_source

    @staticmethod
    def _serialize(records: Mapping[str, TrackingRecord]) -> str:
        by_status = {status.value: 0 for status in SyncStatus}
        for record in records.values():
            by_status[record.status.value] += 1

        document = {
            "version": TRACKING_FILE_VERSION,
            "metadata": {"totalRecords": len(records), "byStatus": by_status},
            "records": [record.to_json_dict() for record in records.values()],
        }
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"

    def _warn_if_changed_on_disk(self) -> None:
        if not self.path.exists():
            return
        mtime_ns = self.path.stat().st_mtime_ns
        if self._loaded_mtime_ns is None or mtime_ns != self._loaded_mtime_ns:
            logger.warning(
                "Tracking file %s changed on disk since it was loaded; overwriting it",
                self.path,
            )
