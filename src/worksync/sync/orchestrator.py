"""Sync orchestrator: reconcile local work items with remote issues.

For every work item the orchestrator looks up its tracking record and
decides one of:

- create: no record, or a record whose previous create never succeeded
- update: the record has an issue and the content snapshot changed, or the
  last attempt against that issue failed
- skip: the record has an issue and nothing changed

Remote failures are caught per item, recorded on the tracking record and
collected in the run's statistics; they never abort the run. Store errors
(duplicate source, missing record) propagate. The orchestrator does not
save the store; the caller decides when to persist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, assert_never

from ..models import (
    CodeComment,
    CodeCommentRecord,
    CodeCommentSource,
    ContentSnapshot,
    GitHubReference,
    PlanningSession,
    PlanningTask,
    PlanningTaskSource,
    RecordDraft,
    RecordType,
    SyncAction,
    SyncFailure,
    SyncOutcome,
    SyncStatistics,
    SyncStatus,
    TrackingRecord,
    TrackingSource,
)
from .change_detector import changed_fields, create_snapshot
from .issue_builder import IssueContent, build_comment_issue, build_task_issue
from .labels import CommentLabeler, TaskLabeler, labels_for_comment, labels_for_task

if TYPE_CHECKING:
    from ..github.protocol import IssueTrackerProtocol
    from ..repositories import RecordStore

logger = logging.getLogger(__name__)


def item_key(source: TrackingSource) -> str:
    """Human-readable key for a work item, used in results and logs."""
    if isinstance(source, PlanningTaskSource):
        return source.task_id
    if isinstance(source, CodeCommentSource):
        return f"{source.file_path}:{source.line_number}"
    assert_never(source)


def _describe_error(error: Exception) -> str:
    message = str(error).strip()
    return message or type(error).__name__


class SyncOrchestrator:
    """Reconciles planning tasks and code comments with an issue tracker."""

    def __init__(
        self,
        store: RecordStore,
        tracker: IssueTrackerProtocol | None,
        *,
        repository: str | None = None,
        extra_labels: list[str] | None = None,
        task_labeler: TaskLabeler | None = None,
        comment_labeler: CommentLabeler | None = None,
        dry_run: bool = False,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            store: Loaded record store; mutated in place
            tracker: Issue tracker client (may be None only for dry runs)
            repository: "owner/repo", used for file links in comment issues
            extra_labels: Labels added to every issue by the default labelers
            task_labeler: Override label computation for planning tasks
            comment_labeler: Override label computation for code comments
            dry_run: Decide actions without calling the tracker or touching the store
        """
        if tracker is None and not dry_run:
            raise ValueError("An issue tracker is required unless dry_run is set")
        self.store = store
        self.tracker = tracker
        self.repository = repository
        self.dry_run = dry_run
        extra = list(extra_labels or [])
        self._task_labeler: TaskLabeler = task_labeler or (
            lambda task, session: labels_for_task(task, session, extra)
        )
        self._comment_labeler: CommentLabeler = comment_labeler or (
            lambda comment: labels_for_comment(comment, extra)
        )

    # --- Public API ---

    def sync_planning_session(self, session: PlanningSession) -> SyncStatistics:
        """Sync every task of a planning session, parents before subtasks.

        Subtask bodies reference the parent's issue once it exists, so a
        parent created earlier in the same run is linked immediately.
        """
        stats = SyncStatistics(dry_run=self.dry_run)
        tasks = session.iter_tasks()
        logger.info(
            "Starting planning sync: session=%s tasks=%d dry_run=%s",
            session.session_id,
            len(tasks),
            self.dry_run,
        )

        for task in tasks:
            labels = self._task_labeler(task, session)
            parent_issue = self._parent_issue_number(session, task)
            self._sync_item(
                session.source_for(task),
                build_task_issue(task, session, labels, parent_issue),
                create_snapshot(task, labels, parent_issue),
                stats,
            )

        self._log_summary("Planning sync", stats)
        return stats

    def sync_code_comments(
        self, comments: Iterable[CodeComment], close_removed: bool = False
    ) -> SyncStatistics:
        """Sync a batch of code comments.

        Args:
            comments: Comments from the current scan
            close_removed: Also close issues whose comment is no longer present
        """
        stats = SyncStatistics(dry_run=self.dry_run)
        comments = list(comments)
        logger.info(
            "Starting comment sync: comments=%d close_removed=%s dry_run=%s",
            len(comments),
            close_removed,
            self.dry_run,
        )

        for comment in comments:
            labels = self._comment_labeler(comment)
            self._sync_item(
                comment.source,
                build_comment_issue(comment, labels, self.repository),
                create_snapshot(comment, labels),
                stats,
            )

        if close_removed:
            self.close_removed_comments(comments, stats)

        self._log_summary("Comment sync", stats)
        return stats

    def close_removed_comments(
        self, current: Iterable[CodeComment], stats: SyncStatistics | None = None
    ) -> SyncStatistics:
        """Close issues for tracked comments missing from the current scan.

        Records that never got an issue are simply deleted. Records whose
        issue was closed are deleted; a failed close is recorded on the
        record so the next run retries it.
        """
        stats = stats if stats is not None else SyncStatistics(dry_run=self.dry_run)
        current_keys = {comment.source.key for comment in current}

        for record in self.store.get_records_by_type(RecordType.CODE_COMMENT):
            if not isinstance(record, CodeCommentRecord) or record.source_key in current_keys:
                continue
            key = item_key(record.source)

            if record.github is None:
                logger.debug("Dropping record for removed comment without issue: %s", key)
                if not self.dry_run:
                    self.store.delete_record(record.id)
                continue

            issue_number = record.github.issue_number
            if self.dry_run:
                stats.outcomes.append(SyncOutcome(key, SyncAction.CLOSE, issue_number))
                continue

            logger.info("Closing issue #%d for removed comment %s", issue_number, key)
            try:
                self._require_tracker().close_issue(issue_number)
            except Exception as e:
                error = _describe_error(e)
                logger.error("Failed to close issue #%d for %s: %s", issue_number, key, error)
                self.store.mark_as_failed(record.id, f"Failed to close: {error}")
                stats.failed.append(SyncFailure(key, error, SyncAction.CLOSE))
                continue

            self.store.delete_record(record.id)
            stats.outcomes.append(
                SyncOutcome(key, SyncAction.CLOSE, issue_number, record.github.issue_url)
            )

        return stats

    # --- Per-item decision ---

    def _sync_item(
        self,
        source: TrackingSource,
        content: IssueContent,
        snapshot: ContentSnapshot,
        stats: SyncStatistics,
    ) -> None:
        key = item_key(source)
        record = self.store.find_by_source(source)

        if record is None or record.github is None:
            self._create(source, key, record, content, snapshot, stats)
            return

        fields = changed_fields(record.snapshot, snapshot)
        if not fields and record.status in (SyncStatus.SYNCED, SyncStatus.UPDATED):
            logger.debug("No changes for %s (issue #%d)", key, record.github.issue_number)
            stats.outcomes.append(
                SyncOutcome(
                    key, SyncAction.SKIP, record.github.issue_number, record.github.issue_url
                )
            )
            return

        self._update(record, record.github, key, content, snapshot, fields, stats)

    def _create(
        self,
        source: TrackingSource,
        key: str,
        record: TrackingRecord | None,
        content: IssueContent,
        snapshot: ContentSnapshot,
        stats: SyncStatistics,
    ) -> None:
        if self.dry_run:
            logger.debug("Dry run: would create issue for %s", key)
            stats.outcomes.append(SyncOutcome(key, SyncAction.CREATE))
            return

        if record is not None:
            logger.info(
                "Retrying issue creation for %s (attempts so far: %d)", key, record.sync_attempts
            )
        else:
            logger.info("Creating new issue for %s", key)

        try:
            issue = self._require_tracker().create_issue(
                content.title, content.body, content.labels
            )
        except Exception as e:
            error = _describe_error(e)
            logger.error("Failed to create issue for %s: %s", key, error)
            if record is None:
                record = self.store.add_record(RecordDraft(source=source))
            self.store.mark_as_failed(record.id, error)
            stats.failed.append(SyncFailure(key, error, SyncAction.CREATE))
            return

        if record is None:
            record = self.store.add_record(RecordDraft(source=source))
        self.store.mark_as_synced(record.id, issue.number, issue.url, snapshot=snapshot)
        stats.outcomes.append(SyncOutcome(key, SyncAction.CREATE, issue.number, issue.url))

    def _update(
        self,
        record: TrackingRecord,
        github: GitHubReference,
        key: str,
        content: IssueContent,
        snapshot: ContentSnapshot,
        fields: list[str],
        stats: SyncStatistics,
    ) -> None:
        if self.dry_run:
            logger.debug("Dry run: would update issue #%d for %s", github.issue_number, key)
            stats.outcomes.append(
                SyncOutcome(key, SyncAction.UPDATE, github.issue_number, github.issue_url, fields)
            )
            return

        logger.info(
            "Updating issue #%d for %s (changed: %s)",
            github.issue_number,
            key,
            ", ".join(fields) or "retry",
        )
        try:
            self._require_tracker().update_issue(
                github.issue_number, content.title, content.body, content.labels
            )
        except Exception as e:
            error = _describe_error(e)
            logger.error("Failed to update issue #%d for %s: %s", github.issue_number, key, error)
            self.store.mark_as_failed(record.id, error)
            stats.failed.append(SyncFailure(key, error, SyncAction.UPDATE))
            return

        self.store.mark_as_synced(
            record.id,
            github.issue_number,
            github.issue_url,
            status=SyncStatus.UPDATED,
            snapshot=snapshot,
        )
        stats.outcomes.append(
            SyncOutcome(key, SyncAction.UPDATE, github.issue_number, github.issue_url, fields)
        )

    # --- Helpers ---

    def _parent_issue_number(self, session: PlanningSession, task: PlanningTask) -> int | None:
        if not task.parent_code:
            return None
        parent = self.store.find_by_task_id(session.session_id, task.parent_code)
        if parent is None or parent.github is None:
            return None
        return parent.github.issue_number

    def _require_tracker(self) -> IssueTrackerProtocol:
        if self.tracker is None:
            raise RuntimeError("No issue tracker configured")
        return self.tracker

    @staticmethod
    def _log_summary(label: str, stats: SyncStatistics) -> None:
        logger.info(
            "%s completed: created=%d updated=%d skipped=%d closed=%d failed=%d",
            label,
            stats.created,
            stats.updated,
            stats.skipped,
            stats.closed,
            stats.failed_count,
        )
