"""Tests for SyncOrchestrator."""

from pathlib import Path

import pytest

from worksync.models import (
    CodeComment,
    CommentType,
    PlanningSession,
    PlanningTask,
    SyncAction,
    SyncStatus,
)
from worksync.repositories import RecordStore
from worksync.sync import SyncOrchestrator


def make_session(*tasks: PlanningTask, session_id: str = "P-003") -> PlanningSession:
    return PlanningSession(session_id=session_id, title="Search rework", tasks=list(tasks))


def make_task(code: str, title: str, **kwargs) -> PlanningTask:
    return PlanningTask(code=code, title=title, **kwargs)


def make_comment(
    content: str, file_path: str = "src/app.py", line: int = 10, **kwargs
) -> CodeComment:
    return CodeComment(
        id=f"comment-{file_path}-{line}",
        type=kwargs.pop("type", CommentType.TODO),
        content=content,
        file_path=file_path,
        line_number=line,
        **kwargs,
    )


@pytest.fixture
def orchestrator(store: RecordStore, tracker) -> SyncOrchestrator:
    return SyncOrchestrator(store, tracker, repository="acme/app")


class TestConstruction:
    def test_tracker_required_without_dry_run(self, store: RecordStore):
        """A real run needs a tracker."""
        with pytest.raises(ValueError):
            SyncOrchestrator(store, None)

    def test_dry_run_without_tracker(self, store: RecordStore):
        SyncOrchestrator(store, None, dry_run=True)


class TestPlanningSync:
    """Tests for sync_planning_session."""

    def test_creates_issues_for_new_tasks(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """New tasks get an issue and a synced record."""
        session = make_session(make_task("T-1", "Index docs"), make_task("T-2", "Rank results"))

        stats = orchestrator.sync_planning_session(session)

        assert stats.created == 2
        assert stats.failed_count == 0
        record = store.find_by_task_id("P-003", "T-1")
        assert record.status == SyncStatus.SYNCED
        assert record.github.issue_number == 1
        assert record.snapshot is not None
        assert tracker.issues[1]["title"] == "[T-1] Index docs"
        assert "planning:P-003" in tracker.issues[1]["labels"]

    def test_parents_created_before_subtasks(
        self, orchestrator: SyncOrchestrator, tracker
    ):
        child = make_task("T-1-1", "Child", level=1, parent_code="T-1")
        parent = make_task("T-1", "Parent", subtasks=[child])

        orchestrator.sync_planning_session(make_session(parent))

        assert tracker.calls == [("create", "[T-1] Parent"), ("create", "[T-1-1] Child")]
        assert "subtask" in tracker.issues[2]["labels"]

    def test_subtask_body_links_parent_issue(
        self, orchestrator: SyncOrchestrator, tracker
    ):
        """A subtask issue references the issue created for its parent."""
        child = make_task("T-1-1", "Child", level=1, parent_code="T-1")
        parent = make_task("T-1", "Parent", subtasks=[child])

        orchestrator.sync_planning_session(make_session(parent))

        assert "- **Parent issue:** #1" in tracker.issues[2]["body"]
        assert "Parent issue" not in tracker.issues[1]["body"]

    def test_subtask_linked_once_parent_issue_exists(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """A subtask synced while its parent failed is updated with the link later."""
        child = make_task("T-1-1", "Child", level=1, parent_code="T-1")
        session = make_session(make_task("T-1", "Parent", subtasks=[child]))
        tracker.fail_titles = {"Parent"}
        orchestrator.sync_planning_session(session)
        assert "Parent issue" not in tracker.issues[1]["body"]

        tracker.fail_titles = set()
        stats = orchestrator.sync_planning_session(session)

        assert stats.created == 1
        assert stats.updated == 1
        parent_number = store.find_by_task_id("P-003", "T-1").github.issue_number
        assert f"- **Parent issue:** #{parent_number}" in tracker.issues[1]["body"]

    def test_second_run_is_idempotent(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker, tracking_path: Path
    ):
        """Re-running without changes skips every item and writes identical bytes."""
        session = make_session(make_task("T-1", "Index docs"), make_task("T-2", "Rank results"))
        orchestrator.sync_planning_session(session)
        store.save()
        first = tracking_path.read_bytes()
        tracker.calls.clear()

        reloaded = RecordStore(tracking_path)
        reloaded.load()
        stats = SyncOrchestrator(reloaded, tracker).sync_planning_session(session)
        reloaded.save()

        assert stats.skipped == 2
        assert stats.created == stats.updated == stats.failed_count == 0
        assert tracker.calls == []
        assert tracking_path.read_bytes() == first

    def test_changed_task_is_updated(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """Edited content updates the existing issue instead of creating one."""
        orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))

        stats = orchestrator.sync_planning_session(
            make_session(make_task("T-1", "Index all docs", completed=True))
        )

        assert stats.updated == 1
        assert stats.outcomes[0].changed_fields == ["title", "state", "labels"]
        assert tracker.calls[-1] == ("update", 1)
        assert tracker.issues[1]["title"] == "[T-1] Index all docs"
        record = store.find_by_task_id("P-003", "T-1")
        assert record.status == SyncStatus.UPDATED
        assert record.github.issue_number == 1
        assert len(store) == 1

    def test_whitespace_only_edit_is_skipped(
        self, orchestrator: SyncOrchestrator, tracker
    ):
        orchestrator.sync_planning_session(
            make_session(make_task("T-1", "Index docs", description="Line one"))
        )
        stats = orchestrator.sync_planning_session(
            make_session(make_task("T-1", "Index docs", description="Line one   \r\n\n"))
        )
        assert stats.skipped == 1

    def test_create_failure_is_recorded(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """A failed create leaves a failed record without an issue."""
        tracker.fail_all = True

        stats = orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))

        assert stats.failed_count == 1
        assert stats.failed[0].action == SyncAction.CREATE
        assert "rate limit" in stats.failed[0].error
        record = store.find_by_task_id("P-003", "T-1")
        assert record.status == SyncStatus.FAILED
        assert record.sync_attempts == 1
        assert record.github is None

    def test_failure_does_not_abort_other_items(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """One failing item never blocks the rest of the batch."""
        tracker.fail_titles = {"Broken"}
        session = make_session(
            make_task("T-1", "Works"), make_task("T-2", "Broken"), make_task("T-3", "Also works")
        )

        stats = orchestrator.sync_planning_session(session)

        assert stats.created == 2
        assert stats.failed_count == 1
        assert store.find_by_task_id("P-003", "T-3").status == SyncStatus.SYNCED

    def test_failed_create_is_retried(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """The next run retries creation and keeps the attempt count."""
        session = make_session(make_task("T-1", "Index docs"))
        tracker.fail_all = True
        orchestrator.sync_planning_session(session)
        tracker.fail_all = False

        stats = orchestrator.sync_planning_session(session)

        assert stats.created == 1
        record = store.find_by_task_id("P-003", "T-1")
        assert record.status == SyncStatus.SYNCED
        assert record.sync_attempts == 1
        assert record.last_error is None
        assert len(store) == 1

    def test_update_failure_keeps_issue(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """A failed update keeps the issue reference so no duplicate gets created."""
        orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))
        tracker.fail_numbers = {1}

        stats = orchestrator.sync_planning_session(make_session(make_task("T-1", "Renamed")))

        assert stats.failed[0].action == SyncAction.UPDATE
        record = store.find_by_task_id("P-003", "T-1")
        assert record.status == SyncStatus.FAILED
        assert record.github.issue_number == 1

        tracker.fail_numbers = set()
        stats = orchestrator.sync_planning_session(make_session(make_task("T-1", "Renamed")))

        assert stats.updated == 1
        assert ("create", "[T-1] Renamed") not in tracker.calls

    def test_failed_update_is_retried_without_changes(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """A reset record with unchanged content is re-sent rather than skipped."""
        session = make_session(make_task("T-1", "Index docs"))
        orchestrator.sync_planning_session(session)
        record = store.find_by_task_id("P-003", "T-1")
        store.mark_as_failed(record.id, "connection reset")
        store.reset_pending()

        stats = orchestrator.sync_planning_session(session)

        assert stats.updated == 1
        assert store.find_by_task_id("P-003", "T-1").status == SyncStatus.UPDATED

    def test_dry_run_changes_nothing(self, store: RecordStore, tracker):
        """Dry runs report decisions without calling the tracker or touching the store."""
        orchestrator = SyncOrchestrator(store, None, dry_run=True)

        stats = orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))

        assert stats.dry_run
        assert stats.created == 1
        assert len(store) == 0

    def test_custom_task_labeler(self, store: RecordStore, tracker):
        orchestrator = SyncOrchestrator(
            store, tracker, task_labeler=lambda task, session: ["custom"]
        )
        orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))
        assert tracker.issues[1]["labels"] == ["custom"]

    def test_extra_labels(self, store: RecordStore, tracker):
        orchestrator = SyncOrchestrator(store, tracker, extra_labels=["team:search"])
        orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))
        assert "team:search" in tracker.issues[1]["labels"]


class TestCommentSync:
    """Tests for sync_code_comments and close_removed_comments."""

    def test_creates_issue_for_comment(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        comment = make_comment("Handle retries", priority="P1", assignee="alice")

        stats = orchestrator.sync_code_comments([comment])

        assert stats.created == 1
        assert stats.outcomes[0].key == "src/app.py:10"
        issue = tracker.issues[1]
        assert issue["title"] == "TODO: Handle retries"
        assert "priority:p1" in issue["labels"]
        assert "https://github.com/acme/app/blob/HEAD/src/app.py#L10" in issue["body"]
        assert store.find_by_comment(comment.id, "src/app.py", 10) is not None

    def test_unchanged_comment_skipped(
        self, orchestrator: SyncOrchestrator, tracker
    ):
        comment = make_comment("Handle retries")
        orchestrator.sync_code_comments([comment])
        stats = orchestrator.sync_code_comments([comment])
        assert stats.skipped == 1
        assert len(tracker.calls) == 1

    def test_changed_priority_updates(
        self, orchestrator: SyncOrchestrator, tracker
    ):
        orchestrator.sync_code_comments([make_comment("Handle retries")])
        stats = orchestrator.sync_code_comments([make_comment("Handle retries", priority="P0")])
        assert stats.updated == 1
        assert "priority" in stats.outcomes[0].changed_fields

    def test_removed_comments_left_alone_by_default(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        orchestrator.sync_code_comments([make_comment("Handle retries")])
        stats = orchestrator.sync_code_comments([])
        assert stats.closed == 0
        assert len(store) == 1

    def test_close_removed(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        """Issues of comments missing from the scan are closed and their records dropped."""
        kept = make_comment("Keep me", line=5)
        gone = make_comment("Remove me", line=20)
        orchestrator.sync_code_comments([kept, gone])

        stats = orchestrator.sync_code_comments([kept], close_removed=True)

        assert stats.closed == 1
        assert stats.skipped == 1
        assert tracker.issues[2]["state"] == "closed"
        assert store.find_by_comment(gone.id, gone.file_path, 20) is None
        assert store.find_by_comment(kept.id, kept.file_path, 5) is not None

    def test_close_failure_is_recorded(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        gone = make_comment("Remove me")
        orchestrator.sync_code_comments([gone])
        tracker.fail_numbers = {1}

        stats = orchestrator.sync_code_comments([], close_removed=True)

        assert stats.failed[0].action == SyncAction.CLOSE
        record = store.find_by_comment(gone.id, gone.file_path, 10)
        assert record.status == SyncStatus.FAILED
        assert record.last_error.startswith("Failed to close")
        assert record.github.issue_number == 1

    def test_removed_comment_without_issue_is_dropped(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        tracker.fail_all = True
        orchestrator.sync_code_comments([make_comment("Never synced")])
        tracker.fail_all = False

        stats = orchestrator.sync_code_comments([], close_removed=True)

        assert stats.closed == 0
        assert len(store) == 0
        assert not any(call[0] == "close" for call in tracker.calls)

    def test_close_removed_dry_run(self, store: RecordStore, tracker):
        SyncOrchestrator(store, tracker).sync_code_comments([make_comment("Remove me")])
        tracker.calls.clear()

        stats = SyncOrchestrator(store, None, dry_run=True).close_removed_comments([])

        assert stats.closed == 1
        assert tracker.calls == []
        assert len(store) == 1

    def test_planning_records_untouched_by_close(
        self, orchestrator: SyncOrchestrator, store: RecordStore, tracker
    ):
        orchestrator.sync_planning_session(make_session(make_task("T-1", "Index docs")))
        stats = orchestrator.sync_code_comments([], close_removed=True)
        assert stats.closed == 0
        assert len(store) == 1
