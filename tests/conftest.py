"""Shared fixtures for worksync tests."""

from pathlib import Path

import pytest

from worksync.github.protocol import CreatedIssue
from worksync.repositories import RecordStore


class FakeTracker:
    """In-memory issue tracker that records calls and can be told to fail."""

    def __init__(self) -> None:
        self.next_number = 1
        self.issues: dict[int, dict] = {}
        self.calls: list[tuple] = []
        self.fail_titles: set[str] = set()
        self.fail_numbers: set[int] = set()
        self.fail_all = False
        self.client_closed = False

    def _check(self, title: str | None = None, number: int | None = None) -> None:
        if self.fail_all or (title is not None and any(t in title for t in self.fail_titles)):
            raise RuntimeError("GitHub API rate limit exceeded")
        if number is not None and number in self.fail_numbers:
            raise RuntimeError(f"Issue #{number} could not be updated")

    def create_issue(self, title: str, body: str, labels: list[str]) -> CreatedIssue:
        self.calls.append(("create", title))
        self._check(title=title)
        number = self.next_number
        self.next_number += 1
        self.issues[number] = {"title": title, "body": body, "labels": labels, "state": "open"}
        return CreatedIssue(number=number, url=f"https://github.com/acme/app/issues/{number}")

    def update_issue(self, issue_number: int, title: str, body: str, labels: list[str]) -> None:
        self.calls.append(("update", issue_number))
        self._check(title=title, number=issue_number)
        self.issues[issue_number].update({"title": title, "body": body, "labels": labels})

    def close_issue(self, issue_number: int) -> None:
        self.calls.append(("close", issue_number))
        self._check(number=issue_number)
        self.issues[issue_number]["state"] = "closed"

    def close(self) -> None:
        self.client_closed = True


@pytest.fixture
def tracking_path(tmp_path: Path) -> Path:
    """Location of the tracking file inside a temporary project."""
    return tmp_path / ".worksync" / "tracking.json"


@pytest.fixture
def store(tracking_path: Path) -> RecordStore:
    """A loaded, empty record store."""
    store = RecordStore(tracking_path)
    store.load()
    return store


@pytest.fixture
def tracker() -> FakeTracker:
    """A fresh fake issue tracker."""
    return FakeTracker()
