"""GitHub REST API client for issue operations."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

import httpx

from .protocol import CreatedIssue

logger = logging.getLogger(__name__)


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    pass


class GitHubAuthError(GitHubClientError):
    """Authentication failed."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Resource not found."""

    pass


class GitHubForbiddenError(GitHubClientError):
    """Permission denied."""

    pass


class GitHubRateLimitError(GitHubClientError):
    """Rate limit exceeded."""

    pass


class GitHubIssuesClient:
    """GitHub REST client scoped to one repository's issues.

    Provides a thin wrapper around the issues endpoints with:
    - Token authentication (from env var or gh CLI)
    - Enterprise support via custom base_url
    - Error classification (auth, not found, forbidden, rate limit)
    """

    def __init__(self, token: str, owner: str, repo: str, base_url: str = "api.github.com"):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            owner: Repository owner
            repo: Repository name
            base_url: API host (default: api.github.com, use custom for Enterprise)
        """
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url
        self._api_url = f"https://{base_url}"
        self._issues_url = f"{self._api_url}/repos/{owner}/{repo}/issues"
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubIssuesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @classmethod
    def from_environment(
        cls, owner: str, repo: str, base_url: str = "api.github.com"
    ) -> GitHubIssuesClient:
        """Create a client from environment variables or gh CLI.

        Tries in order:
        1. GITHUB_TOKEN environment variable
        2. gh auth token (if gh CLI is installed and authenticated)

        Raises:
            GitHubAuthError: If no token is available
        """
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            logger.debug("Using token from GITHUB_TOKEN environment variable")
            return cls(token, owner, repo, base_url)

        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                check=True,
            )
            token = result.stdout.strip()
            if token:
                logger.debug("Using token from gh CLI")
                return cls(token, owner, repo, base_url)
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("gh CLI not available or not authenticated")

        logger.error("No GitHub token found")
        raise GitHubAuthError(
            "No GitHub token found. Either:\n"
            "  - Set GITHUB_TOKEN environment variable\n"
            "  - Run 'gh auth login' to authenticate with GitHub CLI"
        )

    # --- Issue operations ---

    def create_issue(self, title: str, body: str, labels: list[str]) -> CreatedIssue:
        """Create an issue in the repository."""
        data = self.request(
            "POST", self._issues_url, {"title": title, "body": body, "labels": labels}
        )
        return CreatedIssue(number=int(data["number"]), url=str(data["html_url"]))

    def update_issue(self, issue_number: int, title: str, body: str, labels: list[str]) -> None:
        """Replace title, body and labels of an issue."""
        self.request(
            "PATCH",
            f"{self._issues_url}/{issue_number}",
            {"title": title, "body": body, "labels": labels},
        )

    def close_issue(self, issue_number: int) -> None:
        """Close an issue as completed."""
        self.request(
            "PATCH",
            f"{self._issues_url}/{issue_number}",
            {"state": "closed", "state_reason": "completed"},
        )

    # --- Transport ---

    def request(
        self, method: str, url: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a REST request and return the decoded JSON object.

        Raises:
            GitHubAuthError: Authentication failed
            GitHubNotFoundError: Resource not found
            GitHubForbiddenError: Permission denied
            GitHubRateLimitError: Rate limit exceeded
            GitHubClientError: Other errors
        """
        endpoint = url.removeprefix(self._api_url)
        logger.debug("%s %s: payload keys=%s", method, endpoint, sorted(payload or {}))

        start_time = time.monotonic()
        try:
            response = self._client.request(method, url, json=payload)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, endpoint, elapsed_ms, e)
            raise GitHubClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if response.status_code == 401:
            logger.error("%s %s: 401 Unauthorized (%.0fms)", method, endpoint, elapsed_ms)
            raise GitHubAuthError(
                "Authentication failed. Check your GITHUB_TOKEN.\nRequired scope: repo"
            )
        if response.status_code in (403, 429):
            # Check if rate limited
            if (
                response.status_code == 429
                or response.headers.get("x-ratelimit-remaining") == "0"
                or "rate limit" in response.text.lower()
            ):
                logger.error("%s %s: Rate Limited (%.0fms)", method, endpoint, elapsed_ms)
                raise GitHubRateLimitError("GitHub API rate limit exceeded. Try again later.")
            logger.error("%s %s: 403 Forbidden (%.0fms)", method, endpoint, elapsed_ms)
            raise GitHubForbiddenError(
                "Permission denied. Check that your token has the 'repo' scope "
                f"for {self.owner}/{self.repo}"
            )
        if response.status_code in (404, 410):
            logger.error(
                "%s %s: %d Not Found (%.0fms)", method, endpoint, response.status_code, elapsed_ms
            )
            raise GitHubNotFoundError(f"Resource not found: {endpoint}")

        if response.status_code >= 400:
            logger.error(
                "%s %s: HTTP %d (%.0fms)", method, endpoint, response.status_code, elapsed_ms
            )
            raise GitHubClientError(f"HTTP {response.status_code}: {response.text}")

        try:
            result = response.json()
        except ValueError as e:
            logger.error("%s %s: Invalid JSON response (%.0fms)", method, endpoint, elapsed_ms)
            raise GitHubClientError(f"Invalid JSON response: {e}") from e

        logger.info("%s %s: %d OK (%.0fms)", method, endpoint, response.status_code, elapsed_ms)
        return result if isinstance(result, dict) else {}
