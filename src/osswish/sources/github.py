"""GitHub-backed snapshot sources.

GitHubIssuesFetcher rebuilds the snapshot from the open issues of the
wishlists repository (one issue per wishlist, approval via label).
PublishedSnapshotFetcher reads the all-wishlists.json document that the
scheduled job publishes.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from osswish.core.errors import SourceFetchError
from osswish.core.issue_parser import APPROVED_LABEL, parse_issue
from osswish.core.model import Snapshot, WishlistRecord
from osswish.core.updater import build_snapshot
from osswish.sources.base import SourceFetcher

logger = logging.getLogger(__name__)

USER_AGENT = "OSS-Wishlist-Cache/1.0"


class _HttpSource(SourceFetcher):
    """Shared lazy httpx client handling."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self._timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        client = await self._get_client()
        try:
            response = await client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise SourceFetchError(
                f"{url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SourceFetchError(f"{url} returned invalid JSON") from e


class GitHubIssuesFetcher(_HttpSource):
    """Builds snapshots from GitHub issues.

    Features:
    - Paginates all open issues (approved and pending)
    - Skips pull requests and issues whose body cannot be parsed
    - Authenticates with a token when configured (higher rate limit)
    """

    name = "github-issues"

    def __init__(
        self,
        org: str,
        repo: str,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        approved_label: str = APPROVED_LABEL,
        per_page: int = 100,
        max_pages: int = 50,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client=client)
        self.org = org
        self.repo = repo
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.approved_label = approved_label
        self.per_page = per_page
        self.max_pages = max_pages

    @property
    def headers(self) -> dict[str, str]:
        """Build request headers with optional auth token."""
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @property
    def issues_url(self) -> str:
        return f"{self.api_url}/repos/{self.org}/{self.repo}/issues"

    async def fetch(self) -> Snapshot:
        records: list[WishlistRecord] = []
        for page in range(1, self.max_pages + 1):
            issues = await self._get_json(
                self.issues_url,
                params={"state": "open", "per_page": self.per_page, "page": page},
            )
            if not isinstance(issues, list):
                raise SourceFetchError(f"Unexpected issues payload from {self.issues_url}")

            for issue in issues:
                if issue.get("pull_request"):
                    continue
                record = self._parse(issue)
                if record is not None:
                    records.append(record)

            if len(issues) < self.per_page:
                break
        else:
            logger.warning(f"Stopped paginating {self.issues_url} after {self.max_pages} pages")

        snapshot = build_snapshot(records)
        logger.info(
            f"Fetched {snapshot.total_wishlists} wishlists from {self.org}/{self.repo} "
            f"({snapshot.approved_count} approved, {snapshot.pending_count} pending)"
        )
        return snapshot

    async def fetch_record(self, record_id: int) -> WishlistRecord:
        issue = await self._get_json(f"{self.issues_url}/{record_id}")
        record = self._parse(issue)
        if record is None:
            raise SourceFetchError(f"Issue #{record_id} is not a valid wishlist")
        return record

    def _parse(self, issue: dict[str, Any]) -> WishlistRecord | None:
        try:
            return parse_issue(issue, approved_label=self.approved_label)
        except (KeyError, ValidationError) as e:
            logger.warning(f"Skipping issue #{issue.get('number')}: {e}")
            return None


class PublishedSnapshotFetcher(_HttpSource):
    """Reads the published all-wishlists.json document."""

    name = "published-snapshot"

    def __init__(self, url: str, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(client=client)
        self.url = url

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Cache-Control": "no-store"}

    async def fetch(self) -> Snapshot:
        payload = await self._get_json(self.url)
        try:
            return Snapshot.model_validate(payload)
        except ValidationError as e:
            raise SourceFetchError(f"Published snapshot at {self.url} is malformed: {e}") from e
