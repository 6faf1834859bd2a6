"""Snapshot sources consulted on a cache miss."""

from __future__ import annotations

from osswish.config import settings
from osswish.sources.base import SourceFetcher
from osswish.sources.github import GitHubIssuesFetcher, PublishedSnapshotFetcher

__all__ = [
    "GitHubIssuesFetcher",
    "PublishedSnapshotFetcher",
    "SourceFetcher",
    "create_fetcher",
]


def create_fetcher() -> SourceFetcher:
    """Return the SourceFetcher selected by settings."""
    source = settings.snapshot_source.lower()
    if source == "github":
        return GitHubIssuesFetcher(
            org=settings.github_org,
            repo=settings.github_repo,
            token=settings.github_token,
            api_url=settings.github_api_url,
            approved_label=settings.approved_label,
        )
    if source == "published":
        return PublishedSnapshotFetcher(url=settings.published_snapshot_url)
    raise ValueError("Unsupported snapshot_source. Supported values: github, published.")
