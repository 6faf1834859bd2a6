"""Tests for GitHub issue-form parsing."""

from __future__ import annotations

from osswish.core.issue_parser import (
    extract_section,
    is_approved,
    parse_checkboxes,
    parse_comma_separated,
    parse_issue,
)

BODY = """### Project Name
left-pad

### Maintainer GitHub Username
@octocat

### Project Repository
https://github.com/octocat/left-pad

### Package Ecosystems
npm, PyPI

### Services Requested
- [x] Security Audit - review of the codebase
- [ ] Funding Strategy
- [x] Documentation

### Resources Requested
- [x] Hosting

### Urgency Level
High - we need help soon

### Project Size
Small

### Additional Notes
Thanks!
"""


def _issue(**overrides):
    issue = {
        "number": 42,
        "title": "left-pad wishlist",
        "body": BODY,
        "labels": [{"name": "approved-wishlist"}],
        "created_at": "2026-01-02T03:04:05Z",
        "updated_at": "2026-01-03T03:04:05Z",
    }
    issue.update(overrides)
    return issue


class TestSections:
    """Test markdown section helpers."""

    def test_extract_section(self) -> None:
        assert extract_section(BODY, "Project Name") == "left-pad"
        assert extract_section(BODY, "project size") == "Small"

    def test_missing_section(self) -> None:
        assert extract_section(BODY, "Timeline") == ""

    def test_last_section_runs_to_end(self) -> None:
        assert extract_section(BODY, "Additional Notes") == "Thanks!"

    def test_parse_checkboxes(self) -> None:
        content = extract_section(BODY, "Services Requested")
        assert parse_checkboxes(content) == ["Security Audit", "Documentation"]

    def test_parse_comma_separated(self) -> None:
        assert parse_comma_separated("npm, PyPI,, Cargo ") == ["npm", "PyPI", "Cargo"]


class TestParseIssue:
    """Test issue to record conversion."""

    def test_full_issue(self) -> None:
        record = parse_issue(_issue())
        assert record.id == 42
        assert record.project_name == "left-pad"
        assert record.maintainer_username == "octocat"
        assert record.maintainer_avatar_url == "https://github.com/octocat.png"
        assert record.repository_url == "https://github.com/octocat/left-pad"
        assert record.technologies == ["npm", "PyPI"]
        assert record.wishes == ["Security Audit", "Documentation"]
        assert record.resources == ["Hosting"]
        assert record.urgency == "High"
        assert record.project_size == "Small"
        assert record.additional_notes == "Thanks!"
        assert record.approved is True
        assert record.created_at is not None

    def test_unlabelled_issue_is_pending(self) -> None:
        record = parse_issue(_issue(labels=[{"name": "bug"}]))
        assert record.approved is False
        assert record.status == "pending"

    def test_custom_approved_label(self) -> None:
        issue = _issue(labels=[{"name": "ok"}])
        assert is_approved(issue, "ok")
        assert parse_issue(issue, approved_label="ok").approved is True

    def test_empty_body_falls_back_to_title(self) -> None:
        record = parse_issue(_issue(body=None, labels=None))
        assert record.project_name == "Wishlist: left-pad wishlist"
        assert record.maintainer_username == ""
        assert record.maintainer_avatar_url == ""
        assert record.wishes == []
