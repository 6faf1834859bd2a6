"""Parse GitHub issue-form bodies into wishlist records.

Issue forms render as markdown with one ``### Heading`` per field:

    ### Project Name
    my-project

    ### Services Requested
    - [x] Security Audit - review of the codebase
    - [ ] Funding Strategy
"""

from __future__ import annotations

import re
from typing import Any

from osswish.core.model import WishlistRecord

APPROVED_LABEL = "approved-wishlist"

_CHECKED_ITEM = re.compile(r"\[x\]\s*(.+?)(?:\s*-|$)")
_LEADING_VALUE = re.compile(r"^\s*(.+?)(?:\s*-|$)", re.MULTILINE)


def extract_section(body: str, header: str) -> str:
    """Return the trimmed text under ``### header`` up to the next heading."""
    pattern = re.compile(rf"### {re.escape(header)}\n(.*?)(?=###|\Z)", re.IGNORECASE | re.DOTALL)
    match = pattern.search(body)
    return match.group(1).strip() if match else ""


def parse_checkboxes(content: str) -> list[str]:
    """Checked items of a markdown checkbox list, without their descriptions."""
    items = []
    for line in content.split("\n"):
        if "[x]" not in line:
            continue
        match = _CHECKED_ITEM.search(line)
        if match and match.group(1).strip():
            items.append(match.group(1).strip())
    return items


def parse_comma_separated(content: str) -> list[str]:
    return [item.strip() for item in content.split(",") if item.strip()]


def is_approved(issue: dict[str, Any], label: str = APPROVED_LABEL) -> bool:
    return any(lbl.get("name") == label for lbl in issue.get("labels") or [])


def parse_issue(issue: dict[str, Any], approved_label: str = APPROVED_LABEL) -> WishlistRecord:
    """Build a WishlistRecord from a GitHub issue payload."""
    body = issue.get("body") or ""

    project_name = extract_section(body, "Project Name")
    maintainer = extract_section(body, "Maintainer GitHub Username").removeprefix("@")

    urgency_match = _LEADING_VALUE.search(extract_section(body, "Urgency Level"))
    urgency = urgency_match.group(1).strip() if urgency_match else ""

    return WishlistRecord(
        id=issue["number"],
        project_name=project_name or f"Wishlist: {issue.get('title', '')}",
        repository_url=extract_section(body, "Project Repository"),
        maintainer_username=maintainer,
        maintainer_avatar_url=f"https://github.com/{maintainer}.png" if maintainer else "",
        approved=is_approved(issue, approved_label),
        wishes=parse_checkboxes(extract_section(body, "Services Requested")),
        technologies=parse_comma_separated(extract_section(body, "Package Ecosystems")),
        resources=parse_checkboxes(extract_section(body, "Resources Requested")),
        urgency=urgency,
        project_size=extract_section(body, "Project Size"),
        additional_notes=extract_section(body, "Additional Notes"),
        additional_context=extract_section(body, "Additional Context"),
        created_at=issue.get("created_at"),
        updated_at=issue.get("updated_at"),
    )
