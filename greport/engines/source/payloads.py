"""REST JSON payload → domain entity conversion."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from greport.domain import (
    Issue,
    IssueEvent,
    IssueState,
    Label,
    Milestone,
    PullRequest,
    Release,
    Repository,
    User,
)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp (GitHub uses the ``Z`` suffix)."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _required_datetime(data: dict[str, Any], key: str) -> datetime:
    value = parse_datetime(data.get(key))
    if value is None:
        raise ValueError(f"payload is missing {key!r}")
    return value


def parse_user(data: dict[str, Any] | None) -> User:
    # Deleted accounts come back as null.
    if not data:
        return User.unknown()
    return User(
        id=data.get("id", 0),
        login=data.get("login") or "unknown",
        avatar_url=data.get("avatar_url") or "",
        html_url=data.get("html_url") or "",
    )


def parse_label(data: dict[str, Any]) -> Label:
    return Label(
        id=data["id"],
        name=data["name"],
        color=data.get("color") or "",
        description=data.get("description"),
    )


def parse_state(value: str | None) -> IssueState:
    return IssueState.CLOSED if value == "closed" else IssueState.OPEN


def parse_milestone(data: dict[str, Any] | None) -> Milestone | None:
    if not data:
        return None
    return Milestone(
        id=data["id"],
        number=data["number"],
        title=data["title"],
        description=data.get("description"),
        state=parse_state(data.get("state")),
        open_issues=data.get("open_issues", 0),
        closed_issues=data.get("closed_issues", 0),
        due_on=parse_datetime(data.get("due_on")),
        created_at=_required_datetime(data, "created_at"),
        closed_at=parse_datetime(data.get("closed_at")),
    )


def parse_issue(data: dict[str, Any]) -> Issue:
    closed_by = data.get("closed_by")
    return Issue(
        id=data["id"],
        number=data["number"],
        title=data["title"],
        body=data.get("body"),
        state=parse_state(data.get("state")),
        labels=tuple(parse_label(lbl) for lbl in data.get("labels") or ()),
        assignees=tuple(parse_user(u) for u in data.get("assignees") or ()),
        milestone=parse_milestone(data.get("milestone")),
        author=parse_user(data.get("user")),
        comments_count=data.get("comments", 0),
        created_at=_required_datetime(data, "created_at"),
        updated_at=_required_datetime(data, "updated_at"),
        closed_at=parse_datetime(data.get("closed_at")),
        closed_by=parse_user(closed_by) if closed_by else None,
    )


def parse_pull(data: dict[str, Any]) -> PullRequest:
    return PullRequest(
        id=data["id"],
        number=data["number"],
        title=data["title"],
        body=data.get("body"),
        state=parse_state(data.get("state")),
        draft=bool(data.get("draft")),
        author=parse_user(data.get("user")),
        labels=tuple(parse_label(lbl) for lbl in data.get("labels") or ()),
        milestone=parse_milestone(data.get("milestone")),
        head_ref=(data.get("head") or {}).get("ref", ""),
        base_ref=(data.get("base") or {}).get("ref", ""),
        merged=data.get("merged_at") is not None,
        merged_at=parse_datetime(data.get("merged_at")),
        additions=data.get("additions") or 0,
        deletions=data.get("deletions") or 0,
        changed_files=data.get("changed_files") or 0,
        created_at=_required_datetime(data, "created_at"),
        updated_at=_required_datetime(data, "updated_at"),
        closed_at=parse_datetime(data.get("closed_at")),
    )


def parse_release(data: dict[str, Any]) -> Release:
    return Release(
        id=data["id"],
        tag_name=data["tag_name"],
        name=data.get("name"),
        body=data.get("body"),
        draft=bool(data.get("draft")),
        prerelease=bool(data.get("prerelease")),
        author=parse_user(data.get("author")),
        created_at=_required_datetime(data, "created_at"),
        published_at=parse_datetime(data.get("published_at")),
    )


def parse_repository(data: dict[str, Any]) -> Repository:
    owner = (data.get("owner") or {}).get("login", "")
    return Repository(
        id=data["id"],
        owner=owner,
        name=data["name"],
        full_name=data.get("full_name") or f"{owner}/{data['name']}",
        description=data.get("description"),
        private=bool(data.get("private")),
        default_branch=data.get("default_branch") or "main",
        created_at=_required_datetime(data, "created_at"),
        updated_at=_required_datetime(data, "updated_at"),
    )


def parse_issue_event(data: dict[str, Any]) -> IssueEvent:
    """Parse a timeline entry; comments use ``commented`` as their event type."""
    actor = data.get("actor") or data.get("user")
    label = data.get("label") or {}
    assignee = data.get("assignee")
    return IssueEvent(
        id=data.get("id") or 0,
        event_type=data.get("event", ""),
        actor=parse_user(actor) if actor else None,
        created_at=_required_datetime(data, "created_at"),
        label_name=label.get("name"),
        assignee=parse_user(assignee) if assignee else None,
    )
