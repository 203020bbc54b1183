"""Issues, milestones and issue timeline events."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from greport.domain.user import Label, User


class IssueState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def whole_hours(delta: timedelta) -> int:
    """Truncate a duration to whole hours (toward zero)."""
    return int(delta.total_seconds() / 3600)


def whole_days(delta: timedelta) -> int:
    """Truncate a duration to whole days (toward zero)."""
    return int(delta.total_seconds() / 86400)


@dataclass(frozen=True)
class Milestone:
    id: int
    number: int
    title: str
    state: IssueState
    created_at: datetime
    description: str | None = None
    open_issues: int = 0
    closed_issues: int = 0
    due_on: datetime | None = None
    closed_at: datetime | None = None

    @property
    def completion_percent(self) -> float:
        total = self.open_issues + self.closed_issues
        if total == 0:
            return 0.0
        return self.closed_issues / total * 100.0

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.state != IssueState.OPEN or self.due_on is None:
            return False
        return self.due_on < (now or utcnow())


@dataclass(frozen=True)
class Issue:
    """Immutable snapshot of an issue.

    ``closed_at`` is set exactly when ``state`` is CLOSED.
    """

    id: int
    number: int
    title: str
    state: IssueState
    author: User
    created_at: datetime
    updated_at: datetime
    body: str | None = None
    labels: tuple[Label, ...] = ()
    assignees: tuple[User, ...] = ()
    milestone: Milestone | None = None
    comments_count: int = 0
    closed_at: datetime | None = None
    closed_by: User | None = None

    @property
    def is_open(self) -> bool:
        return self.state == IssueState.OPEN

    def age_days(self, now: datetime | None = None) -> int:
        end = self.closed_at if self.closed_at is not None else (now or utcnow())
        return whole_days(end - self.created_at)

    def time_to_close_hours(self) -> int | None:
        if self.closed_at is None:
            return None
        return whole_hours(self.closed_at - self.created_at)

    def is_stale(self, days: int, now: datetime | None = None) -> bool:
        if not self.is_open:
            return False
        return self.updated_at < (now or utcnow()) - timedelta(days=days)

    def has_label(self, name: str) -> bool:
        lowered = name.lower()
        return any(label.name.lower() == lowered for label in self.labels)


@dataclass(frozen=True)
class IssueEvent:
    id: int
    event_type: str
    created_at: datetime
    actor: User | None = None
    label_name: str | None = None
    assignee: User | None = None
