"""Milestone progress snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from greport.domain import Milestone
from greport.domain.issue import IssueState, utcnow, whole_days


@dataclass
class MilestoneProgress:
    id: int
    number: int
    title: str
    state: IssueState
    open_issues: int
    closed_issues: int
    total_issues: int
    completion_percent: float
    created_at: datetime
    due_on: datetime | None
    closed_at: datetime | None
    is_overdue: bool
    # negative once the due date has passed; None without a due date
    days_remaining: int | None


def milestone_progress(milestone: Milestone, now: datetime | None = None) -> MilestoneProgress:
    now = now or utcnow()
    return MilestoneProgress(
        id=milestone.id,
        number=milestone.number,
        title=milestone.title,
        state=milestone.state,
        open_issues=milestone.open_issues,
        closed_issues=milestone.closed_issues,
        total_issues=milestone.open_issues + milestone.closed_issues,
        completion_percent=milestone.completion_percent,
        created_at=milestone.created_at,
        due_on=milestone.due_on,
        closed_at=milestone.closed_at,
        is_overdue=milestone.is_overdue(now),
        days_remaining=None if milestone.due_on is None else whole_days(milestone.due_on - now),
    )
