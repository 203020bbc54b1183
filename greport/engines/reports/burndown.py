"""Milestone burndown and burnup series with a velocity-based completion projection."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from greport.domain import Issue, Milestone
from greport.domain.issue import utcnow, whole_days

PROJECTION_WINDOW = 7
ONE_DAY = timedelta(days=1)


@dataclass
class DataPoint:
    date: datetime
    remaining: int
    completed: int


@dataclass
class ScopePoint:
    date: datetime
    total_scope: int


@dataclass
class BurndownReport:
    milestone: str
    start_date: datetime
    end_date: datetime | None
    total_issues: int
    data_points: list[DataPoint] = field(default_factory=list)
    ideal_burndown: list[DataPoint] = field(default_factory=list)
    projected_completion: datetime | None = None


@dataclass
class BurnupReport:
    milestone: str
    start_date: datetime
    end_date: datetime | None
    scope_data: list[ScopePoint] = field(default_factory=list)
    completed_data: list[DataPoint] = field(default_factory=list)


def _milestone_issues(issues: Iterable[Issue], milestone: Milestone) -> list[Issue]:
    return [i for i in issues if i.milestone is not None and i.milestone.id == milestone.id]


def _days(start: datetime, now: datetime) -> Iterable[datetime]:
    current = start
    while current <= now:
        yield current
        current += ONE_DAY


def _completed_by(issues: list[Issue], date: datetime) -> int:
    return sum(1 for i in issues if i.closed_at is not None and i.closed_at <= date)


class BurndownCalculator:
    @staticmethod
    def calculate(
        issues: Iterable[Issue],
        milestone: Milestone,
        now: datetime | None = None,
    ) -> BurndownReport:
        now = now or utcnow()
        scoped = _milestone_issues(issues, milestone)
        total = len(scoped)
        start = milestone.created_at

        points = []
        for day in _days(start, now):
            completed = _completed_by(scoped, day)
            points.append(DataPoint(date=day, remaining=total - completed, completed=completed))

        return BurndownReport(
            milestone=milestone.title,
            start_date=start,
            end_date=milestone.due_on,
            total_issues=total,
            data_points=points,
            ideal_burndown=ideal_burndown(total, start, milestone.due_on),
            projected_completion=project_completion(points),
        )

    @staticmethod
    def calculate_burnup(
        issues: Iterable[Issue],
        milestone: Milestone,
        now: datetime | None = None,
    ) -> BurnupReport:
        now = now or utcnow()
        scoped = _milestone_issues(issues, milestone)

        scope_data: list[ScopePoint] = []
        completed_data: list[DataPoint] = []
        for day in _days(milestone.created_at, now):
            scope = sum(1 for i in scoped if i.created_at <= day)
            completed = _completed_by(scoped, day)
            scope_data.append(ScopePoint(date=day, total_scope=scope))
            completed_data.append(
                DataPoint(date=day, remaining=scope - completed, completed=completed)
            )

        return BurnupReport(
            milestone=milestone.title,
            start_date=milestone.created_at,
            end_date=milestone.due_on,
            scope_data=scope_data,
            completed_data=completed_data,
        )


def ideal_burndown(total: int, start: datetime, due: datetime | None) -> list[DataPoint]:
    """Straight line from *total* at *start* to zero at *due*; empty without a due date."""
    if due is None:
        return []
    days = max(1, whole_days(due - start))
    rate = total / days
    line = []
    for day in range(days + 1):
        remaining = max(0, int(total - day * rate))
        line.append(
            DataPoint(date=start + ONE_DAY * day, remaining=remaining, completed=total - remaining)
        )
    return line


def project_completion(points: list[DataPoint]) -> datetime | None:
    """Extrapolate the completion rate over the last few points."""
    recent = points[-PROJECTION_WINDOW:]
    if len(recent) < 2:
        return None
    first, last = recent[0], recent[-1]
    days = whole_days(last.date - first.date)
    completed_diff = last.completed - first.completed
    if days <= 0 or completed_diff <= 0:
        return None
    if last.remaining <= 0:
        return last.date
    rate = completed_diff / days
    return last.date + ONE_DAY * math.ceil(last.remaining / rate)
