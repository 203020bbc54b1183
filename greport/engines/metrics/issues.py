"""Issue counts, close times, groupings, age distribution and staleness."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from greport.domain import Issue
from greport.domain.issue import utcnow
from greport.engines.metrics.stats import mean, median

UNASSIGNED = "Unassigned"
NO_MILESTONE = "No Milestone"
DEFAULT_STALE_DAYS = 30

# (label, min_days, max_days); max None means unbounded
AGE_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("< 1 day", 0, 1),
    ("1-7 days", 1, 7),
    ("1-4 weeks", 7, 28),
    ("1-3 months", 28, 90),
    ("3-6 months", 90, 180),
    ("> 6 months", 180, None),
)


@dataclass
class AgeBucket:
    label: str
    min_days: int
    max_days: int | None
    count: int = 0

    def contains(self, days: int) -> bool:
        return days >= self.min_days and (self.max_days is None or days < self.max_days)


@dataclass
class AgeDistribution:
    buckets: list[AgeBucket] = field(default_factory=list)


@dataclass
class IssueMetrics:
    total: int
    open: int
    closed: int
    avg_time_to_close_hours: float | None
    median_time_to_close_hours: float | None
    by_label: dict[str, int]
    by_assignee: dict[str, int]
    by_milestone: dict[str, int]
    age_distribution: AgeDistribution
    stale_count: int


def age_distribution(issues: Iterable[Issue], now: datetime | None = None) -> AgeDistribution:
    """Histogram of open-issue ages in whole days; each open issue lands in one bucket."""
    now = now or utcnow()
    buckets = [AgeBucket(label, lo, hi) for label, lo, hi in AGE_BUCKETS]
    for issue in issues:
        if not issue.is_open:
            continue
        days = issue.age_days(now)
        for bucket in buckets:
            if bucket.contains(days):
                bucket.count += 1
                break
        else:
            # clock skew can make created_at lie in the future
            buckets[0].count += 1
    return AgeDistribution(buckets=buckets)


class IssueMetricsCalculator:
    """Pure function over an issue collection."""

    @staticmethod
    def calculate(
        issues: Iterable[Issue],
        stale_days: int = DEFAULT_STALE_DAYS,
        now: datetime | None = None,
    ) -> IssueMetrics:
        now = now or utcnow()
        issues = list(issues)
        open_count = sum(1 for i in issues if i.is_open)

        close_hours = [
            hours for i in issues if (hours := i.time_to_close_hours()) is not None
        ]

        by_label: Counter[str] = Counter()
        by_assignee: Counter[str] = Counter()
        by_milestone: Counter[str] = Counter()
        for issue in issues:
            for label in issue.labels:
                by_label[label.name] += 1
            if issue.assignees:
                for user in issue.assignees:
                    by_assignee[user.login] += 1
            else:
                by_assignee[UNASSIGNED] += 1
            by_milestone[issue.milestone.title if issue.milestone else NO_MILESTONE] += 1

        return IssueMetrics(
            total=len(issues),
            open=open_count,
            closed=len(issues) - open_count,
            avg_time_to_close_hours=mean(close_hours),
            median_time_to_close_hours=median(close_hours),
            by_label=dict(by_label),
            by_assignee=dict(by_assignee),
            by_milestone=dict(by_milestone),
            age_distribution=age_distribution(issues, now),
            stale_count=sum(1 for i in issues if i.is_stale(stale_days, now)),
        )
