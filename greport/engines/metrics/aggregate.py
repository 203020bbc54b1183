"""Cross-repository rollups of issue, pull-request and velocity metrics.

Every function takes a mapping of repository full name to that
repository's entities and returns per-repository rows plus figures
computed over the combined collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TypeVar

from greport.domain import Issue, IssueState, PullRequest
from greport.domain.issue import utcnow
from greport.engines.metrics.issues import AgeBucket, IssueMetricsCalculator
from greport.engines.metrics.pulls import PullMetricsCalculator
from greport.engines.metrics.velocity import Period, Trend, VelocityCalculator

T = TypeVar("T", Issue, PullRequest)


# ── issues ────────────────────────────────────────────────────────────────


@dataclass
class RepoIssueMetrics:
    repository: str
    total: int
    open: int
    closed: int
    avg_time_to_close_hours: float | None
    stale_count: int


@dataclass
class IssueMetricsTotals:
    total: int
    open: int
    closed: int
    avg_time_to_close_hours: float | None
    stale_count: int


@dataclass
class AggregateIssueMetrics:
    totals: IssueMetricsTotals
    by_repository: list[RepoIssueMetrics] = field(default_factory=list)
    by_label: dict[str, int] = field(default_factory=dict)
    by_assignee: dict[str, int] = field(default_factory=dict)
    age_distribution: list[AgeBucket] = field(default_factory=list)


def aggregate_issue_metrics(
    issues_by_repo: Mapping[str, Sequence[Issue]],
    stale_days: int,
    now: datetime | None = None,
) -> AggregateIssueMetrics:
    now = now or utcnow()
    rows = []
    everything: list[Issue] = []
    for full_name, issues in issues_by_repo.items():
        metrics = IssueMetricsCalculator.calculate(issues, stale_days=stale_days, now=now)
        rows.append(
            RepoIssueMetrics(
                repository=full_name,
                total=metrics.total,
                open=metrics.open,
                closed=metrics.closed,
                avg_time_to_close_hours=metrics.avg_time_to_close_hours,
                stale_count=metrics.stale_count,
            )
        )
        everything.extend(issues)

    # the combined mean equals the per-repository means weighted by closed count
    combined = IssueMetricsCalculator.calculate(everything, stale_days=stale_days, now=now)
    return AggregateIssueMetrics(
        totals=IssueMetricsTotals(
            total=combined.total,
            open=combined.open,
            closed=combined.closed,
            avg_time_to_close_hours=combined.avg_time_to_close_hours,
            stale_count=combined.stale_count,
        ),
        by_repository=rows,
        by_label=combined.by_label,
        by_assignee=combined.by_assignee,
        age_distribution=combined.age_distribution.buckets,
    )


# ── pulls ─────────────────────────────────────────────────────────────────


@dataclass
class RepoPullMetrics:
    repository: str
    total: int
    open: int
    merged: int
    avg_time_to_merge_hours: float | None


@dataclass
class PullMetricsTotals:
    total: int
    open: int
    merged: int
    avg_time_to_merge_hours: float | None


@dataclass
class AggregatePullMetrics:
    totals: PullMetricsTotals
    by_repository: list[RepoPullMetrics] = field(default_factory=list)
    by_size: dict[str, int] = field(default_factory=dict)
    by_author: dict[str, int] = field(default_factory=dict)


def aggregate_pull_metrics(
    pulls_by_repo: Mapping[str, Sequence[PullRequest]],
) -> AggregatePullMetrics:
    rows = []
    everything: list[PullRequest] = []
    for full_name, pulls in pulls_by_repo.items():
        metrics = PullMetricsCalculator.calculate(pulls)
        rows.append(
            RepoPullMetrics(
                repository=full_name,
                total=metrics.total,
                open=metrics.open,
                merged=metrics.merged,
                avg_time_to_merge_hours=metrics.avg_time_to_merge_hours,
            )
        )
        everything.extend(pulls)

    combined = PullMetricsCalculator.calculate(everything)
    return AggregatePullMetrics(
        totals=PullMetricsTotals(
            total=combined.total,
            open=combined.open,
            merged=combined.merged,
            avg_time_to_merge_hours=combined.avg_time_to_merge_hours,
        ),
        by_repository=rows,
        by_size=combined.by_size,
        by_author=combined.by_author,
    )


# ── velocity ──────────────────────────────────────────────────────────────


@dataclass
class RepoVelocity:
    repository: str
    avg_opened: float
    avg_closed: float


@dataclass
class AggregateVelocity:
    period: Period
    combined_avg_opened: float
    combined_avg_closed: float
    trend: Trend
    by_repository: list[RepoVelocity] = field(default_factory=list)


def aggregate_velocity(
    issues_by_repo: Mapping[str, Sequence[Issue]],
    period: Period,
    num_periods: int,
    now: datetime | None = None,
) -> AggregateVelocity:
    now = now or utcnow()
    rows = []
    everything: list[Issue] = []
    for full_name, issues in issues_by_repo.items():
        velocity = VelocityCalculator.calculate(issues, period, num_periods, now=now)
        rows.append(RepoVelocity(full_name, velocity.avg_opened, velocity.avg_closed))
        everything.extend(issues)

    combined = VelocityCalculator.calculate(everything, period, num_periods, now=now)
    return AggregateVelocity(
        period=period,
        combined_avg_opened=combined.avg_opened,
        combined_avg_closed=combined.avg_closed,
        trend=combined.trend,
        by_repository=rows,
    )


# ── filters ───────────────────────────────────────────────────────────────


def filter_recent(
    items: Iterable[T],
    state: IssueState | None = None,
    days: int | None = None,
    now: datetime | None = None,
) -> list[T]:
    """Keep items in *state* (any when None) created within the last *days*."""
    cutoff = None if days is None else (now or utcnow()) - timedelta(days=days)
    return [
        item
        for item in items
        if (state is None or item.state == state)
        and (cutoff is None or item.created_at >= cutoff)
    ]
