"""Tests for issue metrics: counts, groupings, age distribution, staleness."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from greport.domain import Issue, IssueState, Label, Milestone, User
from greport.engines.metrics import IssueMetricsCalculator, median
from greport.engines.metrics.issues import (
    AGE_BUCKETS,
    NO_MILESTONE,
    UNASSIGNED,
    age_distribution,
)
from greport.engines.metrics.stats import mean, percent

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _user(login="alice", uid=1):
    return User(id=uid, login=login)


def _milestone(title="v1.0", mid=10):
    return Milestone(id=mid, number=1, title=title, state=IssueState.OPEN, created_at=NOW)


def _issue(
    number,
    *,
    age_days=10.0,
    closed_after_hours=None,
    labels=(),
    assignees=(),
    milestone=None,
    updated_days_ago=0.0,
):
    created = NOW - timedelta(days=age_days)
    closed_at = None
    state = IssueState.OPEN
    if closed_after_hours is not None:
        closed_at = created + timedelta(hours=closed_after_hours)
        state = IssueState.CLOSED
    return Issue(
        number,
        number,
        f"issue {number}",
        state,
        _user(),
        created,
        NOW - timedelta(days=updated_days_ago),
        labels=tuple(Label(id=i, name=name) for i, name in enumerate(labels)),
        assignees=tuple(_user(login, uid=i + 100) for i, login in enumerate(assignees)),
        milestone=milestone,
        closed_at=closed_at,
    )


# ── TestStats ────────────────────────────────────────────────────────────────


class TestStats:
    def test_median_odd(self):
        assert median([1, 2, 3]) == 2

    def test_median_even(self):
        assert median([1, 2, 3, 4]) == 2.5

    def test_median_empty(self):
        assert median([]) is None

    def test_median_unsorted_input(self):
        assert median([9, 1, 5]) == 5

    def test_mean(self):
        assert mean([2, 4]) == 3
        assert mean([]) is None

    def test_percent_empty_is_full(self):
        assert percent(0, 0) == 100.0
        assert percent(1, 4) == 25.0


# ── TestIssueMetrics ─────────────────────────────────────────────────────────


class TestIssueMetrics:
    def test_empty_collection(self):
        m = IssueMetricsCalculator.calculate([], now=NOW)
        assert m.total == 0
        assert m.open == 0
        assert m.closed == 0
        assert m.avg_time_to_close_hours is None
        assert m.median_time_to_close_hours is None
        assert m.by_label == {}
        assert m.stale_count == 0
        assert sum(b.count for b in m.age_distribution.buckets) == 0

    def test_open_plus_closed_equals_total(self):
        issues = [
            _issue(1),
            _issue(2, closed_after_hours=5),
            _issue(3, closed_after_hours=10),
            _issue(4),
            _issue(5, closed_after_hours=30),
        ]
        m = IssueMetricsCalculator.calculate(issues, now=NOW)
        assert m.total == 5
        assert m.open == 2
        assert m.closed == 3
        assert m.open + m.closed == m.total

    def test_close_time_statistics(self):
        issues = [
            _issue(1, closed_after_hours=10),
            _issue(2, closed_after_hours=20),
            _issue(3, closed_after_hours=60),
            _issue(4),
        ]
        m = IssueMetricsCalculator.calculate(issues, now=NOW)
        assert m.avg_time_to_close_hours == 30
        assert m.median_time_to_close_hours == 20

    def test_label_groups_count_memberships(self):
        issues = [
            _issue(1, labels=("bug", "ui")),
            _issue(2, labels=("bug",)),
            _issue(3),
        ]
        m = IssueMetricsCalculator.calculate(issues, now=NOW)
        assert m.by_label == {"bug": 2, "ui": 1}
        # three memberships across two labelled issues
        assert sum(m.by_label.values()) == 3

    def test_assignee_groups_include_unassigned(self):
        issues = [
            _issue(1, assignees=("bob", "carol")),
            _issue(2, assignees=("bob",)),
            _issue(3),
        ]
        m = IssueMetricsCalculator.calculate(issues, now=NOW)
        assert m.by_assignee == {"bob": 2, "carol": 1, UNASSIGNED: 1}

    def test_milestone_groups(self):
        ms = _milestone("v2.0")
        issues = [_issue(1, milestone=ms), _issue(2, milestone=ms), _issue(3)]
        m = IssueMetricsCalculator.calculate(issues, now=NOW)
        assert m.by_milestone == {"v2.0": 2, NO_MILESTONE: 1}

    def test_stale_count_only_open(self):
        issues = [
            _issue(1, updated_days_ago=45),
            _issue(2, updated_days_ago=5),
            _issue(3, updated_days_ago=45, closed_after_hours=1),
        ]
        m = IssueMetricsCalculator.calculate(issues, stale_days=30, now=NOW)
        assert m.stale_count == 1

    def test_stale_threshold_is_configurable(self):
        issues = [_issue(1, updated_days_ago=10)]
        assert IssueMetricsCalculator.calculate(issues, stale_days=7, now=NOW).stale_count == 1
        assert IssueMetricsCalculator.calculate(issues, stale_days=14, now=NOW).stale_count == 0


# ── TestAgeDistribution ──────────────────────────────────────────────────────


class TestAgeDistribution:
    def test_bucket_labels_in_order(self):
        dist = age_distribution([], now=NOW)
        assert [b.label for b in dist.buckets] == [label for label, _, _ in AGE_BUCKETS]

    def test_boundary_ages_partition_open_issues(self):
        ages = [0, 1, 7, 28, 90, 180, 400]
        issues = [_issue(i, age_days=age) for i, age in enumerate(ages, start=1)]
        dist = age_distribution(issues, now=NOW)

        counts = {b.label: b.count for b in dist.buckets}
        assert counts == {
            "< 1 day": 1,
            "1-7 days": 1,
            "1-4 weeks": 1,
            "1-3 months": 1,
            "3-6 months": 1,
            "> 6 months": 2,
        }
        assert sum(counts.values()) == len(issues)

    def test_closed_issues_excluded(self):
        issues = [_issue(1, age_days=3), _issue(2, age_days=3, closed_after_hours=1)]
        dist = age_distribution(issues, now=NOW)
        assert sum(b.count for b in dist.buckets) == 1

    def test_future_created_at_lands_in_first_bucket(self):
        issues = [_issue(1, age_days=-2)]
        dist = age_distribution(issues, now=NOW)
        assert dist.buckets[0].count == 1
