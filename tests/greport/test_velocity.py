"""Tests for the velocity calculator and trend classification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from greport.domain import Issue, IssueState, User
from greport.engines.metrics import Period, Trend, VelocityCalculator, VelocityDataPoint
from greport.engines.metrics.velocity import classify_trend

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _issue(number, created_days_ago, closed_days_ago=None):
    created = NOW - timedelta(days=created_days_ago)
    closed_at = None if closed_days_ago is None else NOW - timedelta(days=closed_days_ago)
    return Issue(
        number,
        number,
        f"issue {number}",
        IssueState.OPEN if closed_at is None else IssueState.CLOSED,
        User(id=1, login="alice"),
        created,
        closed_at or created,
        closed_at=closed_at,
    )


def _points(nets):
    start = NOW
    return [
        VelocityDataPoint(
            period_start=start,
            period_end=start,
            opened=max(net, 0),
            closed=max(-net, 0),
            net_change=net,
            cumulative_open=0,
        )
        for net in nets
    ]


class TestPeriod:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("day", Period.DAY),
            ("Daily", Period.DAY),
            ("week", Period.WEEK),
            ("WEEKLY", Period.WEEK),
            ("month", Period.MONTH),
            (" monthly ", Period.MONTH),
        ],
    )
    def test_parse_aliases(self, raw, expected):
        assert Period.parse(raw) == expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            Period.parse("fortnight")

    def test_durations(self):
        assert Period.DAY.duration == timedelta(days=1)
        assert Period.WEEK.duration == timedelta(days=7)
        assert Period.MONTH.duration == timedelta(days=30)


class TestVelocity:
    def test_weekly_four_windows(self):
        issues = [
            _issue(1, created_days_ago=5),
            _issue(2, created_days_ago=10, closed_days_ago=3),
            _issue(3, created_days_ago=15, closed_days_ago=12),
        ]
        v = VelocityCalculator.calculate(issues, Period.WEEK, 4, now=NOW)

        assert v.period == Period.WEEK
        assert len(v.data_points) == 4
        starts = [p.period_start for p in v.data_points]
        assert starts == sorted(starts)
        assert v.data_points[-1].period_end == NOW

        assert [p.opened for p in v.data_points] == [0, 1, 1, 1]
        assert [p.closed for p in v.data_points] == [0, 0, 1, 1]
        assert [p.cumulative_open for p in v.data_points] == [0, 1, 1, 1]
        assert v.avg_opened == 0.75
        assert v.avg_closed == 0.5

    def test_windows_are_contiguous(self):
        v = VelocityCalculator.calculate([], Period.DAY, 5, now=NOW)
        for prev, cur in zip(v.data_points, v.data_points[1:]):
            assert prev.period_end == cur.period_start

    def test_cumulative_open_never_negative(self):
        # more closes than the current open count can explain
        issues = [_issue(n, created_days_ago=100, closed_days_ago=1) for n in range(1, 6)]
        v = VelocityCalculator.calculate(issues, Period.WEEK, 6, now=NOW)
        assert all(p.cumulative_open >= 0 for p in v.data_points)

    def test_zero_periods(self):
        v = VelocityCalculator.calculate([_issue(1, 2)], Period.WEEK, 0, now=NOW)
        assert v.data_points == []
        assert v.avg_opened == 0.0
        assert v.trend == Trend.STABLE


class TestTrend:
    def test_too_few_points_is_stable(self):
        assert classify_trend(_points([0, 20, 20])) == Trend.STABLE

    def test_increasing(self):
        assert classify_trend(_points([0, 0, 5, 5])) == Trend.INCREASING

    def test_decreasing(self):
        assert classify_trend(_points([5, 5, 0, 0])) == Trend.DECREASING

    def test_within_threshold_is_stable(self):
        # second half exceeds first by exactly the threshold
        assert classify_trend(_points([0, 0, 3, 2])) == Trend.STABLE
