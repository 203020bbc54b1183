"""Issue open/close velocity over fixed windows, with trend classification."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from greport.domain import Issue
from greport.domain.issue import utcnow

TREND_THRESHOLD = 5
MIN_POINTS_FOR_TREND = 4


class Period(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def duration(self) -> timedelta:
        return {
            Period.DAY: timedelta(days=1),
            Period.WEEK: timedelta(days=7),
            Period.MONTH: timedelta(days=30),
        }[self]

    @classmethod
    def parse(cls, value: str) -> Period:
        """Accepts day/daily, week/weekly, month/monthly (case-insensitive)."""
        aliases = {
            "day": cls.DAY,
            "daily": cls.DAY,
            "week": cls.WEEK,
            "weekly": cls.WEEK,
            "month": cls.MONTH,
            "monthly": cls.MONTH,
        }
        try:
            return aliases[value.strip().lower()]
        except KeyError:
            raise ValueError(f"invalid period: {value!r}") from None


class Trend(str, enum.Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass
class VelocityDataPoint:
    period_start: datetime
    period_end: datetime
    opened: int
    closed: int
    net_change: int
    cumulative_open: int


@dataclass
class VelocityMetrics:
    period: Period
    data_points: list[VelocityDataPoint] = field(default_factory=list)
    avg_opened: float = 0.0
    avg_closed: float = 0.0
    trend: Trend = Trend.STABLE


class VelocityCalculator:
    @staticmethod
    def calculate(
        issues: Iterable[Issue],
        period: Period,
        num_periods: int,
        now: datetime | None = None,
    ) -> VelocityMetrics:
        """Walk *num_periods* windows back from *now*; points come out oldest first.

        Windows are half-open ``[start, end)``. ``cumulative_open`` is the
        open count at each window's end, reconstructed backward from the
        current open count.
        """
        now = now or utcnow()
        issues = list(issues)
        length = period.duration

        cumulative_open = sum(1 for i in issues if i.is_open)
        points: list[VelocityDataPoint] = []
        for index in range(num_periods):
            end = now - length * index
            start = end - length
            opened = sum(1 for i in issues if start <= i.created_at < end)
            closed = sum(
                1 for i in issues if i.closed_at is not None and start <= i.closed_at < end
            )
            net = opened - closed
            points.append(
                VelocityDataPoint(
                    period_start=start,
                    period_end=end,
                    opened=opened,
                    closed=closed,
                    net_change=net,
                    cumulative_open=cumulative_open,
                )
            )
            cumulative_open = max(cumulative_open - net, 0)

        points.reverse()

        count = len(points)
        return VelocityMetrics(
            period=period,
            data_points=points,
            avg_opened=sum(p.opened for p in points) / count if count else 0.0,
            avg_closed=sum(p.closed for p in points) / count if count else 0.0,
            trend=classify_trend(points),
        )


def classify_trend(points: list[VelocityDataPoint]) -> Trend:
    """Compare summed net change of the older half with the newer half."""
    if len(points) < MIN_POINTS_FOR_TREND:
        return Trend.STABLE
    mid = len(points) // 2
    first = sum(p.net_change for p in points[:mid])
    second = sum(p.net_change for p in points[mid:])
    if second > first + TREND_THRESHOLD:
        return Trend.INCREASING
    if second < first - TREND_THRESHOLD:
        return Trend.DECREASING
    return Trend.STABLE
