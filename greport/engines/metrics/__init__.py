"""Metrics calculators — pure functions over entity collections."""

from greport.engines.metrics.aggregate import (
    AggregateIssueMetrics,
    AggregatePullMetrics,
    AggregateVelocity,
    aggregate_issue_metrics,
    aggregate_pull_metrics,
    aggregate_velocity,
    filter_recent,
)
from greport.engines.metrics.contributors import (
    AggregateContributorStats,
    ContributorSort,
    ContributorStats,
    aggregate_contributors,
    contributor_stats,
)
from greport.engines.metrics.issues import (
    AgeBucket,
    AgeDistribution,
    IssueMetrics,
    IssueMetricsCalculator,
)
from greport.engines.metrics.pulls import (
    PullMetrics,
    PullMetricsCalculator,
    UnreviewedPrs,
    UnreviewedPrSummary,
)
from greport.engines.metrics.sla import (
    OpenIssueSla,
    OpenSlaStatus,
    OpenSlaSummary,
    SlaCalculator,
    SlaConfig,
    SlaReport,
    SlaState,
    SlaViolation,
    ViolationType,
    open_issue_sla_status,
)
from greport.engines.metrics.stats import median
from greport.engines.metrics.velocity import (
    Period,
    Trend,
    VelocityCalculator,
    VelocityDataPoint,
    VelocityMetrics,
)

__all__ = [
    "AggregateContributorStats",
    "AggregateIssueMetrics",
    "AggregatePullMetrics",
    "AggregateVelocity",
    "AgeBucket",
    "AgeDistribution",
    "ContributorSort",
    "ContributorStats",
    "IssueMetrics",
    "IssueMetricsCalculator",
    "OpenIssueSla",
    "OpenSlaStatus",
    "OpenSlaSummary",
    "Period",
    "PullMetrics",
    "PullMetricsCalculator",
    "SlaCalculator",
    "SlaConfig",
    "SlaReport",
    "SlaState",
    "SlaViolation",
    "Trend",
    "UnreviewedPrSummary",
    "UnreviewedPrs",
    "VelocityCalculator",
    "VelocityDataPoint",
    "VelocityMetrics",
    "ViolationType",
    "aggregate_contributors",
    "aggregate_issue_metrics",
    "aggregate_pull_metrics",
    "aggregate_velocity",
    "contributor_stats",
    "filter_recent",
    "median",
    "open_issue_sla_status",
]
