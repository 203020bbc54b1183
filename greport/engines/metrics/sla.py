"""SLA compliance: response and resolution targets, and live status of open issues."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from greport.domain import Issue, IssueEvent
from greport.domain.issue import utcnow, whole_hours
from greport.engines.metrics.stats import percent

AT_RISK_THRESHOLD = 0.8
RESPONSE_EVENT = "commented"


@dataclass(frozen=True)
class SlaConfig:
    response_time_hours: int = 24
    resolution_time_hours: int = 168
    # lower-cased label name -> (response hours, resolution hours)
    priority_labels: Mapping[str, tuple[int, int]] = field(
        default_factory=lambda: {"critical": (4, 24), "high": (8, 72)}
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "priority_labels",
            {name.lower(): tuple(hours) for name, hours in self.priority_labels.items()},
        )

    @classmethod
    def from_settings(cls, settings) -> SlaConfig:
        """Build from the ``[sla]`` section of the loaded config."""
        return cls(
            response_time_hours=settings.response_time_hours,
            resolution_time_hours=settings.resolution_time_hours,
            priority_labels=dict(settings.priority_labels),
        )

    def thresholds_for(self, issue: Issue) -> tuple[int, int]:
        """First label (in label order) with a priority entry wins."""
        for label in issue.labels:
            hours = self.priority_labels.get(label.name.lower())
            if hours is not None:
                return hours
        return self.response_time_hours, self.resolution_time_hours


class ViolationType(str, enum.Enum):
    RESPONSE = "response"
    RESOLUTION = "resolution"


@dataclass
class SlaViolation:
    issue_number: int
    issue_title: str
    violation_type: ViolationType
    sla_hours: int
    actual_hours: int
    exceeded_by_hours: int


@dataclass
class SlaReport:
    total_issues: int
    response_sla_met: int
    response_sla_breached: int
    resolution_sla_met: int
    resolution_sla_breached: int
    response_compliance_percent: float
    resolution_compliance_percent: float
    violations: list[SlaViolation] = field(default_factory=list)


class SlaCalculator:
    def __init__(self, config: SlaConfig | None = None) -> None:
        self._config = config or SlaConfig()

    @property
    def config(self) -> SlaConfig:
        return self._config

    def calculate(
        self,
        issues: Iterable[Issue],
        events_by_number: Mapping[int, Iterable[IssueEvent]] | None = None,
    ) -> SlaReport:
        """Check response SLA (issues with a comment event) and resolution SLA (closed issues)."""
        events_by_number = events_by_number or {}
        issues = list(issues)
        response_met = response_breached = 0
        resolution_met = resolution_breached = 0
        violations: list[SlaViolation] = []

        for issue in issues:
            response_hours, resolution_hours = self._config.thresholds_for(issue)

            comments = [
                e for e in events_by_number.get(issue.number, ()) if e.event_type == RESPONSE_EVENT
            ]
            if comments:
                first = min(comments, key=lambda e: e.created_at)
                actual = whole_hours(first.created_at - issue.created_at)
                if actual <= response_hours:
                    response_met += 1
                else:
                    response_breached += 1
                    violations.append(
                        _violation(issue, ViolationType.RESPONSE, response_hours, actual)
                    )

            if not issue.is_open and issue.closed_at is not None:
                actual = whole_hours(issue.closed_at - issue.created_at)
                if actual <= resolution_hours:
                    resolution_met += 1
                else:
                    resolution_breached += 1
                    violations.append(
                        _violation(issue, ViolationType.RESOLUTION, resolution_hours, actual)
                    )

        return SlaReport(
            total_issues=len(issues),
            response_sla_met=response_met,
            response_sla_breached=response_breached,
            resolution_sla_met=resolution_met,
            resolution_sla_breached=resolution_breached,
            response_compliance_percent=percent(response_met, response_met + response_breached),
            resolution_compliance_percent=percent(
                resolution_met, resolution_met + resolution_breached
            ),
            violations=violations,
        )


def _violation(issue: Issue, kind: ViolationType, sla_hours: int, actual: int) -> SlaViolation:
    return SlaViolation(
        issue_number=issue.number,
        issue_title=issue.title,
        violation_type=kind,
        sla_hours=sla_hours,
        actual_hours=actual,
        exceeded_by_hours=actual - sla_hours,
    )


# ── open issue status ─────────────────────────────────────────────────────


class SlaState(str, enum.Enum):
    OK = "ok"
    AT_RISK = "at_risk"
    RESPONSE_BREACHED = "response_breached"
    RESOLUTION_BREACHED = "resolution_breached"


@dataclass
class OpenIssueSla:
    number: int
    title: str
    author: str
    created_at: datetime
    age_hours: int
    status: SlaState
    labels: list[str]
    # hours past the breached target, or percent of the target elapsed when at risk
    hours_overdue: int | None = None
    percent_elapsed: float | None = None


@dataclass
class OpenSlaSummary:
    total_open: int
    within_sla: int
    response_breached: int
    resolution_breached: int
    at_risk: int
    compliance_rate: float


@dataclass
class OpenSlaStatus:
    summary: OpenSlaSummary
    breaching: list[OpenIssueSla] = field(default_factory=list)
    at_risk: list[OpenIssueSla] = field(default_factory=list)


def classify_open_issue(issue: Issue, config: SlaConfig, now: datetime) -> OpenIssueSla:
    response_hours, resolution_hours = config.thresholds_for(issue)
    age = now - issue.created_at
    age_hours = whole_hours(age)
    entry = OpenIssueSla(
        number=issue.number,
        title=issue.title,
        author=issue.author.login,
        created_at=issue.created_at,
        age_hours=age_hours,
        status=SlaState.OK,
        labels=[label.name for label in issue.labels],
    )
    responded = issue.comments_count > 0
    past_response = age > timedelta(hours=response_hours)

    if age > timedelta(hours=resolution_hours):
        entry.status = SlaState.RESOLUTION_BREACHED
        entry.hours_overdue = age_hours - resolution_hours
    elif past_response and not responded:
        entry.status = SlaState.RESPONSE_BREACHED
        entry.hours_overdue = age_hours - response_hours
    else:
        # once answered, the resolution target governs
        governing = resolution_hours if past_response else response_hours
        elapsed = age_hours / governing if governing > 0 else 1.0
        if elapsed >= AT_RISK_THRESHOLD and (past_response or not responded):
            entry.status = SlaState.AT_RISK
            entry.percent_elapsed = elapsed * 100.0
    return entry


def open_issue_sla_status(
    issues: Iterable[Issue],
    config: SlaConfig | None = None,
    now: datetime | None = None,
) -> OpenSlaStatus:
    """Classify every open issue against its SLA targets as of *now*."""
    config = config or SlaConfig()
    now = now or utcnow()

    entries = [classify_open_issue(issue, config, now) for issue in issues if issue.is_open]
    counts = {state: 0 for state in SlaState}
    for entry in entries:
        counts[entry.status] += 1

    def oldest_first(items: list[OpenIssueSla]) -> list[OpenIssueSla]:
        return sorted(items, key=lambda e: e.age_hours, reverse=True)

    breaching = oldest_first(
        [
            e
            for e in entries
            if e.status in (SlaState.RESPONSE_BREACHED, SlaState.RESOLUTION_BREACHED)
        ]
    )
    at_risk = oldest_first([e for e in entries if e.status == SlaState.AT_RISK])

    return OpenSlaStatus(
        summary=OpenSlaSummary(
            total_open=len(entries),
            within_sla=counts[SlaState.OK],
            response_breached=counts[SlaState.RESPONSE_BREACHED],
            resolution_breached=counts[SlaState.RESOLUTION_BREACHED],
            at_risk=counts[SlaState.AT_RISK],
            compliance_rate=percent(counts[SlaState.OK], len(entries)),
        ),
        breaching=breaching,
        at_risk=at_risk,
    )
