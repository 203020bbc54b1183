"""Per-login activity counts over issues and pull requests."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from greport.domain import Issue, PullRequest

DEFAULT_LIMIT = 20
AGGREGATE_LIMIT = 30


class ContributorSort(str, enum.Enum):
    ISSUES = "issues"
    PRS = "prs"

    @classmethod
    def parse(cls, value: str) -> ContributorSort:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"unknown sort key: {value!r} (expected issues or prs)") from None


@dataclass
class ContributorStats:
    login: str
    issues_created: int = 0
    prs_created: int = 0
    prs_merged: int = 0


@dataclass
class AggregateContributorStats:
    login: str
    repositories: list[str] = field(default_factory=list)
    total_issues_created: int = 0
    total_prs_created: int = 0
    total_prs_merged: int = 0


def _tally(
    issues: Iterable[Issue], pulls: Iterable[PullRequest]
) -> dict[str, ContributorStats]:
    stats: dict[str, ContributorStats] = {}
    for issue in issues:
        login = issue.author.login
        stats.setdefault(login, ContributorStats(login)).issues_created += 1
    for pr in pulls:
        entry = stats.setdefault(pr.author.login, ContributorStats(pr.author.login))
        entry.prs_created += 1
        if pr.merged:
            entry.prs_merged += 1
    return stats


def contributor_stats(
    issues: Iterable[Issue],
    pulls: Iterable[PullRequest],
    sort_by: ContributorSort = ContributorSort.ISSUES,
    limit: int = DEFAULT_LIMIT,
) -> list[ContributorStats]:
    """Top *limit* authors, busiest first by *sort_by*; ties break on login."""
    stats = _tally(issues, pulls).values()
    if sort_by == ContributorSort.PRS:
        ranked = sorted(stats, key=lambda s: (-s.prs_created, s.login))
    else:
        ranked = sorted(stats, key=lambda s: (-s.issues_created, s.login))
    return ranked[:limit]


def aggregate_contributors(
    activity: Mapping[str, tuple[list[Issue], list[PullRequest]]],
    limit: int = AGGREGATE_LIMIT,
) -> list[AggregateContributorStats]:
    """Combine per-repository activity, ranked by issues plus PRs created.

    *activity* maps a repository's full name to its issues and pulls.
    """
    combined: dict[str, AggregateContributorStats] = {}
    for full_name, (issues, pulls) in activity.items():
        for login, stats in _tally(issues, pulls).items():
            entry = combined.setdefault(login, AggregateContributorStats(login))
            entry.repositories.append(full_name)
            entry.total_issues_created += stats.issues_created
            entry.total_prs_created += stats.prs_created
            entry.total_prs_merged += stats.prs_merged
    ranked = sorted(
        combined.values(),
        key=lambda s: (-(s.total_issues_created + s.total_prs_created), s.login),
    )
    return ranked[:limit]
