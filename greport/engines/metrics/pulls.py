"""Pull-request counts, merge times and groupings."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from greport.domain import IssueState, PrSize, PullRequest
from greport.domain.issue import utcnow, whole_days
from greport.engines.metrics.stats import mean, median


@dataclass
class PullMetrics:
    total: int
    open: int
    merged: int
    closed_unmerged: int
    draft_count: int
    avg_time_to_merge_hours: float | None
    median_time_to_merge_hours: float | None
    by_size: dict[str, int]
    by_author: dict[str, int]
    by_base_branch: dict[str, int]


@dataclass
class UnreviewedPrSummary:
    number: int
    title: str
    author: str
    age_days: int
    draft: bool


@dataclass
class UnreviewedPrs:
    prs: list[UnreviewedPrSummary] = field(default_factory=list)
    total: int = 0


class PullMetricsCalculator:
    """Pure functions over a pull-request collection."""

    @staticmethod
    def calculate(pulls: Iterable[PullRequest]) -> PullMetrics:
        pulls = list(pulls)
        open_count = sum(1 for pr in pulls if pr.state == IssueState.OPEN)
        merged = [pr for pr in pulls if pr.merged]
        closed_unmerged = sum(
            1 for pr in pulls if pr.state == IssueState.CLOSED and not pr.merged
        )
        merge_hours = [
            hours for pr in merged if (hours := pr.time_to_merge_hours()) is not None
        ]

        # every size appears, even with zero PRs
        by_size: dict[str, int] = {size.value: 0 for size in PrSize}
        by_author: Counter[str] = Counter()
        by_base: Counter[str] = Counter()
        for pr in pulls:
            by_size[pr.size_category.value] += 1
            by_author[pr.author.login] += 1
            by_base[pr.base_ref] += 1

        return PullMetrics(
            total=len(pulls),
            open=open_count,
            merged=len(merged),
            closed_unmerged=closed_unmerged,
            draft_count=sum(1 for pr in pulls if pr.draft),
            avg_time_to_merge_hours=mean(merge_hours),
            median_time_to_merge_hours=median(merge_hours),
            by_size=by_size,
            by_author=dict(by_author),
            by_base_branch=dict(by_base),
        )

    @staticmethod
    def unreviewed(
        pulls: Iterable[PullRequest],
        reviewed_numbers: Iterable[int],
        now: datetime | None = None,
    ) -> UnreviewedPrs:
        """Open PRs with no review, oldest first."""
        now = now or utcnow()
        reviewed = set(reviewed_numbers)
        waiting = sorted(
            (pr for pr in pulls if pr.state == IssueState.OPEN and pr.number not in reviewed),
            key=lambda pr: pr.created_at,
        )
        summaries = [
            UnreviewedPrSummary(
                number=pr.number,
                title=pr.title,
                author=pr.author.login,
                age_days=whole_days(now - pr.created_at),
                draft=pr.draft,
            )
            for pr in waiting
        ]
        return UnreviewedPrs(prs=summaries, total=len(summaries))
