"""ReportService — loads entity collections store-first and feeds the calculators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from greport.core.config import DefaultsSettings
from greport.core.github import InvalidRepoFormatError, RepoId
from greport.domain import Issue, IssueEvent, Milestone, PullRequest, Release
from greport.domain.issue import IssueState, utcnow
from greport.engines.metrics import (
    AggregateContributorStats,
    AggregateIssueMetrics,
    AggregatePullMetrics,
    AggregateVelocity,
    ContributorSort,
    ContributorStats,
    IssueMetrics,
    IssueMetricsCalculator,
    OpenSlaStatus,
    Period,
    PullMetrics,
    PullMetricsCalculator,
    SlaCalculator,
    SlaConfig,
    SlaReport,
    UnreviewedPrs,
    VelocityCalculator,
    VelocityMetrics,
    aggregate_contributors,
    aggregate_issue_metrics,
    aggregate_pull_metrics,
    aggregate_velocity,
    contributor_stats,
    filter_recent,
    open_issue_sla_status,
)
from greport.engines.reports import (
    BurndownCalculator,
    BurndownReport,
    BurnupReport,
    MilestoneProgress,
    ReleaseNotes,
    ReleaseNotesGenerator,
    milestone_progress,
)
from greport.engines.source.base import SourceClient
from greport.engines.source.params import IssueParams, PullParams, StateFilter
from greport.engines.source.registry import ClientRegistry
from greport.services import NotFoundError, ValidationError
from greport.services.cache_service import CacheService

log = structlog.get_logger("greport.services")


def parse_repo(owner: str, name: str) -> RepoId:
    """Validate an ``owner``/``name`` pair from a URL or command line."""
    try:
        return RepoId.parse(f"{owner}/{name}")
    except InvalidRepoFormatError as exc:
        raise ValidationError(str(exc)) from exc


def find_milestone(milestones: list[Milestone], key: str) -> Milestone:
    """Match by title (case-insensitive), then by number."""
    wanted = key.strip().lower()
    for milestone in milestones:
        if milestone.title.lower() == wanted:
            return milestone
    if wanted.isdigit():
        for milestone in milestones:
            if milestone.number == int(wanted):
                return milestone
    raise NotFoundError(f"milestone not found: {key}")


def _in_window(when: datetime, start: datetime | None, end: datetime) -> bool:
    """Half-open window: after *start* (when given), up to and including *end*."""
    return (start is None or when > start) and when <= end


def _parse_state(state: str | None) -> IssueState | None:
    if state is None or state == "all":
        return None
    try:
        return IssueState(state)
    except ValueError:
        raise ValidationError(f"unknown state: {state!r} (expected open, closed or all)") from None


@dataclass
class ReleasePage:
    items: list[Release]
    total: int
    page: int
    per_page: int
    has_next: bool


class ReportService:
    """Store-first report assembly.

    Entity collections come from the store once the relevant entity type
    has synced successfully, and from the owner's source client
    otherwise. Both paths return entities in the store's order (issues,
    pulls and milestones by number, releases newest first) so reports do
    not depend on where their input was loaded from. Issue events and
    review data always come from the client.
    """

    def __init__(
        self,
        cache_service: CacheService,
        registry: ClientRegistry,
        sla_config: SlaConfig | None = None,
        defaults: DefaultsSettings | None = None,
    ) -> None:
        self._cache = cache_service
        self._registry = registry
        self._sla_config = sla_config or SlaConfig()
        self._defaults = defaults or DefaultsSettings()

    # ── loading ───────────────────────────────────────────────────────────

    def _client(self, repo: RepoId) -> SourceClient:
        return self._registry.client_for_owner(repo.owner)

    async def _stored_repo_id(
        self, session: AsyncSession, repo: RepoId, data_type: str
    ) -> int | None:
        repository_id = await self._cache.get_repo_db_id(session, repo.owner, repo.name)
        if repository_id is None:
            return None
        if not await self._cache.has_synced_data(session, repository_id, data_type):
            return None
        return repository_id

    async def load_issues(
        self, session: AsyncSession, repo: RepoId, state: StateFilter = StateFilter.ALL
    ) -> list[Issue]:
        repository_id = await self._stored_repo_id(session, repo, "issues")
        if repository_id is not None:
            state_value = None if state == StateFilter.ALL else state.value
            return await self._cache.issues_from_store(session, repository_id, state=state_value)
        log.debug("report.fetch_fallback", repository=repo.full_name, data_type="issues")
        issues = await self._client(repo).list_issues(repo, IssueParams(state=state))
        return sorted(issues, key=lambda i: i.number)

    async def load_pulls(
        self, session: AsyncSession, repo: RepoId, state: StateFilter = StateFilter.ALL
    ) -> list[PullRequest]:
        repository_id = await self._stored_repo_id(session, repo, "pulls")
        if repository_id is not None:
            state_value = None if state == StateFilter.ALL else state.value
            return await self._cache.pulls_from_store(session, repository_id, state=state_value)
        log.debug("report.fetch_fallback", repository=repo.full_name, data_type="pulls")
        pulls = await self._client(repo).list_pulls(repo, PullParams(state=state))
        return sorted(pulls, key=lambda pr: pr.number)

    async def load_milestones(self, session: AsyncSession, repo: RepoId) -> list[Milestone]:
        repository_id = await self._stored_repo_id(session, repo, "milestones")
        if repository_id is not None:
            return await self._cache.milestones_from_store(session, repository_id)
        log.debug("report.fetch_fallback", repository=repo.full_name, data_type="milestones")
        milestones = await self._client(repo).list_milestones(repo, StateFilter.ALL)
        return sorted(milestones, key=lambda m: m.number)

    async def load_releases(self, session: AsyncSession, repo: RepoId) -> list[Release]:
        repository_id = await self._stored_repo_id(session, repo, "releases")
        if repository_id is not None:
            return await self._cache.releases_from_store(session, repository_id)
        log.debug("report.fetch_fallback", repository=repo.full_name, data_type="releases")
        releases = await self._client(repo).list_releases(repo)
        return sorted(releases, key=lambda r: (r.created_at, r.id), reverse=True)

    # ── issues ────────────────────────────────────────────────────────────

    async def issue_metrics(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        stale_days: int | None = None,
        now: datetime | None = None,
    ) -> IssueMetrics:
        repo = parse_repo(owner, name)
        issues = await self.load_issues(session, repo)
        days = self._defaults.stale_days if stale_days is None else stale_days
        return IssueMetricsCalculator.calculate(issues, stale_days=days, now=now)

    async def velocity(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        period: str | None = None,
        periods: int | None = None,
        now: datetime | None = None,
    ) -> VelocityMetrics:
        repo = parse_repo(owner, name)
        parsed, count = self._velocity_window(period, periods)
        issues = await self.load_issues(session, repo)
        return VelocityCalculator.calculate(issues, parsed, count, now=now)

    def _velocity_window(self, period: str | None, periods: int | None) -> tuple[Period, int]:
        try:
            parsed = Period.parse(period or self._defaults.velocity_period)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        count = self._defaults.velocity_periods if periods is None else periods
        if count < 1:
            raise ValidationError("periods must be at least 1")
        return parsed, count

    async def burndown(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        milestone: str,
        now: datetime | None = None,
    ) -> BurndownReport:
        repo = parse_repo(owner, name)
        target = find_milestone(await self.load_milestones(session, repo), milestone)
        issues = await self.load_issues(session, repo)
        return BurndownCalculator.calculate(issues, target, now=now)

    async def burnup(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        milestone: str,
        now: datetime | None = None,
    ) -> BurnupReport:
        repo = parse_repo(owner, name)
        target = find_milestone(await self.load_milestones(session, repo), milestone)
        issues = await self.load_issues(session, repo)
        return BurndownCalculator.calculate_burnup(issues, target, now=now)

    async def milestone_progress(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        milestone: str,
        now: datetime | None = None,
    ) -> MilestoneProgress:
        repo = parse_repo(owner, name)
        target = find_milestone(await self.load_milestones(session, repo), milestone)
        return milestone_progress(target, now=now)

    # ── contributors ──────────────────────────────────────────────────────

    async def contributors(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        sort_by: str = "issues",
        limit: int = 20,
    ) -> list[ContributorStats]:
        """Issue and pull-request authors ranked by *sort_by* (``issues`` or ``prs``)."""
        repo = parse_repo(owner, name)
        try:
            key = ContributorSort.parse(sort_by)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        issues = await self.load_issues(session, repo)
        pulls = await self.load_pulls(session, repo)
        return contributor_stats(issues, pulls, sort_by=key, limit=limit)

    # ── pulls ─────────────────────────────────────────────────────────────

    async def pull_metrics(self, session: AsyncSession, owner: str, name: str) -> PullMetrics:
        repo = parse_repo(owner, name)
        return PullMetricsCalculator.calculate(await self.load_pulls(session, repo))

    async def unreviewed_pulls(
        self, session: AsyncSession, owner: str, name: str, now: datetime | None = None
    ) -> UnreviewedPrs:
        repo = parse_repo(owner, name)
        open_pulls = await self.load_pulls(session, repo, StateFilter.OPEN)
        reviewed = await self._client(repo).list_reviewed_pull_numbers(
            repo, [pr.number for pr in open_pulls]
        )
        return PullMetricsCalculator.unreviewed(open_pulls, reviewed, now=now)

    # ── SLA ───────────────────────────────────────────────────────────────

    async def sla_report(self, session: AsyncSession, owner: str, name: str) -> SlaReport:
        repo = parse_repo(owner, name)
        issues = await self.load_issues(session, repo)
        client = self._client(repo)
        events: dict[int, list[IssueEvent]] = {}
        for issue in issues:
            events[issue.number] = await client.list_issue_events(repo, issue.number)
        return SlaCalculator(self._sla_config).calculate(issues, events)

    async def open_sla_status(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        response_hours: int | None = None,
        resolution_hours: int | None = None,
        now: datetime | None = None,
    ) -> OpenSlaStatus:
        """Open-issue SLA status; explicit hours override the configured defaults."""
        repo = parse_repo(owner, name)
        config = self._sla_config
        if response_hours is not None or resolution_hours is not None:
            config = SlaConfig(
                response_time_hours=(
                    config.response_time_hours if response_hours is None else response_hours
                ),
                resolution_time_hours=(
                    config.resolution_time_hours if resolution_hours is None else resolution_hours
                ),
                priority_labels=config.priority_labels,
            )
        issues = await self.load_issues(session, repo, StateFilter.OPEN)
        return open_issue_sla_status(issues, config, now=now)

    # ── releases ──────────────────────────────────────────────────────────

    async def release_notes(
        self,
        session: AsyncSession,
        owner: str,
        name: str,
        version: str | None = None,
        milestone: str | None = None,
        now: datetime | None = None,
    ) -> ReleaseNotes:
        """Notes for the closed issues of *milestone*, or those closed since the last release.

        Merged pull requests are taken from the same window: since the
        milestone opened (until it closed), or since the last published
        release.
        """
        repo = parse_repo(owner, name)
        now = now or utcnow()
        issues = await self.load_issues(session, repo, StateFilter.CLOSED)
        pulls = [pr for pr in await self.load_pulls(session, repo, StateFilter.CLOSED) if pr.merged]

        if milestone is not None:
            target = find_milestone(await self.load_milestones(session, repo), milestone)
            window_start, window_end = target.created_at, target.closed_at or now
            selected = [
                i
                for i in issues
                if i.state == IssueState.CLOSED
                and i.milestone is not None
                and i.milestone.id == target.id
            ]
            label = version or target.title
        else:
            published = [r for r in await self.load_releases(session, repo) if r.is_published]
            latest = max(published, key=lambda r: r.published_at, default=None)
            window_start = latest.published_at if latest is not None else None
            window_end = now
            selected = [
                i
                for i in issues
                if i.closed_at is not None
                and _in_window(i.closed_at, window_start, window_end)
            ]
            label = version or "Unreleased"

        merged = [
            pr
            for pr in pulls
            if pr.merged_at is not None and _in_window(pr.merged_at, window_start, window_end)
        ]
        return ReleaseNotesGenerator().generate(label, selected, merged, now=now)

    async def list_releases(
        self, session: AsyncSession, owner: str, name: str, page: int = 1, per_page: int = 30
    ) -> ReleasePage:
        """One page of releases, newest first."""
        if page < 1 or per_page < 1:
            raise ValidationError("page and per_page must be at least 1")
        repo = parse_repo(owner, name)
        releases = await self.load_releases(session, repo)
        start = (page - 1) * per_page
        return ReleasePage(
            items=releases[start : start + per_page],
            total=len(releases),
            page=page,
            per_page=per_page,
            has_next=start + per_page < len(releases),
        )

    # ── across repositories ───────────────────────────────────────────────
    #
    # Rollups read the store only, over every tracked repository whose
    # required entity types have synced.

    async def _stored_issues_by_repo(
        self,
        session: AsyncSession,
        state: IssueState | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> dict[str, list[Issue]]:
        grouped = {}
        for full_name, repository_id in await self._cache.synced_repositories(session, "issues"):
            issues = await self._cache.issues_from_store(session, repository_id)
            grouped[full_name] = filter_recent(issues, state=state, days=days, now=now)
        return grouped

    async def _stored_pulls_by_repo(
        self,
        session: AsyncSession,
        state: IssueState | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> dict[str, list[PullRequest]]:
        grouped = {}
        for full_name, repository_id in await self._cache.synced_repositories(session, "pulls"):
            pulls = await self._cache.pulls_from_store(session, repository_id)
            grouped[full_name] = filter_recent(pulls, state=state, days=days, now=now)
        return grouped

    async def aggregate_issue_metrics(
        self,
        session: AsyncSession,
        state: str | None = None,
        days: int | None = None,
        stale_days: int | None = None,
        now: datetime | None = None,
    ) -> AggregateIssueMetrics:
        """Issue metrics per tracked repository and over all of them combined.

        *state* is ``open``, ``closed`` or ``all``; *days* keeps issues
        created within that many days.
        """
        now = now or utcnow()
        grouped = await self._stored_issues_by_repo(session, _parse_state(state), days, now)
        threshold = self._defaults.stale_days if stale_days is None else stale_days
        return aggregate_issue_metrics(grouped, stale_days=threshold, now=now)

    async def aggregate_pull_metrics(
        self,
        session: AsyncSession,
        state: str | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> AggregatePullMetrics:
        now = now or utcnow()
        grouped = await self._stored_pulls_by_repo(session, _parse_state(state), days, now)
        return aggregate_pull_metrics(grouped)

    async def aggregate_velocity(
        self,
        session: AsyncSession,
        period: str | None = None,
        periods: int | None = None,
        now: datetime | None = None,
    ) -> AggregateVelocity:
        parsed, count = self._velocity_window(period, periods)
        grouped = await self._stored_issues_by_repo(session)
        return aggregate_velocity(grouped, parsed, count, now=now)

    async def aggregate_contributors(
        self, session: AsyncSession, limit: int = 30
    ) -> list[AggregateContributorStats]:
        """Authors ranked by issues plus pull requests across repositories with both synced."""
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        activity = {}
        for full_name, repository_id in await self._cache.synced_repositories(
            session, "issues", "pulls"
        ):
            activity[full_name] = (
                await self._cache.issues_from_store(session, repository_id),
                await self._cache.pulls_from_store(session, repository_id),
            )
        return aggregate_contributors(activity, limit=limit)
