"""Tests for ReportService: store-first loading, fallbacks and report assembly."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from greport.core.config import DefaultsSettings
from greport.dao.issue_dao import IssueDAO
from greport.dao.milestone_dao import MilestoneDAO
from greport.dao.project_dao import ProjectDAO
from greport.dao.pull_request_dao import PullRequestDAO
from greport.dao.release_dao import ReleaseDAO
from greport.dao.repository_dao import RepositoryDAO
from greport.dao.sync_status_dao import SyncStatusDAO
from greport.domain import (
    Issue,
    IssueEvent,
    IssueState,
    Label,
    Milestone,
    PullRequest,
    Release,
    Repository,
    User,
)
from greport.engines.metrics import Period
from greport.engines.source import ClientRegistry, MockClient, MockData
from greport.engines.sync import SyncRunner
from greport.services import NotFoundError, ValidationError
from greport.services.cache_service import CacheService
from greport.services.report_service import ReportService, find_milestone, parse_repo

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
DAY = timedelta(days=1)
ALICE = User(id=7, login="alice")
BOB = User(id=8, login="bob")
FULL = "octo/widgets"


# ── Helpers ──────────────────────────────────────────────────────────────────


def _daos():
    return (
        RepositoryDAO(),
        MilestoneDAO(),
        IssueDAO(),
        PullRequestDAO(),
        ReleaseDAO(),
        SyncStatusDAO(),
    )


def _service(client, **kwargs):
    cache = CacheService(*_daos())
    return ReportService(cache, ClientRegistry(default=client), **kwargs)


def _runner():
    return SyncRunner(*_daos(), ProjectDAO())


MILESTONE = Milestone(
    id=501,
    number=3,
    title="Sprint 3",
    state=IssueState.OPEN,
    created_at=NOW - DAY * 10,
    due_on=NOW + DAY * 4,
)


def _issue(number, *, labels=(), closed_days_ago=None, milestone=None, author=ALICE, comments=0):
    created = NOW - DAY * 20
    closed_at = None if closed_days_ago is None else NOW - DAY * closed_days_ago
    return Issue(
        9000 + number,
        number,
        f"issue {number}",
        IssueState.OPEN if closed_at is None else IssueState.CLOSED,
        author,
        created,
        closed_at or created,
        labels=tuple(Label(id=hash(n) & 0xFFFF, name=n) for n in labels),
        milestone=milestone,
        comments_count=comments,
        closed_at=closed_at,
    )


def _pull(number, *, merged_days_ago=None, author=BOB):
    created = NOW - DAY * 15
    merged_at = None if merged_days_ago is None else NOW - DAY * merged_days_ago
    return PullRequest(
        8000 + number,
        number,
        f"pr {number}",
        IssueState.OPEN if merged_at is None else IssueState.CLOSED,
        author,
        created,
        merged_at or created,
        base_ref="main",
        merged=merged_at is not None,
        merged_at=merged_at,
        closed_at=merged_at,
        additions=20,
    )


def _data():
    repo = Repository(
        id=42,
        owner="octo",
        name="widgets",
        full_name=FULL,
        created_at=NOW - DAY * 400,
        updated_at=NOW,
    )
    issues = [
        _issue(1, labels=("bug",), closed_days_ago=2, milestone=MILESTONE),
        _issue(2, labels=("feature",), closed_days_ago=12),
        _issue(3, labels=("docs",), milestone=MILESTONE),
        _issue(4, closed_days_ago=1, author=BOB),
    ]
    pulls = [_pull(10, merged_days_ago=1), _pull(11, merged_days_ago=30), _pull(12)]
    releases = [
        Release(
            id=700,
            tag_name="v1.0",
            author=ALICE,
            created_at=NOW - DAY * 5,
            published_at=NOW - DAY * 5,
        ),
        Release(id=701, tag_name="v1.1-draft", author=ALICE, created_at=NOW, draft=True),
    ]
    return (
        MockData()
        .with_repository(repo)
        .with_milestones(FULL, [MILESTONE])
        .with_issues(FULL, issues)
        .with_pulls(FULL, pulls)
        .with_releases(FULL, releases)
        .with_reviews(FULL, [12])
    )


def _operations(client):
    return [op for op, _ in client.calls]


# ── TestHelpers ──────────────────────────────────────────────────────────────


class TestHelpers:
    def test_parse_repo_rejects_bad_names(self):
        with pytest.raises(ValidationError):
            parse_repo("octo", "")

    def test_find_milestone_by_title_then_number(self):
        assert find_milestone([MILESTONE], "sprint 3") is MILESTONE
        assert find_milestone([MILESTONE], "3") is MILESTONE

    def test_find_milestone_missing(self):
        with pytest.raises(NotFoundError):
            find_milestone([MILESTONE], "Sprint 9")


# ── TestLoading ──────────────────────────────────────────────────────────────


class TestLoading:
    @pytest.mark.asyncio
    async def test_falls_back_to_client_before_sync(self, session_factory):
        client = MockClient(_data())
        service = _service(client)

        async with session_factory() as session:
            metrics = await service.issue_metrics(session, "octo", "widgets", now=NOW)

        assert metrics.total == 4
        assert "list_issues" in _operations(client)

    @pytest.mark.asyncio
    async def test_reads_store_after_sync(self, session_factory):
        client = MockClient(_data())
        await _runner().sync_repository(session_factory, client, "octo", "widgets")
        client.calls.clear()
        service = _service(client)

        async with session_factory() as session:
            metrics = await service.issue_metrics(session, "octo", "widgets", now=NOW)
            pulls = await service.pull_metrics(session, "octo", "widgets")

        assert metrics.total == 4
        assert metrics.by_label == {"bug": 1, "feature": 1, "docs": 1}
        assert metrics.by_milestone == {"Sprint 3": 2, "No Milestone": 2}
        assert pulls.total == 3
        assert pulls.merged == 2
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_store_and_client_agree(self, session_factory):
        client = MockClient(_data())
        service = _service(client)
        async with session_factory() as session:
            live = await service.issue_metrics(session, "octo", "widgets", now=NOW)

        await _runner().sync_repository(session_factory, client, "octo", "widgets")
        async with session_factory() as session:
            stored = await service.issue_metrics(session, "octo", "widgets", now=NOW)

        assert live == stored

    @pytest.mark.asyncio
    async def test_label_order_survives_the_store(self, session_factory):
        # labels arrive with the lower-priority one first and ids in reverse order
        hour = timedelta(hours=1)
        urgent = Issue(
            9100,
            100,
            "checkout fails",
            IssueState.CLOSED,
            ALICE,
            NOW - hour * 50,
            NOW - hour * 10,
            labels=(Label(id=20, name="high"), Label(id=10, name="critical")),
            closed_at=NOW - hour * 10,
        )
        mixed = Issue(
            9101,
            101,
            "dark mode crash",
            IssueState.CLOSED,
            BOB,
            NOW - DAY * 3,
            NOW - hour * 2,
            labels=(Label(id=40, name="feature"), Label(id=30, name="bug")),
            closed_at=NOW - hour * 2,
        )
        data = _data()
        data.issues[FULL].extend([urgent, mixed])
        client = MockClient(data)
        service = _service(client)

        async with session_factory() as session:
            live_sla = await service.sla_report(session, "octo", "widgets")
            live_notes = await service.release_notes(session, "octo", "widgets", now=NOW)

        await _runner().sync_repository(session_factory, client, "octo", "widgets")
        async with session_factory() as session:
            stored_sla = await service.sla_report(session, "octo", "widgets")
            stored_notes = await service.release_notes(session, "octo", "widgets", now=NOW)

        assert stored_sla == live_sla
        assert stored_notes == live_notes
        # "high" governs: 40 hours against a 72 hour target
        assert 100 not in [v.issue_number for v in stored_sla.violations]
        features = next(s for s in stored_notes.sections if s.title == "New Features")
        assert 101 in [item.number for item in features.items]


# ── TestReports ──────────────────────────────────────────────────────────────


class TestReports:
    @pytest.mark.asyncio
    async def test_velocity_defaults(self, session_factory):
        service = _service(
            MockClient(_data()),
            defaults=DefaultsSettings(velocity_period="month", velocity_periods=3),
        )
        async with session_factory() as session:
            velocity = await service.velocity(session, "octo", "widgets", now=NOW)
        assert velocity.period == Period.MONTH
        assert len(velocity.data_points) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("period, periods", [("fortnight", 4), ("week", 0)])
    async def test_velocity_rejects_bad_input(self, session_factory, period, periods):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            with pytest.raises(ValidationError):
                await service.velocity(session, "octo", "widgets", period, periods, now=NOW)

    @pytest.mark.asyncio
    async def test_burndown_by_title(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            report = await service.burndown(session, "octo", "widgets", "Sprint 3", now=NOW)
        assert report.total_issues == 2
        assert report.data_points[0].remaining == 2
        assert report.data_points[-1].remaining == 1
        assert len(report.ideal_burndown) == 15

    @pytest.mark.asyncio
    async def test_burnup_unknown_milestone(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await service.burnup(session, "octo", "widgets", "Sprint 99", now=NOW)

    @pytest.mark.asyncio
    async def test_unreviewed_pulls(self, session_factory):
        client = MockClient(_data())
        service = _service(client)
        async with session_factory() as session:
            result = await service.unreviewed_pulls(session, "octo", "widgets", now=NOW)
        # the only open PR has a review
        assert result.total == 0
        assert "list_reviewed_pull_numbers" in _operations(client)

    @pytest.mark.asyncio
    async def test_sla_report_fetches_events(self, session_factory):
        data = _data()
        data.with_events(
            FULL,
            3,
            [IssueEvent(id=1, event_type="commented", created_at=NOW - DAY * 20 + timedelta(hours=30))],
        )
        client = MockClient(data)
        service = _service(client)

        async with session_factory() as session:
            report = await service.sla_report(session, "octo", "widgets")

        assert report.total_issues == 4
        assert report.response_sla_breached == 1
        assert report.resolution_sla_breached == 3
        assert _operations(client).count("list_issue_events") == 4

    @pytest.mark.asyncio
    async def test_open_sla_hours_override(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            default = await service.open_sla_status(session, "octo", "widgets", now=NOW)
            relaxed = await service.open_sla_status(
                session, "octo", "widgets", response_hours=1000, resolution_hours=2000, now=NOW
            )
        assert default.summary.total_open == 1
        assert default.summary.resolution_breached == 1
        assert relaxed.summary.within_sla == 1

    @pytest.mark.asyncio
    async def test_release_notes_since_last_release(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            notes = await service.release_notes(session, "octo", "widgets", now=NOW)

        assert notes.version == "Unreleased"
        numbers = sorted(item.number for s in notes.sections for item in s.items)
        # issue 2 closed before v1.0 was published
        assert numbers == [1, 4]
        assert notes.stats.prs_merged == 1
        assert notes.contributors == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_release_notes_for_milestone(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            notes = await service.release_notes(
                session, "octo", "widgets", version="v1.1", milestone="Sprint 3", now=NOW
            )

        assert notes.version == "v1.1"
        assert [s.title for s in notes.sections] == ["Bug Fixes"]
        assert notes.stats.issues_closed == 1
        assert notes.stats.prs_merged == 1

    @pytest.mark.asyncio
    async def test_open_sla_zero_hours_is_honoured(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            status = await service.open_sla_status(
                session, "octo", "widgets", resolution_hours=0, now=NOW
            )
        [entry] = status.breaching
        assert entry.number == 3
        # 20 days open against a zero hour target
        assert entry.hours_overdue == 480

    @pytest.mark.asyncio
    async def test_release_notes_window_excludes_release_instant(self, session_factory):
        data = _data()
        data.issues[FULL].append(_issue(5, labels=("bug",), closed_days_ago=5))
        data.pulls[FULL].append(_pull(13, merged_days_ago=5))
        service = _service(MockClient(data))
        async with session_factory() as session:
            notes = await service.release_notes(session, "octo", "widgets", now=NOW)

        numbers = sorted(item.number for s in notes.sections for item in s.items)
        # issue 5 and PR 13 landed at the moment v1.0 was published
        assert numbers == [1, 4]
        assert notes.stats.prs_merged == 1


# ── TestProgressAndContributors ──────────────────────────────────────────────


class TestProgressAndContributors:
    @pytest.mark.asyncio
    async def test_milestone_progress(self, session_factory):
        milestone = Milestone(
            id=502,
            number=4,
            title="Sprint 4",
            state=IssueState.OPEN,
            created_at=NOW - DAY * 20,
            due_on=NOW - DAY * 2,
            open_issues=1,
            closed_issues=3,
        )
        data = _data().with_milestones(FULL, [milestone])
        service = _service(MockClient(data))
        async with session_factory() as session:
            progress = await service.milestone_progress(session, "octo", "widgets", "4", now=NOW)

        assert progress.title == "Sprint 4"
        assert progress.total_issues == 4
        assert progress.completion_percent == 75.0
        assert progress.is_overdue is True
        assert progress.days_remaining == -2

    @pytest.mark.asyncio
    async def test_milestone_progress_unknown(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await service.milestone_progress(session, "octo", "widgets", "Sprint 9")

    @pytest.mark.asyncio
    async def test_contributors_sorted_by_prs(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            by_issues = await service.contributors(session, "octo", "widgets")
            by_prs = await service.contributors(session, "octo", "widgets", sort_by="prs", limit=1)

        assert [(c.login, c.issues_created) for c in by_issues] == [("alice", 3), ("bob", 1)]
        [top] = by_prs
        assert (top.login, top.prs_created, top.prs_merged) == ("bob", 3, 2)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sort_by, limit", [("stars", 10), ("issues", 0)])
    async def test_contributors_rejects_bad_input(self, session_factory, sort_by, limit):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            with pytest.raises(ValidationError):
                await service.contributors(session, "octo", "widgets", sort_by=sort_by, limit=limit)

    @pytest.mark.asyncio
    async def test_list_releases_pages_newest_first(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            first = await service.list_releases(session, "octo", "widgets", page=1, per_page=1)
            second = await service.list_releases(session, "octo", "widgets", page=2, per_page=1)

        assert [r.tag_name for r in first.items] == ["v1.1-draft"]
        assert first.total == 2
        assert first.has_next is True
        assert [r.tag_name for r in second.items] == ["v1.0"]
        assert second.has_next is False


# ── TestAggregates ───────────────────────────────────────────────────────────


def _second_repo(data):
    other = "octo/gadgets"
    repo = Repository(
        id=43,
        owner="octo",
        name="gadgets",
        full_name=other,
        created_at=NOW - DAY * 100,
        updated_at=NOW,
    )
    issues = [
        Issue(9500, 1, "gadget bug", IssueState.OPEN, BOB, NOW - DAY * 2, NOW - DAY * 2),
    ]
    return data.with_repository(repo).with_issues(other, issues).with_pulls(other, [])


class TestAggregates:
    @pytest.mark.asyncio
    async def test_only_synced_repositories_count(self, session_factory):
        client = MockClient(_second_repo(_data()))
        await _runner().sync_repository(session_factory, client, "octo", "widgets")
        service = _service(client)

        async with session_factory() as session:
            metrics = await service.aggregate_issue_metrics(session, now=NOW)

        assert [row.repository for row in metrics.by_repository] == [FULL]
        assert metrics.totals.total == 4

    @pytest.mark.asyncio
    async def test_issue_metrics_across_repositories(self, session_factory):
        client = MockClient(_second_repo(_data()))
        runner = _runner()
        await runner.sync_repository(session_factory, client, "octo", "widgets")
        await runner.sync_repository(session_factory, client, "octo", "gadgets")
        service = _service(client)

        async with session_factory() as session:
            everything = await service.aggregate_issue_metrics(session, now=NOW)
            recent_open = await service.aggregate_issue_metrics(
                session, state="open", days=7, now=NOW
            )

        assert everything.totals.total == 5
        assert everything.totals.open == 2
        assert {row.repository: row.total for row in everything.by_repository} == {
            FULL: 4,
            "octo/gadgets": 1,
        }
        assert recent_open.totals.total == 1

    @pytest.mark.asyncio
    async def test_pull_metrics_and_contributors(self, session_factory):
        client = MockClient(_second_repo(_data()))
        runner = _runner()
        await runner.sync_repository(session_factory, client, "octo", "widgets")
        await runner.sync_repository(session_factory, client, "octo", "gadgets")
        service = _service(client)

        async with session_factory() as session:
            pulls = await service.aggregate_pull_metrics(session, state="closed")
            people = await service.aggregate_contributors(session)

        assert pulls.totals.total == 2
        assert pulls.totals.merged == 2
        bob = next(p for p in people if p.login == "bob")
        assert bob.repositories == ["octo/gadgets", FULL]
        assert (bob.total_issues_created, bob.total_prs_created) == (2, 3)

    @pytest.mark.asyncio
    async def test_velocity_across_repositories(self, session_factory):
        client = MockClient(_data())
        await _runner().sync_repository(session_factory, client, "octo", "widgets")
        service = _service(client)

        async with session_factory() as session:
            velocity = await service.aggregate_velocity(session, "week", 4, now=NOW)

        assert velocity.period == Period.WEEK
        assert [row.repository for row in velocity.by_repository] == [FULL]

    @pytest.mark.asyncio
    async def test_rejects_unknown_state(self, session_factory):
        service = _service(MockClient(_data()))
        async with session_factory() as session:
            with pytest.raises(ValidationError):
                await service.aggregate_issue_metrics(session, state="merged")
