"""API integration tests — routers, dependency wiring and error mapping."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from greport.api import deps
from greport.api.errors import _status_for, register_error_handlers
from greport.api.routers import aggregate, contributors, issues, pulls, releases, repos, sla, sync
from greport.core.config import Config
from greport.domain import Issue, IssueState, Label, PullRequest, Repository, User
from greport.engines.source import (
    ClientRegistry,
    MockClient,
    MockData,
    RateLimitError,
)
from greport.services import NotFoundError, ServiceError, ValidationError

NOW = datetime.now(timezone.utc)
DAY = timedelta(days=1)
ALICE = User(id=1, login="alice")


def _data():
    repo = Repository(
        id=42,
        owner="octo",
        name="widgets",
        full_name="octo/widgets",
        created_at=NOW - DAY * 100,
        updated_at=NOW,
    )
    issues_ = [
        Issue(
            101,
            1,
            "crash on start",
            IssueState.CLOSED,
            ALICE,
            NOW - DAY * 10,
            NOW - DAY,
            labels=(Label(id=1, name="bug"),),
            closed_at=NOW - DAY,
        ),
        Issue(102, 2, "add export", IssueState.OPEN, ALICE, NOW - DAY * 3, NOW - DAY * 3),
    ]
    pulls_ = [
        PullRequest(
            201,
            5,
            "fix crash",
            IssueState.CLOSED,
            ALICE,
            NOW - DAY * 2,
            NOW - DAY,
            base_ref="main",
            merged=True,
            merged_at=NOW - DAY,
            closed_at=NOW - DAY,
        )
    ]
    return (
        MockData()
        .with_repository(repo)
        .with_issues("octo/widgets", issues_)
        .with_pulls("octo/widgets", pulls_)
    )


@pytest.fixture
def mock_client():
    return MockClient(_data())


@pytest.fixture
def app(session_factory, mock_client):
    deps.set_session_factory(session_factory)
    deps.set_registry(ClientRegistry(default=mock_client))

    application = FastAPI()
    register_error_handlers(application)

    @application.get("/api/v1/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    application.include_router(sync.router, prefix="/api/v1/sync")
    application.include_router(repos.router, prefix="/api/v1/repos")
    application.include_router(issues.router, prefix="/api/v1/repos")
    application.include_router(pulls.router, prefix="/api/v1/repos")
    application.include_router(sla.router, prefix="/api/v1/repos")
    application.include_router(releases.router, prefix="/api/v1/repos")
    application.include_router(contributors.router, prefix="/api/v1/repos")
    application.include_router(aggregate.router, prefix="/api/v1/aggregate")
    yield application
    deps.set_registry(None)
    deps.set_config(Config())


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ── TestSyncAndRepos ─────────────────────────────────────────────────────────


class TestSyncAndRepos:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_sync_repository(self, client):
        resp = await client.post("/api/v1/sync/octo/widgets")
        assert resp.status_code == 200
        body = resp.json()
        assert body["repository"] == "octo/widgets"
        assert body["issues_synced"] == 2
        assert body["pulls_synced"] == 1
        assert body["releases_synced"] == 0

    @pytest.mark.asyncio
    async def test_list_repos_after_sync(self, client):
        assert (await client.get("/api/v1/repos")).json() == []
        await client.post("/api/v1/sync/octo/widgets")

        resp = await client.get("/api/v1/repos")
        assert resp.status_code == 200
        items = resp.json()
        assert [item["full_name"] for item in items] == ["octo/widgets"]
        assert items[0]["default_branch"] == "main"
        assert items[0]["sync_status"]["issues_synced_at"] is not None
        assert items[0]["sync_status"]["last_error"] is None

    @pytest.mark.asyncio
    async def test_remove_repo(self, client):
        await client.post("/api/v1/sync/octo/widgets")

        resp = await client.delete("/api/v1/repos/octo/widgets")
        assert resp.status_code == 204
        assert (await client.get("/api/v1/repos")).json() == []

        resp = await client.delete("/api/v1/repos/octo/widgets")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_batch_sync_uses_configured_repos(self, client):
        deps.set_config(
            Config.model_validate(
                {"organizations": [{"name": "octo", "repos": ["octo/widgets", "octo/gone"]}]}
            )
        )
        resp = await client.post("/api/v1/sync")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_repos"] == 2
        assert body["successful"] == 1
        assert body["failed"] == 1
        failed = [r for r in body["results"] if not r["success"]]
        assert failed[0]["repository"] == "octo/gone"

    @pytest.mark.asyncio
    async def test_sync_unknown_repo(self, client):
        resp = await client.post("/api/v1/sync/octo/missing")
        assert resp.status_code == 404


# ── TestReports ──────────────────────────────────────────────────────────────


class TestReports:
    @pytest.mark.asyncio
    async def test_issue_metrics(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/issues/metrics")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert body["open"] == 1
        assert body["closed"] == 1
        assert body["by_label"] == {"bug": 1}

    @pytest.mark.asyncio
    async def test_velocity_rejects_unknown_period(self, client):
        resp = await client.get(
            "/api/v1/repos/octo/widgets/issues/velocity", params={"period": "fortnight"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_burndown_requires_milestone(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/issues/burndown")
        assert resp.status_code == 422
        assert "milestone" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_burnup_unknown_milestone(self, client):
        resp = await client.get(
            "/api/v1/repos/octo/widgets/issues/burnup", params={"milestone": "v9"}
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_pull_metrics(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/pulls/metrics")
        assert resp.status_code == 200
        assert resp.json()["merged"] == 1

    @pytest.mark.asyncio
    async def test_open_sla(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/sla/open")
        assert resp.status_code == 200
        assert resp.json()["summary"]["total_open"] == 1

    @pytest.mark.asyncio
    async def test_release_notes_markdown(self, client):
        resp = await client.get(
            "/api/v1/repos/octo/widgets/releases/notes",
            params={"version": "v2.0", "format": "markdown"},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert resp.text.startswith("# v2.0 (")
        assert "crash on start (#1) @alice" in resp.text

    @pytest.mark.asyncio
    async def test_release_notes_json(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/releases/notes")
        assert resp.status_code == 200
        body = resp.json()
        assert body["version"] == "Unreleased"
        assert body["contributors"] == ["alice"]

    @pytest.mark.asyncio
    async def test_contributors(self, client):
        resp = await client.get(
            "/api/v1/repos/octo/widgets/contributors", params={"sort_by": "prs"}
        )
        assert resp.status_code == 200
        assert resp.json() == [
            {"login": "alice", "issues_created": 2, "prs_created": 1, "prs_merged": 1}
        ]

    @pytest.mark.asyncio
    async def test_contributors_rejects_unknown_sort(self, client):
        resp = await client.get(
            "/api/v1/repos/octo/widgets/contributors", params={"sort_by": "stars"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_releases_empty(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/releases")
        assert resp.status_code == 200
        assert resp.json() == {
            "items": [],
            "total": 0,
            "page": 1,
            "per_page": 30,
            "has_next": False,
        }

    @pytest.mark.asyncio
    async def test_milestone_progress_unknown(self, client):
        resp = await client.get("/api/v1/repos/octo/widgets/milestones/v9/progress")
        assert resp.status_code == 404


# ── TestAggregates ───────────────────────────────────────────────────────────


class TestAggregates:
    @pytest.mark.asyncio
    async def test_empty_before_sync(self, client):
        resp = await client.get("/api/v1/aggregate/issues/metrics")
        assert resp.status_code == 200
        assert resp.json()["totals"]["total"] == 0

    @pytest.mark.asyncio
    async def test_issue_metrics_after_sync(self, client):
        await client.post("/api/v1/sync/octo/widgets")
        resp = await client.get("/api/v1/aggregate/issues/metrics", params={"state": "open"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["totals"]["total"] == 1
        assert body["by_repository"][0]["repository"] == "octo/widgets"

    @pytest.mark.asyncio
    async def test_pulls_velocity_and_contributors(self, client):
        await client.post("/api/v1/sync/octo/widgets")
        pulls = await client.get("/api/v1/aggregate/pulls/metrics")
        velocity = await client.get("/api/v1/aggregate/velocity", params={"period": "week"})
        people = await client.get("/api/v1/aggregate/contributors")

        assert pulls.json()["totals"]["merged"] == 1
        assert velocity.json()["period"] == "week"
        assert people.json()[0]["login"] == "alice"
        assert people.json()[0]["repositories"] == ["octo/widgets"]

    @pytest.mark.asyncio
    async def test_rejects_unknown_state(self, client):
        resp = await client.get("/api/v1/aggregate/pulls/metrics", params={"state": "merged"})
        assert resp.status_code == 422


# ── TestErrors ───────────────────────────────────────────────────────────────


class TestErrors:
    @pytest.mark.asyncio
    async def test_unknown_repo_is_404(self, client):
        resp = await client.get("/api/v1/repos/octo/missing/issues/metrics")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_rate_limit_sets_retry_after(self, client, mock_client):
        mock_client.fail("list_issues", RateLimitError(30))
        resp = await client.get("/api/v1/repos/octo/widgets/issues/metrics")
        assert resp.status_code == 429
        assert resp.headers["retry-after"] == "30"

    @pytest.mark.asyncio
    async def test_org_not_configured(self, client):
        deps.set_registry(ClientRegistry(orgs={"acme": MockClient()}))
        resp = await client.post("/api/v1/sync/globex/widgets")
        assert resp.status_code == 400
        assert "GITHUB_TOKEN_GLOBEX" in resp.json()["detail"]

    def test_status_mapping_follows_class_hierarchy(self):
        assert _status_for(NotFoundError("gone"), 500) == 404
        assert _status_for(ValidationError("bad"), 500) == 422
        # no dedicated status for the base class
        assert _status_for(ServiceError("x"), 500) == 500
