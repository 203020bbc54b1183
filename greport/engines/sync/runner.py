"""SyncRunner — pulls forge data through a SourceClient and upserts it into the store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from greport.core.github import RepoId
from greport.dao.issue_dao import IssueDAO
from greport.dao.milestone_dao import MilestoneDAO
from greport.dao.project_dao import ProjectDAO
from greport.dao.pull_request_dao import PullRequestDAO
from greport.dao.release_dao import ReleaseDAO
from greport.dao.repository_dao import RepositoryDAO
from greport.dao.sync_status_dao import SyncStatusDAO
from greport.engines.source.base import SourceClient
from greport.engines.source.params import IssueParams, PullParams, StateFilter
from greport.engines.source.registry import ClientRegistry
from greport.engines.sync import converter
from greport.engines.sync.models import (
    BatchSyncResult,
    ProjectSyncResult,
    RepoSyncResult,
    SyncResult,
)

log = structlog.get_logger("greport.engine")


@asynccontextmanager
async def _transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        async with session.begin():
            yield session


def _dedupe_repos(names: Iterable[str]) -> list[str]:
    """Case-insensitive de-duplication, ordered by lower-cased name."""
    seen: dict[str, str] = {}
    for name in names:
        seen.setdefault(name.lower(), name)
    return [seen[key] for key in sorted(seen)]


class SyncRunner:
    """Orchestration layer: source client reads → DAO writes.

    Each step of a repository sync commits in its own transaction, so a
    failure leaves earlier steps persisted; a later sync heals the rest.
    """

    def __init__(
        self,
        repository_dao: RepositoryDAO,
        milestone_dao: MilestoneDAO,
        issue_dao: IssueDAO,
        pull_request_dao: PullRequestDAO,
        release_dao: ReleaseDAO,
        sync_status_dao: SyncStatusDAO,
        project_dao: ProjectDAO,
    ) -> None:
        self._repository_dao = repository_dao
        self._milestone_dao = milestone_dao
        self._issue_dao = issue_dao
        self._pull_request_dao = pull_request_dao
        self._release_dao = release_dao
        self._sync_status_dao = sync_status_dao
        self._project_dao = project_dao

    # ── single repository ─────────────────────────────────────────────────

    async def sync_repository(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: SourceClient,
        owner: str,
        repo: str,
    ) -> SyncResult:
        """Sync one repository in dependency order.

        1. repository metadata (its source id keys every other row)
        2. milestones
        3. issues, replacing each issue's labels and assignees
        4. pull requests
        5. releases
        6. sync status

        Any failure aborts the remaining steps and propagates unchanged.
        """
        ref = RepoId(owner, repo)
        result = SyncResult(repository=ref.full_name)
        repository_id: int | None = None
        log.info("sync.repo_started", repository=ref.full_name)

        try:
            repository = await client.get_repository(owner, repo)
            async with _transaction(session_factory) as session:
                await self._repository_dao.upsert(session, converter.repository_to_row(repository))
            repository_id = repository.id

            milestones = await client.list_milestones(ref, StateFilter.ALL)
            async with _transaction(session_factory) as session:
                result.milestones_synced = await self._milestone_dao.upsert_many(
                    session, [converter.milestone_to_row(m, repository_id) for m in milestones]
                )

            issues = await client.list_issues(ref, IssueParams(state=StateFilter.ALL))
            async with _transaction(session_factory) as session:
                for issue in issues:
                    await self._issue_dao.upsert(
                        session, converter.issue_to_row(issue, repository_id)
                    )
                    await self._issue_dao.replace_labels(
                        session, issue.id, converter.issue_labels_to_rows(issue)
                    )
                    await self._issue_dao.replace_assignees(
                        session, issue.id, converter.issue_assignees_to_rows(issue)
                    )
            result.issues_synced = len(issues)

            pulls = await client.list_pulls(ref, PullParams(state=StateFilter.ALL))
            async with _transaction(session_factory) as session:
                result.pulls_synced = await self._pull_request_dao.upsert_many(
                    session, [converter.pull_to_row(pr, repository_id) for pr in pulls]
                )

            releases = await client.list_releases(ref)
            async with _transaction(session_factory) as session:
                result.releases_synced = await self._release_dao.upsert_many(
                    session, [converter.release_to_row(r, repository_id) for r in releases]
                )

            now = datetime.now(timezone.utc)
            async with _transaction(session_factory) as session:
                await self._sync_status_dao.upsert(
                    session,
                    repository_id,
                    issues=True,
                    pulls=True,
                    releases=True,
                    milestones=True,
                    now=now,
                )
            result.synced_at = now
        except Exception as exc:
            log.error("sync.repo_failed", repository=ref.full_name, error=str(exc))
            if repository_id is not None:
                await self._record_error(session_factory, repository_id, str(exc))
            raise

        log.info(
            "sync.repo_completed",
            repository=ref.full_name,
            issues=result.issues_synced,
            pulls=result.pulls_synced,
            releases=result.releases_synced,
            milestones=result.milestones_synced,
        )
        return result

    async def _record_error(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository_id: int,
        error: str,
    ) -> None:
        try:
            async with _transaction(session_factory) as session:
                await self._sync_status_dao.upsert(session, repository_id, error=error)
        except Exception:
            log.warning("sync.status_update_failed", repository_id=repository_id)

    # ── batch ─────────────────────────────────────────────────────────────

    async def sync_batch(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: ClientRegistry,
        extra_repos: Iterable[str] = (),
    ) -> BatchSyncResult:
        """Sync every tracked repository, one at a time, then each organization's projects.

        Tracked repositories are those already in the store plus
        *extra_repos* (``owner/name`` strings, e.g. from configuration).
        Repositories run sequentially because clients for one credential
        share a rate limit. A failing repository or organization is
        recorded and the batch continues.
        """
        async with _transaction(session_factory) as session:
            stored = await self._repository_dao.list_all(session)
        names = _dedupe_repos([row.full_name for row in stored] + list(extra_repos))

        batch = BatchSyncResult(total_repos=len(names))
        owners: dict[str, str] = {}
        for full_name in names:
            outcome = await self._sync_one(session_factory, registry, full_name)
            batch.results.append(outcome)
            if outcome.success:
                batch.successful += 1
            else:
                batch.failed += 1
            owner = full_name.split("/", 1)[0]
            if "/" in full_name and owner:
                owners.setdefault(owner.lower(), owner)

        for owner in owners.values():
            try:
                client = registry.client_for_owner(owner)
                batch.projects.append(await self.sync_projects(session_factory, client, owner))
            except Exception as exc:
                log.error("sync.projects_failed", organization=owner, error=str(exc))
                batch.project_errors[owner] = str(exc)

        batch.synced_at = datetime.now(timezone.utc)
        log.info(
            "sync.batch_completed",
            total=batch.total_repos,
            successful=batch.successful,
            failed=batch.failed,
            organizations=len(owners),
        )
        return batch

    async def _sync_one(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: ClientRegistry,
        full_name: str,
    ) -> RepoSyncResult:
        try:
            ref = RepoId.parse(full_name)
            client = registry.client_for_owner(ref.owner)
            result = await self.sync_repository(session_factory, client, ref.owner, ref.name)
        except Exception as exc:
            log.error("sync.batch_repo_failed", repository=full_name, error=str(exc))
            return RepoSyncResult(repository=full_name, success=False, error=str(exc))
        return RepoSyncResult(repository=full_name, success=True, result=result)

    # ── projects ──────────────────────────────────────────────────────────

    async def sync_projects(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: SourceClient,
        org: str,
    ) -> ProjectSyncResult:
        """Sync an organization's project boards and their items.

        Listing failures propagate. A failure on one project becomes a
        warning. Projects no longer listed are removed afterwards.
        """
        projects = await client.list_projects(org)
        result = ProjectSyncResult(organization=org)

        for project in projects:
            items = None
            try:
                items = await client.list_project_items(project.node_id)
            except Exception as exc:
                log.warning("projects.items_failed", organization=org, project=project.number)
                result.warnings.append(f"project #{project.number} items fetch: {exc}")

            try:
                async with _transaction(session_factory) as session:
                    await self._project_dao.upsert(session, converter.project_to_row(project))
                    if items is not None:
                        result.items_synced += await self._project_dao.replace_items(
                            session,
                            project.node_id,
                            [converter.project_item_to_row(item) for item in items],
                        )
            except Exception as exc:
                log.warning("projects.upsert_failed", organization=org, project=project.number)
                result.warnings.append(f"project #{project.number} '{project.title}': {exc}")
                continue
            result.projects_synced += 1

        async with _transaction(session_factory) as session:
            deleted = await self._project_dao.delete_stale(
                session, org, [p.node_id for p in projects]
            )
        if deleted:
            log.info("projects.stale_removed", organization=org, deleted=deleted)

        result.synced_at = datetime.now(timezone.utc)
        log.info(
            "projects.sync_completed",
            organization=org,
            projects=result.projects_synced,
            items=result.items_synced,
            warnings=len(result.warnings),
        )
        return result
