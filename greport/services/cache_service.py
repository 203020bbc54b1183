"""CacheService — read side of the store, rows back into domain entities."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.issue_dao import IssueDAO
from greport.dao.milestone_dao import MilestoneDAO
from greport.dao.pull_request_dao import PullRequestDAO
from greport.dao.release_dao import ReleaseDAO
from greport.dao.repository_dao import RepositoryDAO
from greport.dao.sync_status_dao import SyncStatusDAO
from greport.domain import Issue, Milestone, PullRequest, Release
from greport.engines.sync import converter
from greport.services import NotFoundError


class CacheService:
    """Stateless service: DAO reads plus row → entity conversion."""

    def __init__(
        self,
        repository_dao: RepositoryDAO,
        milestone_dao: MilestoneDAO,
        issue_dao: IssueDAO,
        pull_request_dao: PullRequestDAO,
        release_dao: ReleaseDAO,
        sync_status_dao: SyncStatusDAO,
    ) -> None:
        self._repository_dao = repository_dao
        self._milestone_dao = milestone_dao
        self._issue_dao = issue_dao
        self._pull_request_dao = pull_request_dao
        self._release_dao = release_dao
        self._sync_status_dao = sync_status_dao

    # ── repositories ──────────────────────────────────────────────────────

    async def get_repo_db_id(self, session: AsyncSession, owner: str, name: str) -> int | None:
        row = await self._repository_dao.get_by_full_name(session, f"{owner}/{name}")
        return row.id if row is not None else None

    async def has_synced_data(
        self, session: AsyncSession, repository_id: int, data_type: str
    ) -> bool:
        """True once *data_type* has been synced successfully at least once."""
        status = await self._sync_status_dao.get(session, repository_id)
        return self._sync_status_dao.synced_at(status, data_type) is not None

    async def list_repositories(self, session: AsyncSession) -> list[dict]:
        """Tracked repositories, each with its sync status (or None)."""
        rows = await self._repository_dao.list_all(session)
        listing = []
        for row in rows:
            status = await self._sync_status_dao.get(session, row.id)
            listing.append({"repository": converter.repository_from_row(row), "status": status})
        return listing

    async def synced_repositories(
        self, session: AsyncSession, *data_types: str
    ) -> list[tuple[str, int]]:
        """``(full_name, id)`` of every stored repository with all *data_types* synced."""
        synced = []
        for row in await self._repository_dao.list_all(session):
            status = await self._sync_status_dao.get(session, row.id)
            if all(self._sync_status_dao.synced_at(status, t) is not None for t in data_types):
                synced.append((row.full_name, row.id))
        return synced

    async def remove_repository(self, session: AsyncSession, owner: str, name: str) -> None:
        """Stop tracking a repository and purge its cached rows.

        Raises :class:`NotFoundError` if the repository is not stored.
        """
        repository_id = await self.get_repo_db_id(session, owner, name)
        if repository_id is None:
            raise NotFoundError(f"repository not tracked: {owner}/{name}")
        await self._repository_dao.remove(session, repository_id)

    # ── entities ──────────────────────────────────────────────────────────

    async def milestones_from_store(
        self, session: AsyncSession, repository_id: int, state: str | None = None
    ) -> list[Milestone]:
        rows = await self._milestone_dao.list_by_repository(session, repository_id, state)
        return [converter.milestone_from_row(row) for row in rows]

    async def issues_from_store(
        self,
        session: AsyncSession,
        repository_id: int,
        state: str | None = None,
        milestone_id: int | None = None,
    ) -> list[Issue]:
        """Issues with their labels, assignees and milestone reattached."""
        rows = await self._issue_dao.list_by_repository(
            session, repository_id, state=state, milestone_id=milestone_id
        )
        ids = [row.id for row in rows]
        labels = await self._issue_dao.labels_for(session, ids)
        assignees = await self._issue_dao.assignees_for(session, ids)
        milestones = await self._milestone_dao.get_many(
            session, {row.milestone_id for row in rows if row.milestone_id is not None}
        )
        return [
            converter.issue_from_row(
                row,
                labels.get(row.id, []),
                assignees.get(row.id, []),
                milestones.get(row.milestone_id) if row.milestone_id is not None else None,
            )
            for row in rows
        ]

    async def pulls_from_store(
        self, session: AsyncSession, repository_id: int, state: str | None = None
    ) -> list[PullRequest]:
        rows = await self._pull_request_dao.list_by_repository(session, repository_id, state)
        return [converter.pull_from_row(row) for row in rows]

    async def releases_from_store(
        self, session: AsyncSession, repository_id: int
    ) -> list[Release]:
        rows = await self._release_dao.list_by_repository(session, repository_id)
        return [converter.release_from_row(row) for row in rows]
