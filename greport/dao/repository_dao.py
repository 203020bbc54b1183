"""RepositoryDAO — repositories table operations."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import (
    IssueAssigneeRow,
    IssueLabelRow,
    IssueRow,
    MilestoneRow,
    PullRequestRow,
    ReleaseRow,
    RepositoryRow,
    SyncStatusRow,
)


class RepositoryDAO(BaseDAO[RepositoryRow]):
    model = RepositoryRow

    # ── read ──────────────────────────────────────────────────────────────

    async def get_by_full_name(self, session: AsyncSession, full_name: str) -> RepositoryRow | None:
        """Case-insensitive lookup by ``owner/name``."""
        stmt = select(RepositoryRow).where(
            func.lower(RepositoryRow.full_name) == full_name.lower()
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_all(self, session: AsyncSession) -> list[RepositoryRow]:
        """All tracked repositories, ordered by full name."""
        result = await session.execute(select(RepositoryRow).order_by(RepositoryRow.full_name))
        return list(result.scalars().all())

    # ── write ─────────────────────────────────────────────────────────────

    async def remove(self, session: AsyncSession, repository_id: int) -> bool:
        """Purge a repository and every row that belongs to it.

        Child rows are deleted explicitly so the purge does not depend on
        the database enforcing ON DELETE CASCADE.
        """
        issue_ids = select(IssueRow.id).where(IssueRow.repository_id == repository_id)
        await session.execute(delete(IssueLabelRow).where(IssueLabelRow.issue_id.in_(issue_ids)))
        await session.execute(
            delete(IssueAssigneeRow).where(IssueAssigneeRow.issue_id.in_(issue_ids))
        )
        for model in (IssueRow, PullRequestRow, ReleaseRow, MilestoneRow):
            await session.execute(delete(model).where(model.repository_id == repository_id))
        await session.execute(
            delete(SyncStatusRow).where(SyncStatusRow.repository_id == repository_id)
        )
        result = await session.execute(
            delete(RepositoryRow).where(RepositoryRow.id == repository_id)
        )
        return result.rowcount > 0
