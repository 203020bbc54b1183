"""PullRequestDAO — pull_requests table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import PullRequestRow


class PullRequestDAO(BaseDAO[PullRequestRow]):
    model = PullRequestRow

    async def list_by_repository(
        self, session: AsyncSession, repository_id: int, state: str | None = None
    ) -> list[PullRequestRow]:
        stmt = select(PullRequestRow).where(PullRequestRow.repository_id == repository_id)
        if state is not None:
            stmt = stmt.where(PullRequestRow.state == state)
        result = await session.execute(stmt.order_by(PullRequestRow.number))
        return list(result.scalars().all())
