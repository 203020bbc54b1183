"""MilestoneDAO — milestones table operations."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import MilestoneRow


class MilestoneDAO(BaseDAO[MilestoneRow]):
    model = MilestoneRow

    async def list_by_repository(
        self, session: AsyncSession, repository_id: int, state: str | None = None
    ) -> list[MilestoneRow]:
        stmt = select(MilestoneRow).where(MilestoneRow.repository_id == repository_id)
        if state is not None:
            stmt = stmt.where(MilestoneRow.state == state)
        result = await session.execute(stmt.order_by(MilestoneRow.number))
        return list(result.scalars().all())

    async def get_many(self, session: AsyncSession, ids: Iterable[int]) -> dict[int, MilestoneRow]:
        """Fetch milestones by id in one query; missing ids are absent from the result."""
        wanted = set(ids)
        if not wanted:
            return {}
        result = await session.execute(select(MilestoneRow).where(MilestoneRow.id.in_(wanted)))
        return {row.id: row for row in result.scalars().all()}
