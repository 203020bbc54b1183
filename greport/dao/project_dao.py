"""ProjectDAO — projects and project_items tables."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import ProjectItemRow, ProjectRow


class ProjectDAO(BaseDAO[ProjectRow]):
    model = ProjectRow

    async def list_by_owner(self, session: AsyncSession, owner: str) -> list[ProjectRow]:
        stmt = select(ProjectRow).where(ProjectRow.owner == owner).order_by(ProjectRow.number)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_items(self, session: AsyncSession, project_id: str) -> list[ProjectItemRow]:
        stmt = (
            select(ProjectItemRow)
            .where(ProjectItemRow.project_id == project_id)
            .order_by(ProjectItemRow.node_id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def replace_items(
        self, session: AsyncSession, project_id: str, items: Sequence[dict[str, Any]]
    ) -> int:
        """Replace every item of a project; returns the number inserted."""
        await session.execute(delete(ProjectItemRow).where(ProjectItemRow.project_id == project_id))
        if items:
            await session.execute(
                insert(ProjectItemRow), [{**item, "project_id": project_id} for item in items]
            )
        return len(items)

    async def delete_stale(
        self, session: AsyncSession, owner: str, keep_node_ids: Sequence[str]
    ) -> int:
        """Delete the owner's projects (and their items) not in *keep_node_ids*."""
        stale = select(ProjectRow.node_id).where(ProjectRow.owner == owner)
        if keep_node_ids:
            stale = stale.where(ProjectRow.node_id.not_in(keep_node_ids))
        stale_ids = list((await session.execute(stale)).scalars().all())
        if not stale_ids:
            return 0
        await session.execute(delete(ProjectItemRow).where(ProjectItemRow.project_id.in_(stale_ids)))
        await session.execute(delete(ProjectRow).where(ProjectRow.node_id.in_(stale_ids)))
        return len(stale_ids)
