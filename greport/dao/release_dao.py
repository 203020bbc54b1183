"""ReleaseDAO — releases table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import ReleaseRow


class ReleaseDAO(BaseDAO[ReleaseRow]):
    model = ReleaseRow

    async def list_by_repository(
        self, session: AsyncSession, repository_id: int
    ) -> list[ReleaseRow]:
        """Releases newest first."""
        stmt = (
            select(ReleaseRow)
            .where(ReleaseRow.repository_id == repository_id)
            .order_by(ReleaseRow.created_at.desc(), ReleaseRow.id.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
