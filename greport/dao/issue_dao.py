"""IssueDAO — issues table plus its label and assignee associations."""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO
from greport.models import IssueAssigneeRow, IssueLabelRow, IssueRow


class IssueDAO(BaseDAO[IssueRow]):
    model = IssueRow

    # ── read ──────────────────────────────────────────────────────────────

    async def list_by_repository(
        self,
        session: AsyncSession,
        repository_id: int,
        state: str | None = None,
        milestone_id: int | None = None,
    ) -> list[IssueRow]:
        stmt = select(IssueRow).where(IssueRow.repository_id == repository_id)
        if state is not None:
            stmt = stmt.where(IssueRow.state == state)
        if milestone_id is not None:
            stmt = stmt.where(IssueRow.milestone_id == milestone_id)
        result = await session.execute(stmt.order_by(IssueRow.number))
        return list(result.scalars().all())

    async def labels_for(
        self, session: AsyncSession, issue_ids: Iterable[int]
    ) -> dict[int, list[IssueLabelRow]]:
        """Labels grouped by issue id, in the order they were synced."""
        ids = list(issue_ids)
        grouped: dict[int, list[IssueLabelRow]] = defaultdict(list)
        if not ids:
            return grouped
        stmt = (
            select(IssueLabelRow)
            .where(IssueLabelRow.issue_id.in_(ids))
            .order_by(IssueLabelRow.issue_id, IssueLabelRow.position)
        )
        for row in (await session.execute(stmt)).scalars():
            grouped[row.issue_id].append(row)
        return grouped

    async def assignees_for(
        self, session: AsyncSession, issue_ids: Iterable[int]
    ) -> dict[int, list[IssueAssigneeRow]]:
        """Assignees grouped by issue id, in the order they were synced."""
        ids = list(issue_ids)
        grouped: dict[int, list[IssueAssigneeRow]] = defaultdict(list)
        if not ids:
            return grouped
        stmt = (
            select(IssueAssigneeRow)
            .where(IssueAssigneeRow.issue_id.in_(ids))
            .order_by(IssueAssigneeRow.issue_id, IssueAssigneeRow.position)
        )
        for row in (await session.execute(stmt)).scalars():
            grouped[row.issue_id].append(row)
        return grouped

    # ── write ─────────────────────────────────────────────────────────────

    async def replace_labels(
        self, session: AsyncSession, issue_id: int, labels: Sequence[dict[str, Any]]
    ) -> None:
        """Replace the issue's label set (delete, then insert)."""
        await session.execute(delete(IssueLabelRow).where(IssueLabelRow.issue_id == issue_id))
        if labels:
            await session.execute(
                insert(IssueLabelRow), [{**lbl, "issue_id": issue_id} for lbl in labels]
            )

    async def replace_assignees(
        self, session: AsyncSession, issue_id: int, assignees: Sequence[dict[str, Any]]
    ) -> None:
        """Replace the issue's assignee set (delete, then insert)."""
        await session.execute(
            delete(IssueAssigneeRow).where(IssueAssigneeRow.issue_id == issue_id)
        )
        if assignees:
            await session.execute(
                insert(IssueAssigneeRow), [{**a, "issue_id": issue_id} for a in assignees]
            )
