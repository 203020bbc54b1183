"""SyncStatusDAO — per-repository sync bookkeeping."""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from greport.dao.base import BaseDAO, dialect_insert
from greport.models import SyncStatusRow

DATA_TYPES = ("issues", "pulls", "releases", "milestones")


class SyncStatusDAO(BaseDAO[SyncStatusRow]):
    model = SyncStatusRow

    async def get(self, session: AsyncSession, repository_id: int) -> SyncStatusRow | None:
        return await session.get(SyncStatusRow, repository_id)

    async def upsert(
        self,
        session: AsyncSession,
        repository_id: int,
        *,
        issues: bool = False,
        pulls: bool = False,
        releases: bool = False,
        milestones: bool = False,
        error: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Stamp the flagged entity types with *now*; other timestamps are kept.

        With *error* the failure is recorded instead; a successful update
        clears any previous error.
        """
        now = now or datetime.now(timezone.utc)
        flags = {"issues": issues, "pulls": pulls, "releases": releases, "milestones": milestones}
        values: dict = {"repository_id": repository_id}
        for name, flagged in flags.items():
            if flagged:
                values[f"{name}_synced_at"] = now
        if error is not None:
            values["last_error"] = error
            values["last_error_at"] = now
        elif any(flags.values()):
            values["last_error"] = None
            values["last_error_at"] = None

        stmt = dialect_insert(session, SyncStatusRow).values(**values)
        update_cols = {k: stmt.excluded[k] for k in values if k != "repository_id"}
        if update_cols:
            stmt = stmt.on_conflict_do_update(index_elements=["repository_id"], set_=update_cols)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["repository_id"])
        await session.execute(stmt)

    @staticmethod
    def synced_at(status: SyncStatusRow | None, data_type: str) -> datetime | None:
        """Timestamp of the last successful sync of *data_type*, if any."""
        if data_type not in DATA_TYPES:
            raise ValueError(f"unknown data type: {data_type!r}")
        if status is None:
            return None
        return getattr(status, f"{data_type}_synced_at")
