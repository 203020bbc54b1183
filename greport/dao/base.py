"""Generic base DAO — keyed lookups and dialect-aware upserts (Core)."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Insert, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from greport.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

_INSERTS: dict[str, Callable[..., Insert]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(session: AsyncSession, model: type[Base]) -> Insert:
    """Return an INSERT supporting ``on_conflict_*`` for the session's dialect."""
    dialect = session.get_bind().dialect.name
    try:
        factory = _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"upsert is not supported on {dialect!r}") from None
    return factory(model)


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    async def get_by_id(self, session: AsyncSession, pk: Any) -> ModelT | None:
        if pk is None:
            raise ValueError("pk must not be None")
        return await session.get(self.model, pk)

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        result = await session.execute(stmt)
        return result.scalars().first()

    # ── Core methods ─────────────────────────────────────────────────────

    async def upsert(self, session: AsyncSession, values: dict[str, Any]) -> None:
        """Insert-or-replace one row keyed by its primary key."""
        await self.upsert_many(session, [values])

    async def upsert_many(self, session: AsyncSession, rows: Sequence[dict[str, Any]]) -> int:
        """Insert-or-replace *rows* keyed by primary key.

        ON CONFLICT (pk) DO UPDATE SET every supplied non-key column, so
        re-applying the same rows leaves the table unchanged.
        """
        if not rows:
            return 0
        pk_cols = [col.name for col in self.model.__table__.primary_key.columns]
        stmt = dialect_insert(session, self.model)
        update_cols = {key: stmt.excluded[key] for key in rows[0] if key not in pk_cols}
        if update_cols:
            stmt = stmt.on_conflict_do_update(index_elements=pk_cols, set_=update_cols)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=pk_cols)
        await session.execute(stmt, list(rows))
        return len(rows)

    async def count(self, session: AsyncSession, **filters: Any) -> int:
        """Return the row count, optionally filtered by column equality."""
        query = select(func.count()).select_from(self.model.__table__)
        for key, val in filters.items():
            query = query.where(getattr(self.model, key) == val)
        result = await session.execute(query)
        return result.scalar_one()
