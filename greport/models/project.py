"""projects and project_items tables."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from greport.core.database import Base, UTCDateTime

_JSON = JSON().with_variant(JSONB(), "postgresql")


class ProjectRow(Base):
    __tablename__ = "projects"

    node_id: Mapped[str] = mapped_column(Text, primary_key=True)
    number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("owner", "number", name="uq_projects_owner_number"),
        Index("idx_projects_owner", "owner"),
    )


class ProjectItemRow(Base):
    __tablename__ = "project_items"

    node_id: Mapped[str] = mapped_column(Text, primary_key=True)
    project_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("projects.node_id", ondelete="CASCADE"),
        nullable=False,
    )
    content_type: Mapped[str] = mapped_column(Text, nullable=False)
    content_number: Mapped[Optional[int]] = mapped_column(BigInteger)
    content_title: Mapped[str] = mapped_column(Text, nullable=False)
    content_state: Mapped[Optional[str]] = mapped_column(Text)
    content_url: Mapped[Optional[str]] = mapped_column(Text)
    content_repository: Mapped[Optional[str]] = mapped_column(Text)
    content_json: Mapped[Optional[dict[str, Any]]] = mapped_column(_JSON)
    field_values_json: Mapped[Optional[list[Any]]] = mapped_column(_JSON)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("idx_project_items_project", "project_id"),
        Index("idx_project_items_repository", "content_repository"),
    )
