"""issues, issue_labels and issue_assignees tables."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from greport.core.database import Base, UTCDateTime


class IssueRow(Base):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    repository_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    # no FK: milestones may be synced after a failed run
    milestone_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    author_login: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    closed_by_login: Mapped[Optional[str]] = mapped_column(Text)
    closed_by_id: Mapped[Optional[int]] = mapped_column(BigInteger)

    __table_args__ = (
        UniqueConstraint("repository_id", "number", name="uq_issues_repository_number"),
        Index("idx_issues_repository_state", "repository_id", "state"),
        Index("idx_issues_milestone", "milestone_id"),
    )


class IssueLabelRow(Base):
    __tablename__ = "issue_labels"

    issue_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("issues.id", ondelete="CASCADE"),
        primary_key=True,
    )
    label_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    label_name: Mapped[str] = mapped_column(Text, nullable=False)
    label_color: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # order the labels arrived in; first match wins in SLA and release-note lookups
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class IssueAssigneeRow(Base):
    __tablename__ = "issue_assignees"

    issue_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("issues.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    user_login: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
