"""sync_status table — one row per repository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from greport.core.database import Base, UTCDateTime


class SyncStatusRow(Base):
    __tablename__ = "sync_status"

    repository_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    issues_synced_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    pulls_synced_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    releases_synced_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    milestones_synced_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    last_error: Mapped[Optional[str]] = mapped_column(Text)
    last_error_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
