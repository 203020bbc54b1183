"""repositories table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from greport.core.database import Base, UTCDateTime


class RepositoryRow(Base):
    __tablename__ = "repositories"

    # source-assigned id, not a surrogate
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    private: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    default_branch: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
