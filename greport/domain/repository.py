"""Repository metadata."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Repository:
    id: int
    owner: str
    name: str
    full_name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    private: bool = False
    default_branch: str = "main"
