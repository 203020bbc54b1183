"""Releases."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from greport.domain.user import User


@dataclass(frozen=True)
class Release:
    id: int
    tag_name: str
    author: User
    created_at: datetime
    name: str | None = None
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    published_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.tag_name

    @property
    def is_published(self) -> bool:
        return not self.draft and self.published_at is not None

    @property
    def is_stable(self) -> bool:
        return not self.draft and not self.prerelease
