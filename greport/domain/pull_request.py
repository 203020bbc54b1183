"""Pull requests."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from greport.domain.issue import IssueState, Milestone, whole_hours
from greport.domain.user import Label, User


class PrSize(str, enum.Enum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"

    @classmethod
    def from_lines(cls, lines: int) -> PrSize:
        if lines <= 10:
            return cls.XS
        if lines <= 50:
            return cls.S
        if lines <= 200:
            return cls.M
        if lines <= 500:
            return cls.L
        return cls.XL


@dataclass(frozen=True)
class PullRequest:
    """Immutable snapshot of a pull request.

    ``merged`` implies a CLOSED state and a ``merged_at`` timestamp.
    """

    id: int
    number: int
    title: str
    state: IssueState
    author: User
    created_at: datetime
    updated_at: datetime
    body: str | None = None
    draft: bool = False
    labels: tuple[Label, ...] = ()
    milestone: Milestone | None = None
    head_ref: str = ""
    base_ref: str = ""
    merged: bool = False
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    @property
    def size_category(self) -> PrSize:
        return PrSize.from_lines(self.lines_changed)

    def time_to_merge_hours(self) -> int | None:
        if self.merged_at is None:
            return None
        return whole_hours(self.merged_at - self.created_at)
