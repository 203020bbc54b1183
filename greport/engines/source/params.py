"""Request parameter types for source clients."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class StateFilter(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


@dataclass(frozen=True)
class IssueParams:
    state: StateFilter = StateFilter.ALL
    labels: tuple[str, ...] = ()
    assignee: str | None = None
    milestone: str | None = None
    since: datetime | None = None
    per_page: int = 100

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {"state": self.state.value, "per_page": self.per_page}
        if self.labels:
            query["labels"] = ",".join(self.labels)
        if self.assignee:
            query["assignee"] = self.assignee
        if self.milestone:
            query["milestone"] = self.milestone
        if self.since:
            query["since"] = self.since.isoformat()
        return query


@dataclass(frozen=True)
class PullParams:
    state: StateFilter = StateFilter.ALL
    head: str | None = None
    base: str | None = None
    per_page: int = 100

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {"state": self.state.value, "per_page": self.per_page}
        if self.head:
            query["head"] = self.head
        if self.base:
            query["base"] = self.base
        return query


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    initial_backoff: float = 0.5  # seconds
    max_backoff: float = 30.0
    multiplier: float = 2.0
    retry_statuses: frozenset[int] = field(default=frozenset({408, 429}))

    def backoff(self, attempt: int) -> float:
        return min(self.initial_backoff * (self.multiplier**attempt), self.max_backoff)

    def should_retry_status(self, status: int) -> bool:
        return status >= 500 or status in self.retry_statuses
