"""Classified errors raised by source clients."""

from __future__ import annotations

from datetime import datetime


class SourceError(Exception):
    """Base class for forge API failures."""

    retryable = False


class SourceNotFoundError(SourceError):
    """Repository, milestone, issue or project does not exist (HTTP 404)."""


class SourceUnauthorizedError(SourceError):
    """Credential missing, invalid, or lacking a required scope."""


class SourceNetworkError(SourceError):
    """Transport failure or timeout."""

    retryable = True


class RateLimitError(SourceError):
    """Raised when the rate limit is exhausted and retries ran out."""

    retryable = True

    def __init__(self, retry_after: int, reset_at: datetime | None = None) -> None:
        self.retry_after = retry_after
        self.reset_at = reset_at
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


class SourceApiError(SourceError):
    """Any other non-success response."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)
