"""Source clients — the forge API behind a fixed operation set."""

from greport.engines.source.base import SourceClient
from greport.engines.source.errors import (
    RateLimitError,
    SourceApiError,
    SourceError,
    SourceNetworkError,
    SourceNotFoundError,
    SourceUnauthorizedError,
)
from greport.engines.source.github_client import GitHubClient
from greport.engines.source.limiter import RequestLimiter, UnlimitedLimiter
from greport.engines.source.mock_client import MockClient, MockData
from greport.engines.source.params import IssueParams, PullParams, RetryConfig, StateFilter
from greport.engines.source.registry import ClientRegistry, OrgNotConfiguredError

__all__ = [
    "ClientRegistry",
    "GitHubClient",
    "IssueParams",
    "MockClient",
    "MockData",
    "OrgNotConfiguredError",
    "PullParams",
    "RateLimitError",
    "RequestLimiter",
    "RetryConfig",
    "SourceApiError",
    "SourceClient",
    "SourceError",
    "SourceNetworkError",
    "SourceNotFoundError",
    "SourceUnauthorizedError",
    "StateFilter",
    "UnlimitedLimiter",
]
