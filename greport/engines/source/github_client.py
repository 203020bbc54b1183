"""Async GitHub API client with pagination, rate-limit handling, and retries."""

from __future__ import annotations

import asyncio
import os
import re
import time
from collections.abc import AsyncGenerator, Iterable
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from greport.core.github import RepoId
from greport.domain import (
    Issue,
    IssueEvent,
    Milestone,
    Project,
    ProjectItem,
    PullRequest,
    Release,
    Repository,
)
from greport.engines.source import graphql
from greport.engines.source.errors import (
    RateLimitError,
    SourceApiError,
    SourceNetworkError,
    SourceNotFoundError,
    SourceUnauthorizedError,
)
from greport.engines.source.limiter import RequestLimiter, UnlimitedLimiter
from greport.engines.source.params import IssueParams, PullParams, RetryConfig, StateFilter
from greport.engines.source.payloads import (
    parse_issue,
    parse_issue_event,
    parse_milestone,
    parse_pull,
    parse_release,
    parse_repository,
)

log = structlog.get_logger("greport.engine")

DEFAULT_API_URL = "https://api.github.com"

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')


class GitHubClient:
    """Thin async wrapper around the GitHub REST and GraphQL APIs."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        limiter: RequestLimiter | None = None,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        resolved_token = token or os.environ.get("GITHUB_TOKEN")
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if resolved_token:
            headers["Authorization"] = f"Bearer {resolved_token}"
        self._client = httpx.AsyncClient(
            base_url=(base_url or DEFAULT_API_URL).rstrip("/"),
            headers=headers,
            timeout=30.0,
            transport=transport,
        )
        self._graphql_url = graphql.graphql_url(base_url)
        self._limiter = limiter or UnlimitedLimiter()
        self._retry = retry or RetryConfig()

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── source operations ──────────────────────────────────────────────────

    async def get_repository(self, owner: str, name: str) -> Repository:
        data = await self.get(f"/repos/{owner}/{name}")
        return parse_repository(data)

    async def list_issues(self, repo: RepoId, params: IssueParams) -> list[Issue]:
        issues = []
        async for item in self.get_paginated(f"/repos/{repo}/issues", params.to_query()):
            # the issues endpoint also returns pull requests
            if "pull_request" in item:
                continue
            issues.append(parse_issue(item))
        return issues

    async def list_pulls(self, repo: RepoId, params: PullParams) -> list[PullRequest]:
        return [
            parse_pull(item)
            async for item in self.get_paginated(f"/repos/{repo}/pulls", params.to_query())
        ]

    async def list_releases(self, repo: RepoId) -> list[Release]:
        return [parse_release(item) async for item in self.get_paginated(f"/repos/{repo}/releases")]

    async def list_milestones(
        self, repo: RepoId, state: StateFilter = StateFilter.ALL
    ) -> list[Milestone]:
        milestones = []
        async for item in self.get_paginated(
            f"/repos/{repo}/milestones", {"state": state.value}
        ):
            milestone = parse_milestone(item)
            if milestone is not None:
                milestones.append(milestone)
        return milestones

    async def list_issue_events(self, repo: RepoId, number: int) -> list[IssueEvent]:
        """Timeline events for one issue; undated entries (commits) are skipped."""
        return [
            parse_issue_event(item)
            async for item in self.get_paginated(f"/repos/{repo}/issues/{number}/timeline")
            if item.get("created_at")
        ]

    async def list_reviewed_pull_numbers(
        self, repo: RepoId, numbers: Iterable[int]
    ) -> set[int]:
        reviewed = set()
        for number in numbers:
            response = await self._request_with_retry(
                "GET", f"/repos/{repo}/pulls/{number}/reviews", {"per_page": 1}
            )
            await self._check_rate_limit(response)
            if response.json():
                reviewed.add(number)
        return reviewed

    async def list_projects(self, org: str) -> list[Project]:
        projects = []
        async for node in self._graphql_nodes(
            graphql.LIST_ORG_PROJECTS,
            {"org": org},
            ("organization", "projectsV2"),
        ):
            projects.append(graphql.convert_project(node, org))
        return projects

    async def list_project_items(self, project_node_id: str) -> list[ProjectItem]:
        items = []
        async for node in self._graphql_nodes(
            graphql.LIST_PROJECT_ITEMS,
            {"nodeId": project_node_id},
            ("node", "items"),
        ):
            item = graphql.convert_item(node)
            if item is not None:
                items.append(item)
        return items

    # ── transport ──────────────────────────────────────────────────────────

    async def get_paginated(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        max_pages: int | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Yield JSON items from a paginated GitHub API endpoint.

        Follows ``Link: <...>; rel="next"`` headers until exhaustion, or
        until *max_pages* pages when given.
        """
        url: str | None = path
        params = dict(params or {})
        params.setdefault("per_page", 100)
        page = 0

        while url and (max_pages is None or page < max_pages):
            # the next link already carries the query string
            response = await self._request_with_retry("GET", url, params if page == 0 else None)
            await self._check_rate_limit(response)

            data = response.json()
            if isinstance(data, list):
                for item in data:
                    yield item
            else:
                yield data

            url = self._parse_next_link(response.headers.get("Link", ""))
            page += 1

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Single-resource GET, returns parsed JSON."""
        response = await self._request_with_retry("GET", path, params)
        await self._check_rate_limit(response)
        return response.json()

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL query and return its ``data`` object."""
        response = await self._request_with_retry(
            "POST", self._graphql_url, json={"query": query, "variables": variables}
        )
        body = response.json()
        if body.get("errors"):
            raise graphql.classify_graphql_errors(body["errors"])
        return body.get("data") or {}

    async def _graphql_nodes(
        self,
        query: str,
        variables: dict[str, Any],
        path: tuple[str, str],
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Walk a cursor-paginated connection located at data[path[0]][path[1]]."""
        after: str | None = None
        while True:
            data = await self.graphql(
                query, {**variables, "first": graphql.PAGE_SIZE, "after": after}
            )
            parent = data.get(path[0])
            if parent is None:
                raise SourceNotFoundError(f"graphql: {path[0]} not found for {variables}")
            connection = parent.get(path[1]) or {}
            for node in connection.get("nodes") or ():
                if node:
                    yield node
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return
            after = page_info.get("endCursor")

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request with exponential backoff on 5xx, 408/429, rate-limit and transport errors.

        Non-retryable failures are classified into SourceError subclasses.
        """
        last_exc: Exception | None = None
        attempts = self._retry.max_retries + 1
        for attempt in range(attempts):
            await self._limiter.acquire()
            try:
                resp = await self._client.request(method, url, params=params, json=json)
            except httpx.TimeoutException as exc:
                log.warning("github.timeout", url=url, attempt=attempt + 1, max_retries=attempts)
                last_exc = SourceNetworkError(f"timeout requesting {url}: {exc}")
            except httpx.TransportError as exc:
                log.warning(
                    "github.transport_error",
                    url=url,
                    error=str(exc),
                    attempt=attempt + 1,
                    max_retries=attempts,
                )
                last_exc = SourceNetworkError(f"network error requesting {url}: {exc}")
            else:
                # rate limit: 403 with exhausted quota, or 429
                if resp.status_code == 429 or (
                    resp.status_code == 403 and self._is_rate_limited(resp)
                ):
                    wait = self._get_rate_limit_wait(resp)
                    log.warning(
                        "github.rate_limit",
                        url=url,
                        wait_seconds=wait,
                        attempt=attempt + 1,
                        max_retries=attempts,
                    )
                    last_exc = RateLimitError(wait, self._reset_at(resp))
                    if attempt < attempts - 1:
                        await asyncio.sleep(wait)
                    continue

                if resp.is_success:
                    return resp

                if not self._retry.should_retry_status(resp.status_code):
                    self._raise_for_status(resp, url)

                log.warning(
                    "github.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=attempts,
                )
                last_exc = SourceApiError(
                    f"{resp.status_code} from {url}", status=resp.status_code
                )

            if attempt < attempts - 1:
                await asyncio.sleep(self._retry.backoff(attempt))

        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _raise_for_status(resp: httpx.Response, url: str) -> None:
        status = resp.status_code
        if status == 404:
            raise SourceNotFoundError(f"not found: {url}")
        if status in (401, 403):
            raise SourceUnauthorizedError(f"{status} from {url}: check token permissions")
        raise SourceApiError(f"{status} from {url}", status=status)

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        """Check if a 403 response is due to rate limiting."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                return int(remaining) == 0
            except (ValueError, TypeError):
                pass
        # secondary rate limits only send Retry-After
        return "Retry-After" in response.headers

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Calculate how long to wait based on rate-limit headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        reset_ts = response.headers.get("X-RateLimit-Reset")
        if reset_ts is not None:
            try:
                return max(int(reset_ts) - int(time.time()), 1)
            except (ValueError, TypeError):
                pass
        return 60  # conservative fallback

    @classmethod
    def _reset_at(cls, response: httpx.Response) -> datetime | None:
        reset_ts = cls._parse_header_int(response.headers.get("X-RateLimit-Reset"))
        if reset_ts is None:
            return None
        return datetime.fromtimestamp(reset_ts, tz=timezone.utc)

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        """Safely parse an integer header value."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_next_link(link_header: str) -> str | None:
        """Extract the ``next`` URL from a GitHub ``Link`` header."""
        match = _NEXT_LINK_RE.search(link_header)
        return match.group(1) if match else None
