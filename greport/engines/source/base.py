"""The operation set every source client provides."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

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
from greport.engines.source.params import IssueParams, PullParams, StateFilter


@runtime_checkable
class SourceClient(Protocol):
    """Implemented by GitHubClient (live) and MockClient (in-memory).

    Listing operations paginate until exhaustion and raise a SourceError
    subclass on failure.
    """

    async def get_repository(self, owner: str, name: str) -> Repository: ...

    async def list_issues(self, repo: RepoId, params: IssueParams) -> list[Issue]: ...

    async def list_pulls(self, repo: RepoId, params: PullParams) -> list[PullRequest]: ...

    async def list_releases(self, repo: RepoId) -> list[Release]: ...

    async def list_milestones(
        self, repo: RepoId, state: StateFilter = StateFilter.ALL
    ) -> list[Milestone]: ...

    async def list_issue_events(self, repo: RepoId, number: int) -> list[IssueEvent]: ...

    async def list_reviewed_pull_numbers(
        self, repo: RepoId, numbers: Iterable[int]
    ) -> set[int]: ...

    async def list_projects(self, org: str) -> list[Project]: ...

    async def list_project_items(self, project_node_id: str) -> list[ProjectItem]: ...

    async def close(self) -> None: ...
