"""In-memory source client for tests and offline runs."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from greport.core.github import RepoId
from greport.domain import (
    Issue,
    IssueEvent,
    IssueState,
    Milestone,
    Project,
    ProjectItem,
    PullRequest,
    Release,
    Repository,
)
from greport.engines.source.errors import SourceNotFoundError
from greport.engines.source.params import IssueParams, PullParams, StateFilter


def _matches_state(state: IssueState, wanted: StateFilter) -> bool:
    return wanted == StateFilter.ALL or state.value == wanted.value


@dataclass
class MockData:
    """Canned forge contents, keyed by lower-cased ``owner/name``."""

    repositories: dict[str, Repository] = field(default_factory=dict)
    issues: dict[str, list[Issue]] = field(default_factory=dict)
    pulls: dict[str, list[PullRequest]] = field(default_factory=dict)
    releases: dict[str, list[Release]] = field(default_factory=dict)
    milestones: dict[str, list[Milestone]] = field(default_factory=dict)
    events: dict[tuple[str, int], list[IssueEvent]] = field(default_factory=dict)
    reviewed: dict[str, set[int]] = field(default_factory=dict)
    projects: dict[str, list[Project]] = field(default_factory=dict)
    project_items: dict[str, list[ProjectItem]] = field(default_factory=dict)

    def with_repository(self, repo: Repository) -> MockData:
        self.repositories[repo.full_name.lower()] = repo
        return self

    def with_issues(self, full_name: str, issues: Iterable[Issue]) -> MockData:
        self.issues.setdefault(full_name.lower(), []).extend(issues)
        return self

    def with_pulls(self, full_name: str, pulls: Iterable[PullRequest]) -> MockData:
        self.pulls.setdefault(full_name.lower(), []).extend(pulls)
        return self

    def with_releases(self, full_name: str, releases: Iterable[Release]) -> MockData:
        self.releases.setdefault(full_name.lower(), []).extend(releases)
        return self

    def with_milestones(self, full_name: str, milestones: Iterable[Milestone]) -> MockData:
        self.milestones.setdefault(full_name.lower(), []).extend(milestones)
        return self

    def with_events(self, full_name: str, number: int, events: Iterable[IssueEvent]) -> MockData:
        self.events.setdefault((full_name.lower(), number), []).extend(events)
        return self

    def with_reviews(self, full_name: str, numbers: Iterable[int]) -> MockData:
        self.reviewed.setdefault(full_name.lower(), set()).update(numbers)
        return self

    def with_projects(self, org: str, projects: Iterable[Project]) -> MockData:
        self.projects.setdefault(org.lower(), []).extend(projects)
        return self

    def with_project_items(self, node_id: str, items: Iterable[ProjectItem]) -> MockData:
        self.project_items.setdefault(node_id, []).extend(items)
        return self


class MockClient:
    """SourceClient backed by MockData.

    ``fail(operation, exc)`` makes the named operation raise *exc*; every
    call is appended to ``calls`` as ``(operation, target)``.
    """

    def __init__(self, data: MockData | None = None) -> None:
        self.data = data or MockData()
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[str, Exception] = {}

    def fail(self, operation: str, exc: Exception) -> MockClient:
        self._failures[operation] = exc
        return self

    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        exc = self._failures.get(operation)
        if exc is not None:
            raise exc

    def _require_repo(self, repo: RepoId) -> str:
        key = repo.full_name.lower()
        if key not in self.data.repositories:
            raise SourceNotFoundError(f"repository not found: {repo.full_name}")
        return key

    async def get_repository(self, owner: str, name: str) -> Repository:
        self._record("get_repository", f"{owner}/{name}")
        key = self._require_repo(RepoId(owner, name))
        return self.data.repositories[key]

    async def list_issues(self, repo: RepoId, params: IssueParams) -> list[Issue]:
        self._record("list_issues", repo.full_name)
        key = self._require_repo(repo)
        wanted_labels = {label.lower() for label in params.labels}
        result = []
        for issue in self.data.issues.get(key, []):
            if not _matches_state(issue.state, params.state):
                continue
            if wanted_labels and not wanted_labels <= {lbl.name.lower() for lbl in issue.labels}:
                continue
            if params.since is not None and issue.updated_at < params.since:
                continue
            result.append(issue)
        return result

    async def list_pulls(self, repo: RepoId, params: PullParams) -> list[PullRequest]:
        self._record("list_pulls", repo.full_name)
        key = self._require_repo(repo)
        return [
            pr
            for pr in self.data.pulls.get(key, [])
            if _matches_state(pr.state, params.state)
            and (params.base is None or pr.base_ref == params.base)
        ]

    async def list_releases(self, repo: RepoId) -> list[Release]:
        self._record("list_releases", repo.full_name)
        key = self._require_repo(repo)
        return list(self.data.releases.get(key, []))

    async def list_milestones(
        self, repo: RepoId, state: StateFilter = StateFilter.ALL
    ) -> list[Milestone]:
        self._record("list_milestones", repo.full_name)
        key = self._require_repo(repo)
        return [m for m in self.data.milestones.get(key, []) if _matches_state(m.state, state)]

    async def list_issue_events(self, repo: RepoId, number: int) -> list[IssueEvent]:
        self._record("list_issue_events", f"{repo.full_name}#{number}")
        key = self._require_repo(repo)
        return list(self.data.events.get((key, number), []))

    async def list_reviewed_pull_numbers(
        self, repo: RepoId, numbers: Iterable[int]
    ) -> set[int]:
        self._record("list_reviewed_pull_numbers", repo.full_name)
        key = self._require_repo(repo)
        return set(numbers) & self.data.reviewed.get(key, set())

    async def list_projects(self, org: str) -> list[Project]:
        self._record("list_projects", org)
        return list(self.data.projects.get(org.lower(), []))

    async def list_project_items(self, project_node_id: str) -> list[ProjectItem]:
        self._record("list_project_items", project_node_id)
        return list(self.data.project_items.get(project_node_id, []))

    async def close(self) -> None:
        return None
