"""Mapping between domain entities and store rows.

Write side: entity → column dict ready for ``BaseDAO.upsert``.
Read side: row (+ resolved associations) → entity.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from greport.domain import (
    Issue,
    IssueState,
    Label,
    Milestone,
    Project,
    ProjectItem,
    PullRequest,
    Release,
    Repository,
    User,
)
from greport.models import (
    IssueAssigneeRow,
    IssueLabelRow,
    IssueRow,
    MilestoneRow,
    PullRequestRow,
    ReleaseRow,
    RepositoryRow,
)

# ── entity → row ──────────────────────────────────────────────────────────


def repository_to_row(repo: Repository) -> dict[str, Any]:
    return {
        "id": repo.id,
        "owner": repo.owner,
        "name": repo.name,
        "full_name": repo.full_name,
        "description": repo.description,
        "private": repo.private,
        "default_branch": repo.default_branch,
        "created_at": repo.created_at,
        "updated_at": repo.updated_at,
    }


def milestone_to_row(milestone: Milestone, repository_id: int) -> dict[str, Any]:
    return {
        "id": milestone.id,
        "repository_id": repository_id,
        "number": milestone.number,
        "title": milestone.title,
        "description": milestone.description,
        "state": milestone.state.value,
        "open_issues": milestone.open_issues,
        "closed_issues": milestone.closed_issues,
        "due_on": milestone.due_on,
        "created_at": milestone.created_at,
        "closed_at": milestone.closed_at,
    }


def issue_to_row(issue: Issue, repository_id: int) -> dict[str, Any]:
    return {
        "id": issue.id,
        "repository_id": repository_id,
        "number": issue.number,
        "title": issue.title,
        "body": issue.body,
        "state": issue.state.value,
        "milestone_id": issue.milestone.id if issue.milestone else None,
        "author_login": issue.author.login,
        "author_id": issue.author.id,
        "comments_count": issue.comments_count,
        "created_at": issue.created_at,
        "updated_at": issue.updated_at,
        "closed_at": issue.closed_at,
        "closed_by_login": issue.closed_by.login if issue.closed_by else None,
        "closed_by_id": issue.closed_by.id if issue.closed_by else None,
    }


def issue_labels_to_rows(issue: Issue) -> list[dict[str, Any]]:
    """Label rows in source order, without ``issue_id``; duplicate ids collapse to one."""
    rows: dict[int, dict[str, Any]] = {}
    for label in issue.labels:
        rows.setdefault(
            label.id,
            {
                "label_id": label.id,
                "label_name": label.name,
                "label_color": label.color,
                "position": len(rows),
            },
        )
    return list(rows.values())


def issue_assignees_to_rows(issue: Issue) -> list[dict[str, Any]]:
    rows: dict[int, dict[str, Any]] = {}
    for user in issue.assignees:
        rows.setdefault(
            user.id, {"user_id": user.id, "user_login": user.login, "position": len(rows)}
        )
    return list(rows.values())


def pull_to_row(pr: PullRequest, repository_id: int) -> dict[str, Any]:
    return {
        "id": pr.id,
        "repository_id": repository_id,
        "number": pr.number,
        "title": pr.title,
        "body": pr.body,
        "state": pr.state.value,
        "draft": pr.draft,
        "author_login": pr.author.login,
        "author_id": pr.author.id,
        "head_ref": pr.head_ref,
        "base_ref": pr.base_ref,
        "merged": pr.merged,
        "merged_at": pr.merged_at,
        "additions": pr.additions,
        "deletions": pr.deletions,
        "changed_files": pr.changed_files,
        "created_at": pr.created_at,
        "updated_at": pr.updated_at,
        "closed_at": pr.closed_at,
    }


def release_to_row(release: Release, repository_id: int) -> dict[str, Any]:
    return {
        "id": release.id,
        "repository_id": repository_id,
        "tag_name": release.tag_name,
        "name": release.name,
        "body": release.body,
        "draft": release.draft,
        "prerelease": release.prerelease,
        "author_login": release.author.login,
        "author_id": release.author.id,
        "created_at": release.created_at,
        "published_at": release.published_at,
    }


def project_to_row(project: Project) -> dict[str, Any]:
    return {
        "node_id": project.node_id,
        "number": project.number,
        "owner": project.owner,
        "title": project.title,
        "description": project.description,
        "url": project.url,
        "closed": project.closed,
        "total_items": project.total_items,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def project_item_to_row(item: ProjectItem) -> dict[str, Any]:
    """Item row without ``project_id``; the full content is kept as JSON."""
    content = item.content
    return {
        "node_id": item.node_id,
        "content_type": content.type,
        "content_number": getattr(content, "number", None),
        "content_title": content.title,
        "content_state": getattr(content, "state", None),
        "content_url": getattr(content, "url", None),
        "content_repository": getattr(content, "repository", None),
        "content_json": asdict(content),
        "field_values_json": [asdict(value) for value in item.field_values],
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


# ── row → entity ──────────────────────────────────────────────────────────


def repository_from_row(row: RepositoryRow) -> Repository:
    return Repository(
        id=row.id,
        owner=row.owner,
        name=row.name,
        full_name=row.full_name,
        description=row.description,
        private=row.private,
        default_branch=row.default_branch,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def milestone_from_row(row: MilestoneRow) -> Milestone:
    return Milestone(
        id=row.id,
        number=row.number,
        title=row.title,
        description=row.description,
        state=IssueState(row.state),
        open_issues=row.open_issues,
        closed_issues=row.closed_issues,
        due_on=row.due_on,
        created_at=row.created_at,
        closed_at=row.closed_at,
    )


def issue_from_row(
    row: IssueRow,
    labels: list[IssueLabelRow],
    assignees: list[IssueAssigneeRow],
    milestone: MilestoneRow | None,
) -> Issue:
    closed_by = None
    if row.closed_by_login is not None:
        closed_by = User.from_login_id(row.closed_by_login, row.closed_by_id or 0)
    return Issue(
        id=row.id,
        number=row.number,
        title=row.title,
        body=row.body,
        state=IssueState(row.state),
        labels=tuple(
            Label(id=lbl.label_id, name=lbl.label_name, color=lbl.label_color) for lbl in labels
        ),
        assignees=tuple(User.from_login_id(a.user_login, a.user_id) for a in assignees),
        milestone=milestone_from_row(milestone) if milestone is not None else None,
        author=User.from_login_id(row.author_login, row.author_id),
        comments_count=row.comments_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
        closed_at=row.closed_at,
        closed_by=closed_by,
    )


def pull_from_row(row: PullRequestRow) -> PullRequest:
    """Labels and milestone are not stored for pulls; they come back empty."""
    return PullRequest(
        id=row.id,
        number=row.number,
        title=row.title,
        body=row.body,
        state=IssueState(row.state),
        draft=row.draft,
        author=User.from_login_id(row.author_login, row.author_id),
        head_ref=row.head_ref,
        base_ref=row.base_ref,
        merged=row.merged,
        merged_at=row.merged_at,
        additions=row.additions,
        deletions=row.deletions,
        changed_files=row.changed_files,
        created_at=row.created_at,
        updated_at=row.updated_at,
        closed_at=row.closed_at,
    )


def release_from_row(row: ReleaseRow) -> Release:
    return Release(
        id=row.id,
        tag_name=row.tag_name,
        name=row.name,
        body=row.body,
        draft=row.draft,
        prerelease=row.prerelease,
        author=User.from_login_id(row.author_login, row.author_id),
        created_at=row.created_at,
        published_at=row.published_at,
    )
