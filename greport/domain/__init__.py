"""Domain entities — immutable snapshots of forge data."""

from greport.domain.issue import Issue, IssueEvent, IssueState, Milestone
from greport.domain.project import (
    DraftIssueContent,
    IssueContent,
    Project,
    ProjectItem,
    PullRequestContent,
)
from greport.domain.pull_request import PrSize, PullRequest
from greport.domain.release import Release
from greport.domain.repository import Repository
from greport.domain.user import Label, User

__all__ = [
    "DraftIssueContent",
    "Issue",
    "IssueContent",
    "IssueEvent",
    "IssueState",
    "Label",
    "Milestone",
    "PrSize",
    "Project",
    "ProjectItem",
    "PullRequest",
    "PullRequestContent",
    "Release",
    "Repository",
    "User",
]
