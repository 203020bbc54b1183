"""SQLAlchemy ORM models — one file per table."""

from greport.models.issue import IssueAssigneeRow, IssueLabelRow, IssueRow
from greport.models.milestone import MilestoneRow
from greport.models.project import ProjectItemRow, ProjectRow
from greport.models.pull_request import PullRequestRow
from greport.models.release import ReleaseRow
from greport.models.repository import RepositoryRow
from greport.models.sync_status import SyncStatusRow

__all__ = [
    "RepositoryRow",
    "MilestoneRow",
    "IssueRow",
    "IssueLabelRow",
    "IssueAssigneeRow",
    "PullRequestRow",
    "ReleaseRow",
    "SyncStatusRow",
    "ProjectRow",
    "ProjectItemRow",
]
