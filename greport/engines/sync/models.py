"""Data types for the sync engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SyncResult:
    """Counts written by one repository sync."""

    repository: str
    issues_synced: int = 0
    pulls_synced: int = 0
    releases_synced: int = 0
    milestones_synced: int = 0
    synced_at: datetime | None = None


@dataclass
class RepoSyncResult:
    """Outcome of one repository inside a batch."""

    repository: str
    success: bool
    result: SyncResult | None = None
    error: str | None = None


@dataclass
class ProjectSyncResult:
    organization: str
    projects_synced: int = 0
    items_synced: int = 0
    synced_at: datetime | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class BatchSyncResult:
    """Invariant: ``successful + failed == total_repos``."""

    results: list[RepoSyncResult] = field(default_factory=list)
    total_repos: int = 0
    successful: int = 0
    failed: int = 0
    synced_at: datetime | None = None
    projects: list[ProjectSyncResult] = field(default_factory=list)
    project_errors: dict[str, str] = field(default_factory=dict)
