"""Sync response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SyncResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repository: str
    issues_synced: int
    pulls_synced: int
    releases_synced: int
    milestones_synced: int
    synced_at: datetime | None = None


class RepoSyncResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repository: str
    success: bool
    result: SyncResultResponse | None = None
    error: str | None = None


class ProjectSyncResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    organization: str
    projects_synced: int
    items_synced: int
    synced_at: datetime | None = None
    warnings: list[str] = []


class BatchSyncResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    results: list[RepoSyncResultResponse]
    total_repos: int
    successful: int
    failed: int
    synced_at: datetime | None = None
    projects: list[ProjectSyncResponse] = []
    project_errors: dict[str, str] = {}
