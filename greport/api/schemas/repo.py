"""Tracked repository schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SyncStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issues_synced_at: datetime | None = None
    pulls_synced_at: datetime | None = None
    releases_synced_at: datetime | None = None
    milestones_synced_at: datetime | None = None
    last_error: str | None = None
    last_error_at: datetime | None = None


class RepoListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner: str
    name: str
    full_name: str
    description: str | None = None
    private: bool
    default_branch: str
    sync_status: SyncStatusResponse | None = None
