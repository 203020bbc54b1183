"""Sync engine — keeps the store warm from the forge API."""

from greport.engines.sync.models import (
    BatchSyncResult,
    ProjectSyncResult,
    RepoSyncResult,
    SyncResult,
)
from greport.engines.sync.runner import SyncRunner

__all__ = [
    "BatchSyncResult",
    "ProjectSyncResult",
    "RepoSyncResult",
    "SyncResult",
    "SyncRunner",
]
