"""Sync router — trigger single-repository and batch syncs."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from greport.api.deps import (
    get_registry,
    get_session_factory,
    get_sync_runner,
    tracked_extra_repos,
)
from greport.api.schemas.sync import BatchSyncResponse, SyncResultResponse
from greport.engines.source.registry import ClientRegistry
from greport.engines.sync.runner import SyncRunner
from greport.services.report_service import parse_repo

router = APIRouter()


@router.post("/{owner}/{repo}", response_model=SyncResultResponse)
async def sync_repository(
    owner: str,
    repo: str,
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    registry: ClientRegistry = Depends(get_registry),
    runner: SyncRunner = Depends(get_sync_runner),
) -> SyncResultResponse:
    ref = parse_repo(owner, repo)
    client = registry.client_for_owner(ref.owner)
    result = await runner.sync_repository(factory, client, ref.owner, ref.name)
    return SyncResultResponse.model_validate(result)


@router.post("", response_model=BatchSyncResponse)
async def sync_all(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    registry: ClientRegistry = Depends(get_registry),
    runner: SyncRunner = Depends(get_sync_runner),
) -> BatchSyncResponse:
    batch = await runner.sync_batch(factory, registry, tracked_extra_repos())
    return BatchSyncResponse.model_validate(batch)
