"""Repos router — tracked repositories and their sync status."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_cache_service, get_session
from greport.api.schemas.repo import RepoListItem, SyncStatusResponse
from greport.services.cache_service import CacheService
from greport.services.report_service import parse_repo

router = APIRouter()


@router.get("", response_model=list[RepoListItem])
async def list_repos(
    session: AsyncSession = Depends(get_session),
    svc: CacheService = Depends(get_cache_service),
) -> list[RepoListItem]:
    listing = await svc.list_repositories(session)
    items = []
    for entry in listing:
        repo = entry["repository"]
        status = entry["status"]
        items.append(
            RepoListItem(
                **{k: getattr(repo, k) for k in RepoListItem.model_fields if k != "sync_status"},
                sync_status=SyncStatusResponse.model_validate(status) if status else None,
            )
        )
    return items


@router.delete("/{owner}/{repo}", status_code=204)
async def remove_repo(
    owner: str,
    repo: str,
    session: AsyncSession = Depends(get_session),
    svc: CacheService = Depends(get_cache_service),
) -> Response:
    ref = parse_repo(owner, repo)
    await svc.remove_repository(session, ref.owner, ref.name)
    return Response(status_code=204)
