"""Contributor ranking route."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.metrics import ContributorStats
from greport.services.report_service import ReportService

router = APIRouter()


@router.get("/{owner}/{repo}/contributors", response_model=list[ContributorStats])
async def contributors(
    owner: str,
    repo: str,
    sort_by: Literal["issues", "prs"] = Query("issues"),
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> list[ContributorStats]:
    return await svc.contributors(session, owner, repo, sort_by=sort_by, limit=limit)
