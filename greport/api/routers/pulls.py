"""Pull-request report routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.metrics import PullMetrics, UnreviewedPrs
from greport.services.report_service import ReportService

router = APIRouter()


@router.get("/{owner}/{repo}/pulls/metrics", response_model=PullMetrics)
async def pull_metrics(
    owner: str,
    repo: str,
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> PullMetrics:
    return await svc.pull_metrics(session, owner, repo)


@router.get("/{owner}/{repo}/pulls/unreviewed", response_model=UnreviewedPrs)
async def unreviewed_pulls(
    owner: str,
    repo: str,
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> UnreviewedPrs:
    return await svc.unreviewed_pulls(session, owner, repo)
