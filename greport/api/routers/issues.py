"""Issue report routes: metrics, velocity, burndown and burnup."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.metrics import IssueMetrics, VelocityMetrics
from greport.engines.reports import BurndownReport, BurnupReport
from greport.services.report_service import ReportService

router = APIRouter()


@router.get("/{owner}/{repo}/issues/metrics", response_model=IssueMetrics)
async def issue_metrics(
    owner: str,
    repo: str,
    stale_days: int | None = Query(None, ge=0),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> IssueMetrics:
    return await svc.issue_metrics(session, owner, repo, stale_days=stale_days)


@router.get("/{owner}/{repo}/issues/velocity", response_model=VelocityMetrics)
async def issue_velocity(
    owner: str,
    repo: str,
    period: str | None = Query(None),
    periods: int | None = Query(None, ge=1, le=520),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> VelocityMetrics:
    return await svc.velocity(session, owner, repo, period=period, periods=periods)


@router.get("/{owner}/{repo}/issues/burndown", response_model=BurndownReport)
async def issue_burndown(
    owner: str,
    repo: str,
    milestone: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> BurndownReport:
    return await svc.burndown(session, owner, repo, milestone)


@router.get("/{owner}/{repo}/issues/burnup", response_model=BurnupReport)
async def issue_burnup(
    owner: str,
    repo: str,
    milestone: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> BurnupReport:
    return await svc.burnup(session, owner, repo, milestone)
