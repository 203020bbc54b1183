"""Cross-repository rollups over the store."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.metrics import (
    AggregateContributorStats,
    AggregateIssueMetrics,
    AggregatePullMetrics,
    AggregateVelocity,
)
from greport.services.report_service import ReportService

router = APIRouter()

StateParam = Literal["open", "closed", "all"]


@router.get("/issues/metrics", response_model=AggregateIssueMetrics)
async def issue_metrics(
    state: StateParam = Query("all"),
    days: int | None = Query(None, ge=1),
    stale_days: int | None = Query(None, ge=0),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> AggregateIssueMetrics:
    return await svc.aggregate_issue_metrics(
        session, state=state, days=days, stale_days=stale_days
    )


@router.get("/pulls/metrics", response_model=AggregatePullMetrics)
async def pull_metrics(
    state: StateParam = Query("all"),
    days: int | None = Query(None, ge=1),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> AggregatePullMetrics:
    return await svc.aggregate_pull_metrics(session, state=state, days=days)


@router.get("/velocity", response_model=AggregateVelocity)
async def velocity(
    period: str | None = Query(None),
    periods: int | None = Query(None, ge=1, le=520),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> AggregateVelocity:
    return await svc.aggregate_velocity(session, period=period, periods=periods)


@router.get("/contributors", response_model=list[AggregateContributorStats])
async def contributors(
    limit: int = Query(30, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> list[AggregateContributorStats]:
    return await svc.aggregate_contributors(session, limit=limit)
