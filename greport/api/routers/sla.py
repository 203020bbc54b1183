"""SLA routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.metrics import OpenSlaStatus, SlaReport
from greport.services.report_service import ReportService

router = APIRouter()


@router.get("/{owner}/{repo}/sla", response_model=SlaReport)
async def sla_report(
    owner: str,
    repo: str,
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> SlaReport:
    return await svc.sla_report(session, owner, repo)


@router.get("/{owner}/{repo}/sla/open", response_model=OpenSlaStatus)
async def open_sla_status(
    owner: str,
    repo: str,
    response_hours: int | None = Query(None, ge=1),
    resolution_hours: int | None = Query(None, ge=1),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> OpenSlaStatus:
    return await svc.open_sla_status(
        session,
        owner,
        repo,
        response_hours=response_hours,
        resolution_hours=resolution_hours,
    )
