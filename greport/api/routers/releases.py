"""Release routes: notes, listing and milestone progress."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from greport.api.deps import get_report_service, get_session
from greport.engines.reports import MilestoneProgress, ReleaseNotes, to_markdown
from greport.services.report_service import ReleasePage, ReportService

router = APIRouter()


@router.get("/{owner}/{repo}/releases/notes", response_model=ReleaseNotes)
async def release_notes(
    owner: str,
    repo: str,
    version: str | None = Query(None),
    milestone: str | None = Query(None),
    format: Literal["json", "markdown"] = Query("json"),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
):
    notes = await svc.release_notes(session, owner, repo, version=version, milestone=milestone)
    if format == "markdown":
        return PlainTextResponse(to_markdown(notes), media_type="text/markdown")
    return notes


@router.get("/{owner}/{repo}/releases", response_model=ReleasePage)
async def list_releases(
    owner: str,
    repo: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(30, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> ReleasePage:
    return await svc.list_releases(session, owner, repo, page=page, per_page=per_page)


@router.get(
    "/{owner}/{repo}/milestones/{milestone}/progress", response_model=MilestoneProgress
)
async def milestone_progress(
    owner: str,
    repo: str,
    milestone: str,
    session: AsyncSession = Depends(get_session),
    svc: ReportService = Depends(get_report_service),
) -> MilestoneProgress:
    return await svc.milestone_progress(session, owner, repo, milestone)
