from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.db import crud
from fieldscribe.db.engine import get_db
from fieldscribe.models.enums import AssessmentStatus
from fieldscribe.schemas import AssessmentCreate, AssessmentRead, ReportRead
from fieldscribe.services.report import build_report

router = APIRouter(prefix="/api/assessments", tags=["assessments"])


@router.post("", response_model=AssessmentRead, status_code=201)
async def create_assessment(body: AssessmentCreate, db: AsyncSession = Depends(get_db)):
    if not await crud.get_company(db, body.company_id):
        raise HTTPException(404, "Company not found")
    if not await crud.get_template(db, body.template_id):
        raise HTTPException(404, "Template not found")
    return await crud.create_assessment(
        db, body.company_id, body.template_id,
        response_style=body.response_style.value, audio_url=body.audio_url,
    )


@router.get("/{assessment_id}", response_model=AssessmentRead)
async def get_assessment(assessment_id: str, db: AsyncSession = Depends(get_db)):
    assessment = await crud.get_assessment(db, assessment_id)
    if not assessment:
        raise HTTPException(404, "Assessment not found")
    return assessment


@router.get("/{assessment_id}/report", response_model=ReportRead)
async def get_report(assessment_id: str, db: AsyncSession = Depends(get_db)):
    assessment = await crud.get_assessment(db, assessment_id)
    if not assessment:
        raise HTTPException(404, "Assessment not found")
    return await build_report(db, assessment)


@router.post("/{assessment_id}/retry", response_model=AssessmentRead, status_code=201)
async def retry_assessment(assessment_id: str, db: AsyncSession = Depends(get_db)):
    """Start over from a failed assessment as a new in_progress record."""
    source = await crud.get_assessment(db, assessment_id)
    if not source:
        raise HTTPException(404, "Assessment not found")
    if source.status != AssessmentStatus.FAILED.value:
        raise HTTPException(409, f"Only failed assessments can be retried (status: {source.status})")
    return await crud.create_assessment(
        db, source.company_id, source.template_id,
        response_style=source.response_style, audio_url=source.audio_url,
    )
