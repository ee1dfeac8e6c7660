from __future__ import annotations

import asyncio
import logging
from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from fieldscribe.agents.llm_provider import LLMProvider
from fieldscribe.agents.orchestrator import run_template_pipeline
from fieldscribe.config import Settings
from fieldscribe.db import crud
from fieldscribe.db.engine import get_db
from fieldscribe.dependencies import get_settings_dep, get_llm, get_retry, get_session_factory
from fieldscribe.errors import RecordNotFoundError, StoragePathError
from fieldscribe.models.template import AssessmentTemplate
from fieldscribe.schemas import TemplateRead, TemplateUpdate, ProcessTemplateRequest
from fieldscribe.services import media_store
from fieldscribe.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

router = APIRouter(tags=["templates"])

_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/gif"}


async def _template_read(db: AsyncSession, tpl: AssessmentTemplate) -> TemplateRead:
    tree = await crud.load_schema_tree(db, tpl.id)
    return TemplateRead(
        id=tpl.id,
        company_id=tpl.company_id,
        name=tpl.name,
        ai_type=tpl.ai_type,
        status=tpl.status,
        error_message=tpl.error_message,
        original_file_url=tpl.original_file_url,
        created_at=tpl.created_at,
        items=tree.to_nested(),
    )


@router.post("/api/templates", response_model=TemplateRead, status_code=201)
async def upload_template(
    file: UploadFile = File(...),
    name: str = Form(""),
    company_id: str = Form(""),
    db: AsyncSession = Depends(get_db),
    llm: LLMProvider = Depends(get_llm),
    retry: RetryPolicy = Depends(get_retry),
    settings: Settings = Depends(get_settings_dep),
    session_factory=Depends(get_session_factory),
):
    """Upload a form photo; structuring runs in the background."""
    if file.content_type and file.content_type not in _IMAGE_TYPES:
        raise HTTPException(415, f"Unsupported image type: {file.content_type}")
    data = await file.read()
    if not data:
        raise HTTPException(400, "Empty file")
    if company_id and not await crud.get_company(db, company_id):
        raise HTTPException(404, "Company not found")

    filename = PurePosixPath(file.filename or "").name
    if filename in ("", ".", ".."):
        filename = "template.jpg"
    path = await media_store.save_object(data, f"templates/{ULID()}/{filename}")
    tpl = await crud.create_template(
        db, name or PurePosixPath(filename).stem,
        company_id=company_id or None, original_file_url=path,
    )

    asyncio.create_task(_structure_in_background(
        tpl.id, data, session_factory, llm=llm, retry=retry, settings=settings,
    ))
    return await _template_read(db, tpl)


async def _structure_in_background(template_id: str, image: bytes, session_factory, **deps):
    """Background task: the pipeline records failures on the template itself."""
    try:
        async with session_factory() as db:
            await run_template_pipeline(template_id, db=db, image=image, **deps)
    except Exception as e:
        logger.error(f"Background structuring failed for template {template_id}: {e}")


@router.post("/api/process-template")
async def process_template(
    body: ProcessTemplateRequest,
    db: AsyncSession = Depends(get_db),
    llm: LLMProvider = Depends(get_llm),
    retry: RetryPolicy = Depends(get_retry),
    settings: Settings = Depends(get_settings_dep),
):
    """Webhook fired when a template row is inserted; structures it synchronously."""
    record = body.record
    tpl = await crud.get_template(db, record.id)
    if not tpl:
        return JSONResponse({"error": f"Template {record.id} not found"}, status_code=404)
    if record.original_file_url and record.original_file_url != tpl.original_file_url:
        await crud.update_template(db, tpl, original_file_url=record.original_file_url)

    try:
        result = await run_template_pipeline(record.id, db=db, llm=llm, retry=retry, settings=settings)
    except RecordNotFoundError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except StoragePathError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception as e:
        return JSONResponse({"error": str(e) or type(e).__name__}, status_code=500)
    return {"message": "Template processed", **result}


@router.get("/api/templates/{template_id}", response_model=TemplateRead)
async def get_template(template_id: str, db: AsyncSession = Depends(get_db)):
    tpl = await crud.get_template(db, template_id)
    if not tpl:
        raise HTTPException(404, "Template not found")
    return await _template_read(db, tpl)


@router.patch("/api/templates/{template_id}", response_model=TemplateRead)
async def update_template(template_id: str, body: TemplateUpdate, db: AsyncSession = Depends(get_db)):
    tpl = await crud.get_template(db, template_id)
    if not tpl:
        raise HTTPException(404, "Template not found")
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    if "ai_type" in updates:
        updates["ai_type"] = updates["ai_type"].value
    if updates:
        tpl = await crud.update_template(db, tpl, **updates)
    return await _template_read(db, tpl)
