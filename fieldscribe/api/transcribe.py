from __future__ import annotations

import logging
from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, UploadFile, File, Form
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.agents.llm_provider import LLMProvider, EmbeddingProvider
from fieldscribe.agents.orchestrator import run_assessment_pipeline
from fieldscribe.config import Settings
from fieldscribe.db import crud
from fieldscribe.db.engine import get_db
from fieldscribe.dependencies import get_settings_dep, get_stt, get_llm, get_embedder, get_retry
from fieldscribe.errors import RecordNotFoundError, StatusConflictError, StoragePathError
from fieldscribe.models.enums import AssessmentStatus
from fieldscribe.schemas import TranscribeRequest
from fieldscribe.services import media_store
from fieldscribe.services.retry import RetryPolicy
from fieldscribe.services.stt import SpeechToText

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transcribe", tags=["transcribe"])


async def _run(
    assessment_id: str, audio_ref: str, *, db, stt, llm, embedder, retry, settings, content_type=None,
) -> JSONResponse:
    try:
        message = await run_assessment_pipeline(
            assessment_id, audio_ref,
            db=db, stt=stt, llm=llm, embedder=embedder, retry=retry, settings=settings,
            content_type=content_type,
        )
    except RecordNotFoundError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except StoragePathError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except StatusConflictError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    except Exception as e:
        return JSONResponse({"error": str(e) or type(e).__name__}, status_code=500)
    return JSONResponse({"message": message})


@router.post("")
async def transcribe(
    body: TranscribeRequest,
    db: AsyncSession = Depends(get_db),
    stt: SpeechToText = Depends(get_stt),
    llm: LLMProvider = Depends(get_llm),
    embedder: EmbeddingProvider | None = Depends(get_embedder),
    retry: RetryPolicy = Depends(get_retry),
    settings: Settings = Depends(get_settings_dep),
):
    """Run the assessment pipeline on audio at a URL or bucket path."""
    return await _run(
        body.assessment_id, body.audio_url,
        db=db, stt=stt, llm=llm, embedder=embedder, retry=retry, settings=settings,
    )


@router.post("/upload")
async def transcribe_upload(
    audioFile: UploadFile = File(...),
    assessmentId: str = Form(...),
    db: AsyncSession = Depends(get_db),
    stt: SpeechToText = Depends(get_stt),
    llm: LLMProvider = Depends(get_llm),
    embedder: EmbeddingProvider | None = Depends(get_embedder),
    retry: RetryPolicy = Depends(get_retry),
    settings: Settings = Depends(get_settings_dep),
):
    """Store an uploaded recording, then run the same pipeline on it."""
    assessment = await crud.get_assessment(db, assessmentId)
    if not assessment:
        return JSONResponse({"error": f"Assessment {assessmentId} not found"}, status_code=404)
    if assessment.status != AssessmentStatus.IN_PROGRESS.value:
        return JSONResponse(
            {"error": f"Assessment {assessmentId} is {assessment.status}, expected in_progress"},
            status_code=409,
        )
    data = await audioFile.read()
    if not data:
        return JSONResponse({"error": "Empty audio file"}, status_code=400)

    filename = PurePosixPath(audioFile.filename or "").name
    if filename in ("", ".", ".."):
        filename = "audio.webm"
    try:
        path = await media_store.save_object(data, f"audio/{assessment.id}/{filename}")
    except StoragePathError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    logger.info(f"Stored upload for assessment {assessment.id} at {path}")
    return await _run(
        assessment.id, path,
        db=db, stt=stt, llm=llm, embedder=embedder, retry=retry, settings=settings,
        content_type=audioFile.content_type,
    )
