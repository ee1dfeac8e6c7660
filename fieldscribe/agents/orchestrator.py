"""Agent orchestrator: STT -> legal retrieval -> structured extraction, and template structuring.

Status writes are compare-and-swap transitions, each followed by a
status_update broadcast:

    in_progress --(transcript saved)--> analyzing --(results saved)--> completed
    in_progress | analyzing --(any failure)--> failed
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.agents.llm_provider import LLMProvider, EmbeddingProvider
from fieldscribe.config import Settings
from fieldscribe.db import crud
from fieldscribe.errors import RecordNotFoundError, StatusConflictError, PipelineError
from fieldscribe.models.enums import AssessmentStatus, AiType, TemplateStatus
from fieldscribe.services import media_store
from fieldscribe.services.retry import RetryPolicy
from fieldscribe.services.stt import SpeechToText
from fieldscribe.services.ws_manager import ws_manager

logger = logging.getLogger(__name__)

NO_SPEECH_MESSAGE = "음성 내용이 없습니다."

_IN_PROGRESS = AssessmentStatus.IN_PROGRESS.value
_ANALYZING = AssessmentStatus.ANALYZING.value
_COMPLETED = AssessmentStatus.COMPLETED.value
_FAILED = AssessmentStatus.FAILED.value


async def _transition(
    db: AsyncSession, assessment_id: str, expected: list[str], new_status: str, **fields,
):
    await crud.transition_assessment(db, assessment_id, expected, new_status, **fields)
    await ws_manager.publish_status(
        assessment_id, "assessment", new_status, fields.get("error_message"),
    )


async def _mark_failed(db: AsyncSession, assessment_id: str, message: str, **fields):
    try:
        await _transition(
            db, assessment_id, [_IN_PROGRESS, _ANALYZING], _FAILED, error_message=message, **fields,
        )
    except StatusConflictError:
        logger.warning(f"Assessment {assessment_id} already terminal, not marking failed")
    except PipelineError as e:
        logger.error(f"Could not record failure for assessment {assessment_id}: {e}")


async def run_assessment_pipeline(
    assessment_id: str,
    audio_ref: str,
    *,
    db: AsyncSession,
    stt: SpeechToText,
    llm: LLMProvider,
    embedder: EmbeddingProvider | None,
    retry: RetryPolicy,
    settings: Settings,
    content_type: str | None = None,
) -> str:
    """Run one assessment end to end. Returns the user-facing message.

    No speech is a terminal outcome, not an error. Any other failure is
    recorded as status=failed with the error text and then re-raised. A
    status conflict (the assessment is not in_progress) is raised without
    touching the record.
    """
    from fieldscribe.agents.legal_retrieval.graph import run_legal_retrieval
    from fieldscribe.agents.extraction.graph import run_extraction

    assessment = await crud.get_assessment(db, assessment_id)
    if not assessment:
        raise RecordNotFoundError(f"Assessment {assessment_id} not found")
    if assessment.status != _IN_PROGRESS:
        raise StatusConflictError(
            f"Assessment {assessment_id} is {assessment.status}, expected {_IN_PROGRESS}"
        )

    template_id = assessment.template_id
    response_style = assessment.response_style

    try:
        template = await crud.get_template(db, template_id)
        ai_type = AiType.parse(template.ai_type if template else None)

        # Step 1: Speech to text
        transcript = await stt.transcribe_resource(audio_ref, content_type)
        if not transcript:
            logger.info(f"No speech detected for assessment {assessment_id}")
            await _transition(
                db, assessment_id, [_IN_PROGRESS], _FAILED,
                error_message=NO_SPEECH_MESSAGE, audio_url=audio_ref,
            )
            return NO_SPEECH_MESSAGE

        await _transition(
            db, assessment_id, [_IN_PROGRESS], _ANALYZING,
            transcript=transcript, audio_url=audio_ref,
        )

        # Step 2: Legal context (safety mode only)
        if ai_type is AiType.SAFETY:
            legal_context = await run_legal_retrieval(
                transcript, db=db, llm=llm, embedder=embedder, settings=settings,
            )
        else:
            legal_context = "해당 없음"

        # Step 3: Structured extraction
        tree = await crud.load_schema_tree(db, template_id)
        summary = await run_extraction(
            assessment_id, transcript, tree,
            ai_type=ai_type.value,
            response_style=response_style,
            legal_context=legal_context,
            db=db, llm=llm, retry=retry, settings=settings,
        )

        await _transition(db, assessment_id, [_ANALYZING], _COMPLETED, error_message=None)

    except StatusConflictError:
        raise
    except Exception as e:
        logger.exception(f"Assessment pipeline failed for {assessment_id}")
        await _mark_failed(db, assessment_id, str(e) or type(e).__name__, audio_url=audio_ref)
        raise

    return f"분석이 완료되었습니다. ({summary['sets']}건, 항목 {summary['inserted']}개 저장)"


async def run_template_pipeline(
    template_id: str,
    *,
    db: AsyncSession,
    llm: LLMProvider,
    retry: RetryPolicy,
    settings: Settings,
    image: bytes | None = None,
) -> dict:
    """Structure a template from its source image and record the outcome.

    On success the template becomes completed with the detected ai_type; on
    any failure it becomes failed with the error text, and the error is
    re-raised.
    """
    from fieldscribe.agents.template_structuring.graph import run_template_structuring

    template = await crud.get_template(db, template_id)
    if not template:
        raise RecordNotFoundError(f"Template {template_id} not found")
    source = template.original_file_url

    try:
        if image is None:
            image = await media_store.read_object(source)
        result = await run_template_structuring(
            template_id, image, db=db, llm=llm, retry=retry, settings=settings,
        )
    except Exception as e:
        logger.exception(f"Template structuring failed for {template_id}")
        message = str(e) or type(e).__name__
        template = await crud.get_template(db, template_id)
        await crud.update_template(db, template, status=TemplateStatus.FAILED.value, error_message=message)
        await ws_manager.publish_status(template_id, "template", TemplateStatus.FAILED.value, message)
        raise

    template = await crud.get_template(db, template_id)
    await crud.update_template(
        db, template,
        status=TemplateStatus.COMPLETED.value,
        ai_type=result["document_type"],
        error_message=None,
    )
    await ws_manager.publish_status(template_id, "template", TemplateStatus.COMPLETED.value)
    return {"document_type": result["document_type"], "items": result["items"]}
