"""Template structuring tools: payload validation and document-type resolution."""

from __future__ import annotations

import logging
from typing import Any

from fieldscribe.errors import MalformedModelOutputError
from fieldscribe.models.enums import AiType

logger = logging.getLogger(__name__)


def parse_structure(payload: Any) -> tuple[str, list[dict]]:
    """Split the vision reply into (document_type, columns).

    A bare list is taken as the columns themselves. An empty column list is an
    error: a template without items cannot receive answers.
    """
    if isinstance(payload, list):
        document_type, columns = None, payload
    elif isinstance(payload, dict):
        document_type = payload.get("document_type")
        columns = payload.get("columns")
    else:
        raise MalformedModelOutputError("양식 분석 결과 형식이 잘못되었습니다.")

    if not isinstance(columns, list):
        raise MalformedModelOutputError("양식 분석 결과에 columns 항목이 없습니다.")
    columns = [c for c in columns if isinstance(c, dict)]
    if not columns:
        raise MalformedModelOutputError("양식에서 항목을 찾지 못했습니다.")

    return resolve_document_type(document_type), columns


def resolve_document_type(value: Any) -> str:
    ai_type = AiType.parse(str(value) if value is not None else None)
    if value and ai_type.value != str(value).strip().lower():
        logger.warning(f"Unknown document type {value!r}, defaulting to {ai_type.value}")
    return ai_type.value
