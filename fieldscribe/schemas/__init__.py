"""Pydantic request/response schemas."""

from fieldscribe.schemas.assessment import (
    TranscribeRequest, TranscribeResponse, AssessmentCreate, AssessmentRead,
    ResultCell, ReportColumn, ReportRead,
)
from fieldscribe.schemas.template import (
    TemplateItemNode, TemplateRead, TemplateUpdate,
    ProcessTemplateRecord, ProcessTemplateRequest,
)
from fieldscribe.schemas.ws_messages import StatusMessage

__all__ = [
    "TranscribeRequest", "TranscribeResponse", "AssessmentCreate", "AssessmentRead",
    "ResultCell", "ReportColumn", "ReportRead",
    "TemplateItemNode", "TemplateRead", "TemplateUpdate",
    "ProcessTemplateRecord", "ProcessTemplateRequest",
    "StatusMessage",
]
