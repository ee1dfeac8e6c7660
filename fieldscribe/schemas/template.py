from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from fieldscribe.models.enums import AiType


class TemplateItemNode(BaseModel):
    id: str | None = None
    header_name: str
    default_value: str | None = None
    sort_order: int = 0
    children: list["TemplateItemNode"] = []


class TemplateRead(BaseModel):
    id: str
    company_id: str | None = None
    name: str
    ai_type: str
    status: str
    error_message: str | None = None
    original_file_url: str = ""
    created_at: datetime
    items: list[TemplateItemNode] = []


class TemplateUpdate(BaseModel):
    name: str | None = None
    ai_type: AiType | None = None


class ProcessTemplateRecord(BaseModel):
    id: str
    original_file_url: str = ""


class ProcessTemplateRequest(BaseModel):
    """Storage/database webhook body: {"record": {...}}."""

    record: ProcessTemplateRecord
