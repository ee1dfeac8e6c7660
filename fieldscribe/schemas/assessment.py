from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from fieldscribe.models.enums import ResponseStyle


class TranscribeRequest(BaseModel):
    """Pipeline trigger body. Accepts the camelCase keys callers send."""

    audio_url: str = Field(alias="audioUrl", min_length=1)
    assessment_id: str = Field(alias="assessmentId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class TranscribeResponse(BaseModel):
    message: str


class AssessmentCreate(BaseModel):
    company_id: str
    template_id: str
    response_style: ResponseStyle = ResponseStyle.EXPERT
    audio_url: str = ""


class AssessmentRead(BaseModel):
    id: str
    company_id: str
    template_id: str
    status: str
    transcript: str | None = None
    error_message: str | None = None
    title: str | None = None
    response_style: str = "expert"
    audio_url: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class ResultCell(BaseModel):
    result_value: str | None = None
    legal_basis: str | None = None
    solution: str | None = None


class ReportColumn(BaseModel):
    template_item_id: str
    header: str
    default_value: str | None = None


class ReportRead(BaseModel):
    assessment_id: str
    title: str | None = None
    status: str
    columns: list[ReportColumn] = []
    rows: list[dict[str, ResultCell | None]] = []
