from __future__ import annotations
from typing import Any
from pydantic import BaseModel


class StatusMessage(BaseModel):
    event: str  # status_update
    assessment_id: str = ""
    template_id: str = ""
    data: dict[str, Any] = {}
