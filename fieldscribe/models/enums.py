"""Enumerations shared by models, schemas and agents."""

from __future__ import annotations

from enum import Enum


class AssessmentStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AssessmentStatus.COMPLETED, AssessmentStatus.FAILED)


class TemplateStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AiType(str, Enum):
    SAFETY = "safety"
    MEETING = "meeting"
    INSPECTION = "inspection"

    @classmethod
    def parse(cls, value: str | None) -> "AiType":
        """Lenient parse: unknown or empty values fall back to SAFETY."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.SAFETY


class ResponseStyle(str, Enum):
    EXPERT = "expert"
    GENERAL = "general"
    SUMMARY = "summary"

    @classmethod
    def parse(cls, value: str | None) -> "ResponseStyle":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.EXPERT
