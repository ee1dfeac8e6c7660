"""SQLAlchemy ORM models."""

from fieldscribe.models.base import Base
from fieldscribe.models.enums import AssessmentStatus, TemplateStatus, AiType, ResponseStyle
from fieldscribe.models.company import Company
from fieldscribe.models.template import AssessmentTemplate, TemplateItem
from fieldscribe.models.assessment import Assessment, AssessmentResult
from fieldscribe.models.legal_document import LegalDocument

__all__ = [
    "Base",
    "AssessmentStatus", "TemplateStatus", "AiType", "ResponseStyle",
    "Company", "AssessmentTemplate", "TemplateItem",
    "Assessment", "AssessmentResult", "LegalDocument",
]
