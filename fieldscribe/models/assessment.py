from __future__ import annotations

from typing import Optional

from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldscribe.models.base import Base, ULIDMixin


class Assessment(Base, ULIDMixin):
    __tablename__ = "assessments"

    company_id: Mapped[str] = mapped_column(String(26), ForeignKey("companies.id"))
    template_id: Mapped[str] = mapped_column(String(26), ForeignKey("assessment_templates.id"))
    status: Mapped[str] = mapped_column(String(20), default="in_progress")  # in_progress | analyzing | completed | failed
    transcript: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    response_style: Mapped[str] = mapped_column(String(20), default="expert")  # expert | general | summary
    audio_url: Mapped[str] = mapped_column(String(512), default="")

    company = relationship("Company", back_populates="assessments")
    template = relationship("AssessmentTemplate", lazy="selectin")
    results = relationship(
        "AssessmentResult", back_populates="assessment",
        lazy="selectin", cascade="all, delete-orphan",
    )


class AssessmentResult(Base, ULIDMixin):
    __tablename__ = "assessment_results"

    assessment_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("assessments.id", ondelete="CASCADE"),
    )
    template_item_id: Mapped[str] = mapped_column(String(26), ForeignKey("template_items.id"))
    result_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    legal_basis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    solution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    set_index: Mapped[int] = mapped_column(Integer, default=0)  # which answer set (row) the value belongs to

    assessment = relationship("Assessment", back_populates="results")
