from __future__ import annotations

from typing import Optional

from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldscribe.models.base import Base, ULIDMixin


class AssessmentTemplate(Base, ULIDMixin):
    __tablename__ = "assessment_templates"

    company_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("companies.id"), nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255))
    ai_type: Mapped[str] = mapped_column(String(20), default="safety")  # safety | meeting | inspection
    status: Mapped[str] = mapped_column(String(20), default="processing")  # processing | completed | failed
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_file_url: Mapped[str] = mapped_column(String(512), default="")

    company = relationship("Company", back_populates="templates")
    items = relationship(
        "TemplateItem", back_populates="template",
        lazy="selectin", cascade="all, delete-orphan",
        order_by="TemplateItem.sort_order",
    )


class TemplateItem(Base, ULIDMixin):
    __tablename__ = "template_items"

    template_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("assessment_templates.id", ondelete="CASCADE"),
    )
    header_name: Mapped[str] = mapped_column(String(255))
    default_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("template_items.id", ondelete="CASCADE"), nullable=True,
    )

    template = relationship("AssessmentTemplate", back_populates="items")
