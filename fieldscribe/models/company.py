from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldscribe.models.base import Base, ULIDMixin


class Company(Base, ULIDMixin):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255))

    templates = relationship("AssessmentTemplate", back_populates="company", lazy="selectin")
    assessments = relationship("Assessment", back_populates="company")
