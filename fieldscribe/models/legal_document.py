from __future__ import annotations

from sqlalchemy import String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from fieldscribe.models.base import Base, ULIDMixin


class LegalDocument(Base, ULIDMixin):
    """One retrievable regulation article (content + its embedding vector)."""

    __tablename__ = "legal_documents"

    title: Mapped[str] = mapped_column(String(255), default="")
    content: Mapped[str] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String(255), default="")
    embedding: Mapped[list | None] = mapped_column(JSON(none_as_null=True), nullable=True)
