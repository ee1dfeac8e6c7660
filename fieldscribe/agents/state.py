"""LangGraph TypedDict states for the three agents.

Collaborators (LLM, embedder, DB session, retry policy) are not part of the
state; they travel in the invocation config under "configurable".
"""

from __future__ import annotations

from typing import TypedDict, Any


class LegalDocumentHit(TypedDict):
    id: str
    title: str
    content: str
    similarity: float  # 0.0 for keyword-boosted matches
    origin: str  # vector | keyword


class RetrievalState(TypedDict):
    transcript: str
    keywords: list[str]
    vector_hits: list[LegalDocumentHit]
    keyword_hits: list[LegalDocumentHit]
    documents: list[LegalDocumentHit]
    context: str
    config: dict


class ExtractionState(TypedDict):
    assessment_id: str
    transcript: str
    ai_type: str  # safety | meeting | inspection
    response_style: str  # expert | general | summary
    schema: list[dict]  # [{id, header, default_value}] leaves only
    legal_context: str
    system_prompt: str
    prompt: str
    raw_response: str
    title: str | None
    sets: list[dict]  # [{results: [{template_item_id, result_value, legal_basis, solution}]}]
    rows: list[dict]  # validated, flattened in emission order
    dropped: int
    config: dict


class TemplateStructuringState(TypedDict):
    template_id: str
    image: bytes
    media_type: str
    raw_response: str
    document_type: str  # safety | meeting | inspection
    columns: list[dict[str, Any]]
    config: dict
