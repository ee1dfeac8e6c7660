"""CRUD operations for companies, templates, assessments and the legal corpus."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.errors import PersistenceError, StatusConflictError
from fieldscribe.models import (
    Company, AssessmentTemplate, TemplateItem,
    Assessment, AssessmentResult, LegalDocument,
)
from fieldscribe.services.schema_tree import SchemaTree


# ── Company ──────────────────────────────────────────────

async def create_company(db: AsyncSession, name: str) -> Company:
    company = Company(name=name)
    db.add(company)
    await db.commit()
    await db.refresh(company)
    return company


async def get_company(db: AsyncSession, company_id: str) -> Company | None:
    return await db.get(Company, company_id)


# ── AssessmentTemplate ───────────────────────────────────

async def create_template(
    db: AsyncSession, name: str, company_id: str | None = None,
    original_file_url: str = "", ai_type: str = "safety", status: str = "processing",
) -> AssessmentTemplate:
    tpl = AssessmentTemplate(
        name=name, company_id=company_id, original_file_url=original_file_url,
        ai_type=ai_type, status=status,
    )
    db.add(tpl)
    await db.commit()
    await db.refresh(tpl)
    return tpl


async def get_template(db: AsyncSession, template_id: str) -> AssessmentTemplate | None:
    return await db.get(AssessmentTemplate, template_id)


async def update_template(db: AsyncSession, tpl: AssessmentTemplate, **kwargs) -> AssessmentTemplate:
    for k, v in kwargs.items():
        setattr(tpl, k, v)
    await db.commit()
    await db.refresh(tpl)
    return tpl


async def list_template_items(db: AsyncSession, template_id: str) -> list[TemplateItem]:
    result = await db.execute(
        select(TemplateItem)
        .where(TemplateItem.template_id == template_id)
        .order_by(TemplateItem.sort_order)
    )
    return list(result.scalars().all())


async def load_schema_tree(db: AsyncSession, template_id: str) -> SchemaTree:
    return SchemaTree.from_items(await list_template_items(db, template_id))


async def insert_schema_tree(db: AsyncSession, template_id: str, tree: SchemaTree) -> int:
    """Replace a template's items with `tree`, inserted top-down in one transaction.

    Each node is flushed before its children so its generated id can be
    used as their parent_id. Returns the number of items inserted.
    """
    try:
        await db.execute(delete(TemplateItem).where(TemplateItem.template_id == template_id))
        for idx in tree.walk():
            node = tree.nodes[idx]
            parent_id = tree.nodes[node.parent].item_id if node.parent is not None else None
            item = TemplateItem(
                template_id=template_id,
                header_name=node.header_name,
                default_value=node.default_value,
                sort_order=node.sort_order,
                parent_id=parent_id,
            )
            db.add(item)
            await db.flush()
            node.item_id = item.id
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"템플릿 항목 저장 실패: {e}", original_error=e) from e
    return len(tree)


# ── Assessment ───────────────────────────────────────────

async def create_assessment(
    db: AsyncSession, company_id: str, template_id: str,
    response_style: str = "expert", audio_url: str = "",
) -> Assessment:
    assessment = Assessment(
        company_id=company_id, template_id=template_id,
        response_style=response_style, audio_url=audio_url,
        status="in_progress",
    )
    db.add(assessment)
    await db.commit()
    await db.refresh(assessment)
    return assessment


async def get_assessment(db: AsyncSession, assessment_id: str) -> Assessment | None:
    return await db.get(Assessment, assessment_id)


async def update_assessment(db: AsyncSession, assessment: Assessment, **kwargs) -> Assessment:
    for k, v in kwargs.items():
        setattr(assessment, k, v)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"평가 정보 저장 실패: {e}", original_error=e) from e
    await db.refresh(assessment)
    return assessment


async def transition_assessment(
    db: AsyncSession, assessment_id: str,
    expected: Iterable[str], new_status: str, **fields,
) -> None:
    """Compare-and-swap status write.

    Moves the assessment to new_status (plus any extra column values) only
    if its current status is one of `expected`; otherwise raises
    StatusConflictError and leaves the row untouched.
    """
    expected = list(expected)
    try:
        result = await db.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id, Assessment.status.in_(expected))
            .values(status=new_status, **fields)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"상태 저장 실패: {e}", original_error=e) from e

    if result.rowcount == 0:
        raise StatusConflictError(
            f"Assessment {assessment_id} is not in {expected}; refusing transition to {new_status}"
        )

    # Bring any instance already in this session up to date with the write.
    await db.get(Assessment, assessment_id, populate_existing=True)


# ── AssessmentResult ─────────────────────────────────────

async def bulk_insert_results(db: AsyncSession, assessment_id: str, rows: list[dict]) -> int:
    """Insert all result rows in one commit. Rows are dicts with template_item_id,
    result_value, legal_basis, solution and set_index."""
    if not rows:
        return 0
    try:
        db.add_all([
            AssessmentResult(
                assessment_id=assessment_id,
                template_item_id=row["template_item_id"],
                result_value=row.get("result_value"),
                legal_basis=row.get("legal_basis"),
                solution=row.get("solution"),
                set_index=row.get("set_index", 0),
            )
            for row in rows
        ])
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"결과 저장 실패: {e}", original_error=e) from e
    return len(rows)


async def list_results(db: AsyncSession, assessment_id: str) -> list[AssessmentResult]:
    result = await db.execute(
        select(AssessmentResult)
        .where(AssessmentResult.assessment_id == assessment_id)
        .order_by(AssessmentResult.set_index, AssessmentResult.created_at)
    )
    return list(result.scalars().all())


async def count_results(db: AsyncSession, assessment_id: str) -> int:
    return len(await list_results(db, assessment_id))


# ── LegalDocument ────────────────────────────────────────

async def create_legal_document(
    db: AsyncSession, content: str, title: str = "", source: str = "",
    embedding: list[float] | None = None,
) -> LegalDocument:
    doc = LegalDocument(content=content, title=title, source=source, embedding=embedding)
    db.add(doc)
    await db.commit()
    await db.refresh(doc)
    return doc


async def list_embedded_legal_documents(db: AsyncSession) -> list[LegalDocument]:
    result = await db.execute(
        select(LegalDocument).where(LegalDocument.embedding.is_not(None))
    )
    return list(result.scalars().all())


async def search_legal_documents_by_terms(
    db: AsyncSession, terms: list[str], limit: int = 5,
) -> list[LegalDocument]:
    """Exact substring match on content for any of the given terms."""
    if not terms:
        return []
    result = await db.execute(
        select(LegalDocument)
        .where(or_(*[LegalDocument.content.contains(t) for t in terms]))
        .limit(limit)
    )
    return list(result.scalars().all())
