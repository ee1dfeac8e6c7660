"""Seed the database with a demo company, a risk-assessment template and a few legal articles."""

import asyncio

from fieldscribe.db.engine import async_session_factory, create_all
from fieldscribe.db import crud
from fieldscribe.services.schema_tree import SchemaTree

DEMO_COMPANY = "데모 제조(주)"

LEGAL_ARTICLES = [
    {
        "title": "산업안전보건기준에 관한 규칙 제656조",
        "source": "산업안전보건기준에 관한 규칙",
        "content": "제656조(근골격계부담작업 유해요인조사) 사업주는 근로자가 근골격계부담작업을 하는 경우에 "
                   "3년마다 유해요인조사를 하여야 한다.",
    },
    {
        "title": "산업안전보건기준에 관한 규칙 제663조",
        "source": "산업안전보건기준에 관한 규칙",
        "content": "제663조(중량물의 제한) 사업주는 근로자가 인력으로 들어올리는 작업을 하는 경우에 "
                   "과도한 무게로 인하여 근로자의 목·허리 등 근골격계에 무리한 부담을 주지 않도록 최대한 노력하여야 한다.",
    },
    {
        "title": "산업안전보건기준에 관한 규칙 제3조",
        "source": "산업안전보건기준에 관한 규칙",
        "content": "제3조(전도의 방지) 사업주는 근로자가 작업장에서 넘어지거나 미끄러지는 등의 위험이 없도록 "
                   "작업장 바닥 등을 안전하고 청결한 상태로 유지하여야 한다.",
    },
    {
        "title": "산업안전보건기준에 관한 규칙 제301조",
        "source": "산업안전보건기준에 관한 규칙",
        "content": "제301조(전기 기계·기구 등의 충전부 방호) 사업주는 근로자가 감전 위험이 있는 충전부에 "
                   "접촉하지 않도록 폐쇄형 외함이 있는 구조로 하는 등의 방호 조치를 하여야 한다.",
    },
]


async def seed():
    await create_all()

    async with async_session_factory() as db:
        company = await crud.create_company(db, DEMO_COMPANY)
        print(f"Created company: {company.name} (id: {company.id})")

        tpl = await crud.create_template(
            db, "위험성평가표", company_id=company.id, ai_type="safety", status="completed",
        )
        tree = SchemaTree()
        tree.add("작업공정")
        tree.add("분류")
        tree.add("원인")
        risk = tree.add("위험성")
        tree.add("빈도", "1~5", parent=risk)
        tree.add("강도", "1~4", parent=risk)
        tree.add("개선대책")
        count = await crud.insert_schema_tree(db, tpl.id, tree)
        print(f"Created template: {tpl.name} (id: {tpl.id}, {count} items)")

        assessment = await crud.create_assessment(db, company.id, tpl.id)
        print(f"Created assessment: {assessment.id} ({assessment.status})")

        for article in LEGAL_ARTICLES:
            await crud.create_legal_document(db, **article)
        print(f"Stored {len(LEGAL_ARTICLES)} legal articles (no embeddings; run `fieldscribe ingest-legal` to embed)")


if __name__ == "__main__":
    asyncio.run(seed())
