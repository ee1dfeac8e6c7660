import pytest

from fieldscribe.db import crud
from fieldscribe.errors import StatusConflictError
from fieldscribe.services.schema_tree import SchemaTree


async def _seed(db):
    company = await crud.create_company(db, "테스트 건설")
    tpl = await crud.create_template(db, "위험성평가표", company_id=company.id, status="completed")
    return company, tpl


async def test_create_and_get_assessment(db):
    company, tpl = await _seed(db)
    assessment = await crud.create_assessment(db, company.id, tpl.id, response_style="summary")
    assert assessment.id is not None
    assert assessment.status == "in_progress"

    fetched = await crud.get_assessment(db, assessment.id)
    assert fetched.response_style == "summary"
    assert fetched.transcript is None


async def test_insert_schema_tree_assigns_parent_ids_top_down(db):
    _, tpl = await _seed(db)
    tree = SchemaTree()
    risk = tree.add("위험성")
    tree.add("빈도", parent=risk)
    tree.add("강도", parent=risk)
    tree.add("개선대책")

    assert await crud.insert_schema_tree(db, tpl.id, tree) == 4

    items = await crud.list_template_items(db, tpl.id)
    by_header = {i.header_name: i for i in items}
    assert by_header["위험성"].parent_id is None
    assert by_header["빈도"].parent_id == by_header["위험성"].id
    assert by_header["강도"].parent_id == by_header["위험성"].id
    assert tree.nodes[risk].item_id == by_header["위험성"].id


async def test_insert_schema_tree_replaces_existing_items(db):
    _, tpl = await _seed(db)
    first = SchemaTree()
    first.add("옛 항목")
    await crud.insert_schema_tree(db, tpl.id, first)

    second = SchemaTree()
    second.add("분류")
    second.add("원인")
    await crud.insert_schema_tree(db, tpl.id, second)

    loaded = await crud.load_schema_tree(db, tpl.id)
    assert [loaded.nodes[i].header_name for i in loaded.roots] == ["분류", "원인"]


async def test_transition_moves_expected_status(db):
    company, tpl = await _seed(db)
    a = await crud.create_assessment(db, company.id, tpl.id)

    await crud.transition_assessment(db, a.id, ["in_progress"], "analyzing", transcript="안녕하세요")

    fetched = await crud.get_assessment(db, a.id)
    assert fetched.status == "analyzing"
    assert fetched.transcript == "안녕하세요"


async def test_transition_refuses_unexpected_status(db):
    company, tpl = await _seed(db)
    a = await crud.create_assessment(db, company.id, tpl.id)
    await crud.transition_assessment(db, a.id, ["in_progress"], "failed", error_message="x")

    with pytest.raises(StatusConflictError):
        await crud.transition_assessment(db, a.id, ["in_progress"], "analyzing")

    fetched = await crud.get_assessment(db, a.id)
    assert fetched.status == "failed"
    assert fetched.error_message == "x"


async def test_bulk_insert_and_list_results_in_set_order(db):
    company, tpl = await _seed(db)
    tree = SchemaTree()
    tree.add("분류")
    await crud.insert_schema_tree(db, tpl.id, tree)
    item_id = tree.nodes[0].item_id
    a = await crud.create_assessment(db, company.id, tpl.id)

    inserted = await crud.bulk_insert_results(db, a.id, [
        {"template_item_id": item_id, "result_value": "둘째", "set_index": 1},
        {"template_item_id": item_id, "result_value": "첫째", "set_index": 0},
    ])
    assert inserted == 2
    assert [r.result_value for r in await crud.list_results(db, a.id)] == ["첫째", "둘째"]
    assert await crud.count_results(db, a.id) == 2


async def test_bulk_insert_nothing(db):
    company, tpl = await _seed(db)
    a = await crud.create_assessment(db, company.id, tpl.id)
    assert await crud.bulk_insert_results(db, a.id, []) == 0


async def test_legal_document_search(db):
    await crud.create_legal_document(db, "근골격계부담작업 유해요인조사", title="제656조", embedding=[1.0, 0.0])
    await crud.create_legal_document(db, "감전 방지 조치", title="제301조")

    embedded = await crud.list_embedded_legal_documents(db)
    assert [d.title for d in embedded] == ["제656조"]

    found = await crud.search_legal_documents_by_terms(db, ["감전"], limit=5)
    assert [d.title for d in found] == ["제301조"]
    assert await crud.search_legal_documents_by_terms(db, [], limit=5) == []
