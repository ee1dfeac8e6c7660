"""Tests for the Template Structuring Agent."""

import io
import json

import pytest
from PIL import Image

from fieldscribe.agents.template_structuring.graph import run_template_structuring, build_structuring_graph
from fieldscribe.agents.template_structuring.tools import parse_structure, resolve_document_type
from fieldscribe.db import crud
from fieldscribe.errors import MalformedModelOutputError

REPLY = json.dumps({
    "document_type": "safety",
    "columns": [
        {"header_name": "작업공정", "default_value": None, "children": []},
        {"header_name": "위험성", "default_value": None, "children": [
            {"header_name": "빈도", "default_value": "1~5", "children": []},
            {"header_name": "강도", "default_value": "1~4", "children": []},
        ]},
        {"header_name": "개선대책", "default_value": None, "children": []},
    ],
}, ensure_ascii=False)


def _form_image():
    buf = io.BytesIO()
    Image.new("RGB", (640, 480), "white").save(buf, "JPEG")
    return buf.getvalue()


async def _template(db):
    return await crud.create_template(db, "위험성평가표", original_file_url="templates/01A/form.jpg")


# ── tools ────────────────────────────────────────────────────────────

def test_parse_structure_object():
    doc_type, columns = parse_structure(json.loads(REPLY))
    assert doc_type == "safety"
    assert [c["header_name"] for c in columns] == ["작업공정", "위험성", "개선대책"]


def test_parse_structure_bare_list_defaults_to_safety():
    doc_type, columns = parse_structure([{"header_name": "안건"}])
    assert doc_type == "safety"
    assert columns == [{"header_name": "안건"}]


@pytest.mark.parametrize("payload", [{"document_type": "meeting"}, {"columns": []}, {"columns": "x"}, "text"])
def test_parse_structure_rejects_missing_columns(payload):
    with pytest.raises(MalformedModelOutputError):
        parse_structure(payload)


@pytest.mark.parametrize("raw,expected", [
    ("meeting", "meeting"), ("INSPECTION", "inspection"), ("finance", "safety"), (None, "safety"), (3, "safety"),
])
def test_resolve_document_type(raw, expected):
    assert resolve_document_type(raw) == expected


def test_build_structuring_graph_returns_callable():
    assert build_structuring_graph() is not None


# ── graph runs ───────────────────────────────────────────────────────

async def test_merged_header_becomes_parent_with_children(db, settings, make_llm, retry):
    tpl = await _template(db)
    llm = make_llm(image_responses=[f"양식 분석 결과:\n```json\n{REPLY}\n```"])

    result = await run_template_structuring(tpl.id, _form_image(), db=db, llm=llm, retry=retry, settings=settings)

    assert result["document_type"] == "safety"
    assert result["items"] == 5
    items = await crud.list_template_items(db, tpl.id)
    roots = [i for i in items if i.header_name == "위험성"]
    assert len(roots) == 1
    root = roots[0]
    assert root.parent_id is None
    children = sorted((i for i in items if i.parent_id == root.id), key=lambda i: i.sort_order)
    assert [(c.header_name, c.default_value, c.sort_order) for c in children] == [
        ("빈도", "1~5", 0), ("강도", "1~4", 1),
    ]


async def test_restructuring_is_idempotent(db, settings, make_llm, retry):
    tpl = await _template(db)
    llm = make_llm(image_responses=[REPLY, REPLY])

    await run_template_structuring(tpl.id, _form_image(), db=db, llm=llm, retry=retry, settings=settings)
    first = (await crud.load_schema_tree(db, tpl.id)).shape()
    await run_template_structuring(tpl.id, _form_image(), db=db, llm=llm, retry=retry, settings=settings)
    second = (await crud.load_schema_tree(db, tpl.id)).shape()

    assert first == second
    assert len(await crud.list_template_items(db, tpl.id)) == 5


async def test_vision_call_gets_normalized_image(db, settings, make_llm, retry):
    tpl = await _template(db)
    llm = make_llm(image_responses=[REPLY])
    await run_template_structuring(tpl.id, _form_image(), db=db, llm=llm, retry=retry, settings=settings)

    call = llm.image_calls[0]
    assert call["media_type"] == "image/jpeg"
    assert call["model"] == settings.llm.vision_model


async def test_document_type_is_detected(db, settings, make_llm, retry):
    tpl = await _template(db)
    reply = json.dumps({"document_type": "meeting", "columns": [{"header_name": "안건"}, {"header_name": "결정사항"}]})
    result = await run_template_structuring(
        tpl.id, _form_image(), db=db, llm=make_llm(image_responses=[reply]), retry=retry, settings=settings,
    )
    assert result["document_type"] == "meeting"


async def test_vision_overload_is_retried(db, settings, make_llm, retry, overloaded, sleeps):
    tpl = await _template(db)
    llm = make_llm(image_responses=[overloaded(529), REPLY])
    result = await run_template_structuring(tpl.id, _form_image(), db=db, llm=llm, retry=retry, settings=settings)
    assert result["items"] == 5
    assert len(llm.image_calls) == 2
    assert sleeps == [2.0]


async def test_only_blank_headers_is_an_error(db, settings, make_llm, retry):
    tpl = await _template(db)
    reply = json.dumps({"columns": [{"header_name": " "}, {"header_name": ""}]})
    with pytest.raises(MalformedModelOutputError):
        await run_template_structuring(
            tpl.id, _form_image(), db=db, llm=make_llm(image_responses=[reply]), retry=retry, settings=settings,
        )
    assert await crud.list_template_items(db, tpl.id) == []
