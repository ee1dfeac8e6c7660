"""Template Structuring Agent — LangGraph StateGraph implementation.

Graph: analyze_image → parse
Vision model reads a photographed form; the nested column payload is
persisted top-down as TemplateItem rows.
"""

from __future__ import annotations

import logging

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.agents.llm_provider import LLMProvider
from fieldscribe.agents.state import TemplateStructuringState
from fieldscribe.agents.template_structuring.prompts import STRUCTURE_PROMPT
from fieldscribe.agents.template_structuring.tools import parse_structure
from fieldscribe.config import Settings
from fieldscribe.db import crud
from fieldscribe.errors import MalformedModelOutputError
from fieldscribe.services.json_decoder import decode_model_json
from fieldscribe.services.media_store import normalize_image
from fieldscribe.services.retry import RetryPolicy
from fieldscribe.services.schema_tree import SchemaTree

logger = logging.getLogger(__name__)


# ── Node functions ────────────────────────────────────────

async def analyze_image_node(state: TemplateStructuringState, config: RunnableConfig) -> dict:
    deps = config["configurable"]
    cfg = state["config"]
    llm: LLMProvider = deps["llm"]
    retry: RetryPolicy = deps["retry"]

    image, media_type = normalize_image(state["image"], cfg["max_image_side"])
    response = await retry.call(
        llm.analyze_image,
        image,
        media_type,
        STRUCTURE_PROMPT,
        model=cfg["model"],
        max_tokens=cfg["max_tokens"],
        temperature=0.0,
    )
    return {"raw_response": response, "media_type": media_type}


def parse_node(state: TemplateStructuringState) -> dict:
    document_type, columns = parse_structure(decode_model_json(state["raw_response"]))
    return {"document_type": document_type, "columns": columns}


# ── Build graph ───────────────────────────────────────────

def build_structuring_graph():
    graph = StateGraph(TemplateStructuringState)

    graph.add_node("analyze_image", analyze_image_node)
    graph.add_node("parse", parse_node)

    graph.set_entry_point("analyze_image")
    graph.add_edge("analyze_image", "parse")
    graph.add_edge("parse", END)

    return graph.compile()


# ── Public API ────────────────────────────────────────────

async def run_template_structuring(
    template_id: str,
    image: bytes,
    *,
    db: AsyncSession,
    llm: LLMProvider,
    retry: RetryPolicy,
    settings: Settings,
) -> dict:
    """Infer the template's item tree and document type from a form image.

    Replaces any items the template already has. Returns
    {"document_type", "items", "tree"}.
    """
    initial_state: TemplateStructuringState = {
        "template_id": template_id,
        "image": image,
        "media_type": "",
        "raw_response": "",
        "document_type": "",
        "columns": [],
        "config": {
            "model": settings.llm.vision_model,
            "max_tokens": settings.llm.max_tokens,
            "max_image_side": settings.storage.max_image_side,
        },
    }

    graph = build_structuring_graph()
    result = await graph.ainvoke(
        initial_state,
        config={"configurable": {"llm": llm, "retry": retry}},
    )

    tree = SchemaTree.from_columns(result["columns"])
    if not len(tree):
        raise MalformedModelOutputError("양식에서 유효한 헤더를 찾지 못했습니다.")

    count = await crud.insert_schema_tree(db, template_id, tree)
    logger.info(
        f"Template {template_id} structured: {count} items, "
        f"{len(tree.roots)} roots, type={result['document_type']}"
    )
    return {"document_type": result["document_type"], "items": count, "tree": tree}
