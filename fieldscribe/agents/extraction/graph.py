"""Structured Extraction Agent — LangGraph StateGraph implementation.

Graph: build_prompt → call_llm → decode → validate
"""

from __future__ import annotations

import logging

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.agents.llm_provider import LLMProvider
from fieldscribe.agents.state import ExtractionState
from fieldscribe.agents.extraction.prompts import build_system_prompt, build_extraction_prompt
from fieldscribe.agents.extraction.tools import (
    truncate_transcript, schema_leaves, render_schema, normalize_payload, validate_rows,
)
from fieldscribe.config import Settings
from fieldscribe.db import crud
from fieldscribe.models.enums import AiType, ResponseStyle
from fieldscribe.services.json_decoder import decode_model_json
from fieldscribe.services.retry import RetryPolicy
from fieldscribe.services.schema_tree import SchemaTree

logger = logging.getLogger(__name__)


# ── Node functions ────────────────────────────────────────

def build_prompt_node(state: ExtractionState) -> dict:
    cfg = state["config"]
    ai_type = AiType.parse(state["ai_type"])
    style = ResponseStyle.parse(state["response_style"])
    transcript = truncate_transcript(state["transcript"], cfg["transcript_max_chars"])
    return {
        "system_prompt": build_system_prompt(ai_type),
        "prompt": build_extraction_prompt(
            transcript=transcript,
            schema_text=render_schema(state["schema"]),
            legal_context=state["legal_context"],
            ai_type=ai_type,
            response_style=style,
        ),
    }


async def call_llm_node(state: ExtractionState, config: RunnableConfig) -> dict:
    """Deterministic completion, retried only on backend overload."""
    deps = config["configurable"]
    cfg = state["config"]
    llm: LLMProvider = deps["llm"]
    retry: RetryPolicy = deps["retry"]
    response = await retry.call(
        llm.chat,
        state["prompt"],
        system=state["system_prompt"],
        model=cfg["model"],
        max_tokens=cfg["max_tokens"],
        temperature=cfg["temperature"],
    )
    return {"raw_response": response}


def decode_node(state: ExtractionState) -> dict:
    payload = decode_model_json(state["raw_response"])
    title, sets = normalize_payload(payload)
    return {"title": title, "sets": sets}


def validate_node(state: ExtractionState) -> dict:
    leaf_ids = {leaf["id"] for leaf in state["schema"]}
    rows, dropped = validate_rows(state["sets"], leaf_ids, state["config"]["min_item_id_length"])
    if dropped:
        logger.warning(f"Dropped {dropped} result rows with invalid template_item_id")
    return {"rows": rows, "dropped": dropped}


# ── Build graph ───────────────────────────────────────────

def build_extraction_graph():
    graph = StateGraph(ExtractionState)

    graph.add_node("build_prompt", build_prompt_node)
    graph.add_node("call_llm", call_llm_node)
    graph.add_node("decode", decode_node)
    graph.add_node("validate", validate_node)

    graph.set_entry_point("build_prompt")
    graph.add_edge("build_prompt", "call_llm")
    graph.add_edge("call_llm", "decode")
    graph.add_edge("decode", "validate")
    graph.add_edge("validate", END)

    return graph.compile()


# ── Public API ────────────────────────────────────────────

async def run_extraction(
    assessment_id: str,
    transcript: str,
    tree: SchemaTree,
    *,
    ai_type: str,
    response_style: str,
    legal_context: str,
    db: AsyncSession,
    llm: LLMProvider,
    retry: RetryPolicy,
    settings: Settings,
) -> dict:
    """Extract answers for one assessment and persist them.

    The leaf snapshot is taken from `tree` before the model is called; only
    rows referencing those leaves are inserted.
    """
    initial_state: ExtractionState = {
        "assessment_id": assessment_id,
        "transcript": transcript,
        "ai_type": ai_type,
        "response_style": response_style,
        "schema": schema_leaves(tree),
        "legal_context": legal_context,
        "system_prompt": "",
        "prompt": "",
        "raw_response": "",
        "title": None,
        "sets": [],
        "rows": [],
        "dropped": 0,
        "config": {
            "model": settings.llm.extraction_model,
            "max_tokens": settings.llm.max_tokens,
            "temperature": settings.llm.temperature,
            "transcript_max_chars": settings.extraction.transcript_max_chars,
            "min_item_id_length": settings.extraction.min_item_id_length,
        },
    }

    graph = build_extraction_graph()
    result = await graph.ainvoke(
        initial_state,
        config={"configurable": {"llm": llm, "retry": retry}},
    )

    if result["title"]:
        assessment = await crud.get_assessment(db, assessment_id)
        if assessment is not None:
            await crud.update_assessment(db, assessment, title=result["title"][:255])

    inserted = await crud.bulk_insert_results(db, assessment_id, result["rows"])
    logger.info(
        f"Extraction complete for {assessment_id}: {len(result['sets'])} sets, "
        f"{inserted} answers saved, {result['dropped']} dropped"
    )

    return {
        "title": result["title"],
        "sets": len(result["sets"]),
        "inserted": inserted,
        "dropped": result["dropped"],
    }
