"""Legal Retrieval Agent — LangGraph StateGraph implementation.

Graph: translate_keywords → (vector_search → keyword_search → merge_filter | ∅) → format_context

Retrieval is an enhancement: any failure degrades to the no-context
sentinel instead of failing the assessment.
"""

from __future__ import annotations

import logging
from typing import Literal

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END
from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.agents.llm_provider import LLMProvider, EmbeddingProvider
from fieldscribe.agents.state import RetrievalState
from fieldscribe.agents.legal_retrieval.prompts import KEYWORD_TRANSLATION_PROMPT, NO_CONTEXT_SENTINEL
from fieldscribe.agents.legal_retrieval.tools import (
    parse_keywords, rank_by_similarity, to_hit, critical_terms_in,
    merge_hits, filter_off_topic, format_context,
)
from fieldscribe.config import Settings
from fieldscribe.db import crud

logger = logging.getLogger(__name__)

_KEYWORD_INPUT_CHARS = 4000


# ── Node functions ────────────────────────────────────────

async def translate_keywords_node(state: RetrievalState, config: RunnableConfig) -> dict:
    """Fast LLM call: informal narration → canonical legal search keywords."""
    deps = config["configurable"]
    cfg = state["config"]
    prompt = KEYWORD_TRANSLATION_PROMPT.format(
        transcript=state["transcript"][:_KEYWORD_INPUT_CHARS],
        off_topic_terms=", ".join(cfg["off_topic_terms"]),
    )
    response = await deps["llm"].chat(
        prompt, model=cfg["fast_model"], max_tokens=100, temperature=0.0,
    )
    keywords = parse_keywords(response)
    logger.info(f"RAG keywords: {keywords}")
    return {"keywords": keywords}


def route_after_keywords(state: RetrievalState) -> Literal["vector_search", "format_context"]:
    return "vector_search" if state["keywords"] else "format_context"


async def vector_search_node(state: RetrievalState, config: RunnableConfig) -> dict:
    deps = config["configurable"]
    cfg = state["config"]
    embedder: EmbeddingProvider | None = deps.get("embedder")
    if embedder is None:
        logger.warning("No embedding provider configured, skipping vector search")
        return {"vector_hits": []}

    query = await embedder.embed(" ".join(state["keywords"]))
    documents = await crud.list_embedded_legal_documents(deps["db"])
    hits = rank_by_similarity(query, documents, cfg["match_threshold"], cfg["match_count"])
    return {"vector_hits": hits}


async def keyword_search_node(state: RetrievalState, config: RunnableConfig) -> dict:
    """Force-include documents for critical terms that vector search may rank too low."""
    deps = config["configurable"]
    cfg = state["config"]
    terms = critical_terms_in(state["keywords"], cfg["critical_terms"])
    if not terms:
        return {"keyword_hits": []}
    documents = await crud.search_legal_documents_by_terms(deps["db"], terms, limit=cfg["match_count"])
    return {"keyword_hits": [to_hit(doc, 0.0, "keyword") for doc in documents]}


def merge_filter_node(state: RetrievalState) -> dict:
    cfg = state["config"]
    merged = merge_hits(state["vector_hits"], state["keyword_hits"])
    kept = filter_off_topic(merged, state["keywords"], cfg["off_topic_terms"])
    return {"documents": kept}


def format_context_node(state: RetrievalState) -> dict:
    return {"context": format_context(state["documents"], state["config"]["max_documents"])}


# ── Build graph ───────────────────────────────────────────

def build_retrieval_graph():
    graph = StateGraph(RetrievalState)

    graph.add_node("translate_keywords", translate_keywords_node)
    graph.add_node("vector_search", vector_search_node)
    graph.add_node("keyword_search", keyword_search_node)
    graph.add_node("merge_filter", merge_filter_node)
    graph.add_node("format_context", format_context_node)

    graph.set_entry_point("translate_keywords")
    graph.add_conditional_edges("translate_keywords", route_after_keywords, {
        "vector_search": "vector_search",
        "format_context": "format_context",
    })
    graph.add_edge("vector_search", "keyword_search")
    graph.add_edge("keyword_search", "merge_filter")
    graph.add_edge("merge_filter", "format_context")
    graph.add_edge("format_context", END)

    return graph.compile()


# ── Public API ────────────────────────────────────────────

async def run_legal_retrieval(
    transcript: str,
    *,
    db: AsyncSession,
    llm: LLMProvider,
    embedder: EmbeddingProvider | None,
    settings: Settings,
) -> str:
    """Return reference text for the extraction prompt, or the no-context sentinel."""
    rag = settings.rag
    if not rag.enabled:
        return NO_CONTEXT_SENTINEL

    initial_state: RetrievalState = {
        "transcript": transcript,
        "keywords": [],
        "vector_hits": [],
        "keyword_hits": [],
        "documents": [],
        "context": "",
        "config": {
            "fast_model": settings.llm.fast_model,
            "match_threshold": rag.match_threshold,
            "match_count": rag.match_count,
            "max_documents": rag.max_documents,
            "critical_terms": list(rag.critical_terms),
            "off_topic_terms": list(rag.off_topic_terms),
        },
    }

    try:
        graph = build_retrieval_graph()
        result = await graph.ainvoke(
            initial_state,
            config={"configurable": {"db": db, "llm": llm, "embedder": embedder}},
        )
    except Exception as e:
        logger.warning(f"Legal retrieval failed, continuing without context: {e}")
        return NO_CONTEXT_SENTINEL

    logger.info(f"Legal retrieval: {len(result['documents'])} documents")
    return result["context"] or NO_CONTEXT_SENTINEL
