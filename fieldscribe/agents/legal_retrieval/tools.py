"""Legal retrieval tools: keyword parsing, vector ranking, merging and filtering."""

from __future__ import annotations

import json
import logging
import re

import numpy as np

from fieldscribe.agents.legal_retrieval.prompts import DOCUMENT_LABEL, NO_CONTEXT_SENTINEL

logger = logging.getLogger(__name__)

_MAX_KEYWORDS = 5


def parse_keywords(response: str) -> list[str]:
    """Parse the keyword reply: a JSON array or a comma/newline separated line."""
    text = (response or "").strip()
    if text.startswith("```"):
        text = text.strip("`").removeprefix("json").strip()
    keywords: list[str] = []
    try:
        parsed = json.loads(text)
        if isinstance(parsed, list):
            keywords = [str(k) for k in parsed]
    except json.JSONDecodeError:
        keywords = re.split(r"[,\n、]", text)

    cleaned = []
    for kw in keywords:
        kw = kw.strip().strip("\"'").lstrip("-•0123456789. ").strip()
        if kw and kw not in cleaned:
            cleaned.append(kw)
    return cleaned[:_MAX_KEYWORDS]


def rank_by_similarity(
    query: list[float], documents: list, threshold: float, limit: int,
) -> list[dict]:
    """Cosine-rank documents (objects with .embedding) against the query vector.

    Documents whose embedding dimension differs from the query are skipped.
    """
    q = np.asarray(query, dtype=np.float32)
    q_norm = np.linalg.norm(q)
    if q_norm == 0:
        return []

    candidates = [d for d in documents if d.embedding and len(d.embedding) == len(q)]
    if not candidates:
        return []

    matrix = np.asarray([d.embedding for d in candidates], dtype=np.float32)
    norms = np.linalg.norm(matrix, axis=1)
    norms[norms == 0] = 1.0
    sims = matrix @ q / (norms * q_norm)

    order = np.argsort(-sims)
    hits = []
    for i in order:
        score = float(sims[i])
        if score < threshold:
            break
        doc = candidates[int(i)]
        hits.append(to_hit(doc, score, "vector"))
        if len(hits) >= limit:
            break
    return hits


def to_hit(doc, similarity: float, origin: str) -> dict:
    return {
        "id": doc.id,
        "title": doc.title or "",
        "content": doc.content,
        "similarity": round(similarity, 4),
        "origin": origin,
    }


def critical_terms_in(keywords: list[str], critical_terms: list[str]) -> list[str]:
    """Critical terms that any extracted keyword mentions (either direction of containment)."""
    found = []
    for term in critical_terms:
        if any(term in kw or (len(kw) >= 2 and kw in term) for kw in keywords):
            found.append(term)
    return found


def merge_hits(vector_hits: list[dict], keyword_hits: list[dict]) -> list[dict]:
    """Vector matches first, then keyword-boosted ones, de-duplicated by id."""
    merged, seen = [], set()
    for hit in [*vector_hits, *keyword_hits]:
        if hit["id"] in seen:
            continue
        seen.add(hit["id"])
        merged.append(hit)
    return merged


def filter_off_topic(hits: list[dict], keywords: list[str], off_topic_terms: list[str]) -> list[dict]:
    """Drop documents mentioning an off-topic term the keywords never asked for."""
    joined = " ".join(keywords)
    allowed = {t for t in off_topic_terms if t in joined}
    kept = []
    for hit in hits:
        blocked = [t for t in off_topic_terms if t not in allowed and t in hit["content"]]
        if blocked:
            logger.info(f"Dropping legal document {hit['id']}: off-topic terms {blocked}")
            continue
        kept.append(hit)
    return kept


def format_context(hits: list[dict], max_documents: int) -> str:
    if not hits:
        return NO_CONTEXT_SENTINEL
    blocks = []
    for n, hit in enumerate(hits[:max_documents], start=1):
        label = DOCUMENT_LABEL.format(n=n)
        title = f" {hit['title']}" if hit.get("title") else ""
        blocks.append(f"{label}{title}\n{hit['content'].strip()}")
    return "\n\n".join(blocks)
