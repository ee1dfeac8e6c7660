"""Structured extraction tools: schema rendering and output post-processing."""

from __future__ import annotations

import json
import logging
from typing import Any

from fieldscribe.errors import MalformedModelOutputError, SchemaReferenceError
from fieldscribe.services.schema_tree import SchemaTree

logger = logging.getLogger(__name__)

_TRUNCATION_MARK = "\n...(이하 생략)"
_RESULT_FIELDS = ("result_value", "legal_basis", "solution")


def truncate_transcript(transcript: str, max_chars: int) -> str:
    if len(transcript) <= max_chars:
        return transcript
    logger.warning(f"Transcript truncated from {len(transcript)} to {max_chars} chars")
    return transcript[:max_chars] + _TRUNCATION_MARK


def schema_leaves(tree: SchemaTree) -> list[dict]:
    """Flatten the tree to its persisted leaves: [{id, header, default_value}]."""
    leaves = []
    for idx in tree.leaves():
        node = tree.nodes[idx]
        if not node.item_id:
            continue
        leaves.append({
            "id": node.item_id,
            "header": tree.label(idx),
            "default_value": node.default_value,
        })
    return leaves


def render_schema(leaves: list[dict]) -> str:
    """ID → header mapping, one JSON line per leaf."""
    lines = []
    for leaf in leaves:
        entry: dict[str, Any] = {"id": leaf["id"], "header": leaf["header"]}
        if leaf.get("default_value"):
            entry["default_value"] = leaf["default_value"]
        lines.append(json.dumps(entry, ensure_ascii=False))
    return "\n".join(lines)


def normalize_payload(payload: Any) -> tuple[str | None, list[dict]]:
    """Accept {"title", "sets"} or a bare list of sets. Returns (title, sets)."""
    if isinstance(payload, list):
        return None, [s for s in payload if isinstance(s, dict)]
    if not isinstance(payload, dict):
        raise MalformedModelOutputError("AI 응답 형식이 잘못되었습니다. (JSON 객체가 아님)")

    title = payload.get("title")
    title = str(title).strip() if isinstance(title, (str, int, float)) and str(title).strip() else None

    sets = payload.get("sets")
    if sets is None and isinstance(payload.get("results"), list):
        sets = [{"results": payload["results"]}]
    if not isinstance(sets, list):
        sets = []
    return title, [s for s in sets if isinstance(s, dict)]


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        value = "\n".join(str(v) for v in value if v is not None)
    text = str(value).strip()
    if not text or text.lower() in ("null", "none"):
        return None
    return text


def check_item_reference(result: Any, leaf_ids: set[str], min_id_length: int) -> str:
    """Return the result's template_item_id, or raise SchemaReferenceError."""
    if not isinstance(result, dict):
        raise SchemaReferenceError(f"Result is not an object: {result!r}")
    item_id = result.get("template_item_id")
    if not isinstance(item_id, str) or len(item_id.strip()) < min_id_length:
        raise SchemaReferenceError(f"Malformed template item id {item_id!r}")
    item_id = item_id.strip()
    if item_id not in leaf_ids:
        raise SchemaReferenceError(f"Unknown template item {item_id!r}")
    return item_id


def validate_rows(sets: list[dict], leaf_ids: set[str], min_id_length: int) -> tuple[list[dict], int]:
    """Flatten sets into result rows, dropping any row whose template_item_id is
    malformed or not a leaf of the template snapshot.

    Returns (rows, dropped_count). Rows keep the model's emission order and
    carry the index of the set they came from.
    """
    rows, dropped = [], 0
    for set_index, answer_set in enumerate(sets):
        results = answer_set.get("results")
        if not isinstance(results, list):
            continue
        for result in results:
            try:
                item_id = check_item_reference(result, leaf_ids, min_id_length)
            except SchemaReferenceError as e:
                logger.warning(f"Dropping result: {e}")
                dropped += 1
                continue
            row = {"template_item_id": item_id, "set_index": set_index}
            for f in _RESULT_FIELDS:
                row[f] = _clean(result.get(f))
            rows.append(row)
    return rows, dropped
