"""Resilient JSON decoding of LLM replies.

Handles:
- fenced code blocks (```json ... ``` or bare ```)
- [JSON_START] ... [JSON_END] delimiters
- commentary before/after the payload, including brackets or braces in it
- truncation mid-structure (repaired at the last complete element)
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from fieldscribe.errors import MalformedModelOutputError, TruncatedResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:[a-zA-Z]+)?\s*\n?(.*?)```", re.DOTALL)
_DELIMITED_RE = re.compile(r"\[JSON_START\](.*?)\[JSON_END\]", re.DOTALL)

_CLOSERS = {"{": "}", "[": "]"}
_MAX_REPAIR_CANDIDATES = 200


def decode_model_json(text: str) -> Any:
    """Extract and parse the JSON object/array contained in an LLM reply.

    Raises TruncatedResponseError when the payload was cut off and no
    structurally complete prefix could be recovered, and
    MalformedModelOutputError when the reply holds no JSON at all.
    """
    if not text or not text.strip():
        raise MalformedModelOutputError("AI 응답이 비어 있습니다.")

    for pattern in (_DELIMITED_RE, _FENCE_RE):
        match = pattern.search(text)
        if match:
            try:
                return json.loads(match.group(1).strip())
            except json.JSONDecodeError:
                logger.debug("Delimited block was not valid JSON, falling back to brace scan")

    # Candidates are tried at every opening bracket, so a bracketed heading
    # or a brace in the commentary cannot hide the payload behind it.
    decoder = json.JSONDecoder()
    best: tuple[int, Any] | None = None
    truncated = False
    pos = _next_open(text, 0)
    while pos != -1:
        try:
            value, end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            state, closed_at, _ = _scan(text[pos:])
            repaired = repair_truncated(text[pos:])
            if state == "open":
                if repaired is None:
                    truncated = True
                else:
                    logger.warning(f"JSON reply was cut off ({e}), using repaired prefix")
                    best = _longer(best, len(text) - pos, repaired)
                break
            if repaired is not None and state == "closed":
                best = _longer(best, closed_at + 1, repaired)
                pos = _next_open(text, pos + closed_at + 1)
            else:
                pos = _next_open(text, pos + 1)
            continue
        best = _longer(best, end - pos, value)
        pos = _next_open(text, end)

    if best is not None:
        return best[1]
    if truncated:
        raise TruncatedResponseError(
            "AI 응답이 너무 길어 잘렸고 복구할 수 없습니다. 녹음을 나누어 다시 시도하세요."
        )
    raise MalformedModelOutputError("AI 응답에서 JSON을 찾을 수 없습니다.")


def _next_open(text: str, start: int) -> int:
    positions = [p for p in (text.find("{", start), text.find("[", start)) if p != -1]
    return min(positions) if positions else -1


def _longer(best: tuple[int, Any] | None, span: int, value: Any) -> tuple[int, Any]:
    """Keep the candidate covering the most text; earlier wins ties."""
    if best is None or span > best[0]:
        return (span, value)
    return best


def _scan(fragment: str) -> tuple[str, int, list[tuple[int, str]]]:
    """Walk brackets outside of strings from fragment[0].

    Returns (state, closed_at, boundaries). state is "closed" when the
    outermost structure closes at closed_at, "open" when the text ends first,
    and "broken" on a mismatched closer. boundaries holds (index, suffix) for
    every close, suffix being the brackets still open there.
    """
    stack: list[str] = []
    boundaries: list[tuple[int, str]] = []
    in_string = False
    escaped = False

    for i, ch in enumerate(fragment):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]"):
            if not stack or _CLOSERS[stack[-1]] != ch:
                return "broken", -1, boundaries
            stack.pop()
            boundaries.append((i, "".join(_CLOSERS[b] for b in reversed(stack))))
            if not stack:
                return "closed", i, boundaries
    return "open", -1, boundaries


def repair_truncated(fragment: str) -> Any | None:
    """Close a truncated structure at its last complete element.

    Every position where an object or array closed is a candidate; they are
    tried from the end backwards and the first one that parses wins. Any
    partially emitted trailing element is dropped.
    """
    _, _, boundaries = _scan(fragment)
    for pos, suffix in reversed(boundaries[-_MAX_REPAIR_CANDIDATES:]):
        candidate = fragment[:pos + 1] + suffix
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        logger.info(f"Repaired truncated JSON at offset {pos} (closed with {suffix!r})")
        return result
    return None
