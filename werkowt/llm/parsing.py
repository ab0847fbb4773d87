# -*- coding: utf-8 -*-
"""LLM — tolerant extraction of JSON objects embedded in model text."""

from __future__ import annotations

import ast
import json
import re
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

_FENCE_START_RE = re.compile(r"^```(?:json|javascript|js)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")
_NUM_RE = re.compile(r"-?\d+(?:\.\d+)?")

# Typographic and full-width punctuation models sometimes emit inside JSON.
_PUNCTUATION = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'", "：": ":", "，": ","})
_NAN_RE = re.compile(r"\bNaN\b", re.IGNORECASE)
_INFINITY_RE = re.compile(r"-?\bInfinity\b", re.IGNORECASE)
_PY_CONSTANTS = (
    (re.compile(r"\bnull\b", re.IGNORECASE), "None"),
    (re.compile(r"\btrue\b", re.IGNORECASE), "True"),
    (re.compile(r"\bfalse\b", re.IGNORECASE), "False"),
)


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FENCE_START_RE.sub("", cleaned)
    cleaned = _FENCE_END_RE.sub("", cleaned)
    return cleaned


def _structural_chars(text: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(index, char)`` for characters outside double-quoted strings."""
    in_str = False
    escaped = False
    for i, ch in enumerate(text):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        else:
            yield i, ch


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede ``}`` or ``]`` outside string literals."""
    dropped = set()
    for i, ch in _structural_chars(text):
        if ch != ",":
            continue
        rest = text[i + 1 :].lstrip(" \t\r\n")
        if rest[:1] in ("}", "]"):
            dropped.add(i)
    if not dropped:
        return text
    return "".join(ch for i, ch in enumerate(text) if i not in dropped)


def iter_json_object_candidates(text: str) -> list[str]:
    """Extract balanced ``{...}`` candidates from arbitrary text.

    The model often wraps its JSON in prose ("Here is your plan: ...") or
    emits more than one object. Braces inside string literals are ignored.
    """
    cleaned = strip_code_fences(text)
    candidates: list[str] = []
    depth = 0
    start = 0
    for i, ch in _structural_chars(cleaned):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                candidates.append(cleaned[start : i + 1])
    return candidates


def sanitize_json_like(text: str) -> str:
    cleaned = remove_trailing_commas(text.translate(_PUNCTUATION))
    cleaned = _NAN_RE.sub("null", cleaned)
    return _INFINITY_RE.sub("null", cleaned)


def _load_python_literal(text: str) -> Any:
    for pattern, replacement in _PY_CONSTANTS:
        text = pattern.sub(replacement, text)
    return ast.literal_eval(text)


# Strict JSON first; Python literals cover single quotes and None/True/False.
_LOADERS: Tuple[Tuple[Callable[[str], Any], Tuple[type, ...]], ...] = (
    (json.loads, (ValueError,)),
    (_load_python_literal, (ValueError, SyntaxError, TypeError, MemoryError, RecursionError)),
)


def _chunks(text: str) -> List[str]:
    """Balanced candidates, then the span from the first ``{`` to the last ``}``."""
    chunks = iter_json_object_candidates(text)
    cleaned = strip_code_fences(text)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start and cleaned[start : end + 1] not in chunks:
        chunks.append(cleaned[start : end + 1])
    return chunks


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Raises ``ValueError`` when no candidate decodes to a dict.
    """
    if not text or "{" not in text:
        raise ValueError("Model output does not contain a JSON object")

    last_error: Exception = ValueError("Model output does not contain a JSON object")
    for chunk in _chunks(text):
        variants = (chunk, sanitize_json_like(chunk))
        for load, errors in _LOADERS:
            for variant in variants:
                try:
                    parsed = load(variant)
                except errors as exc:
                    last_error = exc
                    continue
                if isinstance(parsed, dict):
                    return parsed
                last_error = ValueError("Top-level JSON value is not an object")

    raise ValueError(f"Failed to parse model JSON: {last_error}") from last_error


def contains_json_object(text: str) -> bool:
    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    return start != -1 and cleaned.rfind("}") > start


def extract_text(response: object) -> str:
    """Concatenate the ``text`` blocks of a messages API response."""
    if not isinstance(response, dict):
        return ""
    content = response.get("content")
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    out: list[str] = []
    for block in content:
        if not isinstance(block, dict):
            continue
        btype = block.get("type")
        if btype and btype != "text":
            continue
        text = block.get("text")
        if isinstance(text, str) and text:
            out.append(text)
    return "".join(out)


def coerce_float(value: Any) -> Optional[float]:
    """Best-effort number: ``"400 kcal"`` -> 400.0, ``"1,200"`` -> 1200.0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        m = _NUM_RE.search(s.replace(",", ""))
        if not m:
            return None
        return float(m.group(0))
    return None


def coerce_int(value: Any) -> Optional[int]:
    number = coerce_float(value)
    if number is None:
        return None
    return int(round(number))


def coerce_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        s = value.strip()
        return [s] if s else []
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for x in value:
            s = coerce_str(x)
            if s:
                out.append(s)
        return out
    s = str(value).strip()
    return [s] if s else []


def first_present(obj: Dict[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        if k in obj and obj.get(k) is not None:
            return obj.get(k)
    return None
