"""JSON validation and structure summarisation.

The summary describes the *shape* of a document for inspection; it is always
valid JSON itself but cannot be used to rebuild the original value.
"""

import json
import logging
from typing import Any, Dict

from app.models.analysis import JsonAnalysis

logger = logging.getLogger(__name__)

MAX_DEPTH = 5
MAX_KEYS = 20
MAX_STRING_LENGTH = 100


def _reject_constant(name: str) -> Any:
    # Python accepts NaN / Infinity, strict JSON does not
    raise ValueError(f"Invalid JSON constant: {name}")


def _scalar_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def summarize_structure(value: Any, depth: int = 0, max_depth: int = MAX_DEPTH) -> Dict[str, Any]:
    """Return a depth- and breadth-capped description of *value*.

    * objects: ``{"type": "object", "keys": n, "structure": {...}}`` with at
      most :data:`MAX_KEYS` keys; the rest are folded into a single ``"..."``
      entry reading ``"<n> more keys"``.
    * arrays: ``{"type": "array", "length": n, "items": <first element>}``.
    * scalars: ``{"type": ..., "value": ...}``, long strings truncated.
    * anything deeper than *max_depth*: ``{"type": "deep", "value": "..."}``.
    """
    if depth > max_depth:
        return {"type": "deep", "value": "..."}

    if isinstance(value, list):
        return {
            "type": "array",
            "length": len(value),
            "items": summarize_structure(value[0], depth + 1, max_depth) if value else None,
        }

    if isinstance(value, dict):
        keys = list(value)
        structure: Dict[str, Any] = {}
        for key in keys[:MAX_KEYS]:
            structure[key] = summarize_structure(value[key], depth + 1, max_depth)
        if len(keys) > MAX_KEYS:
            structure["..."] = f"{len(keys) - MAX_KEYS} more keys"
        return {"type": "object", "keys": len(keys), "structure": structure}

    if isinstance(value, str) and len(value) > MAX_STRING_LENGTH:
        value = value[:MAX_STRING_LENGTH] + "..."
    return {"type": _scalar_type(value), "value": value}


def analyze_json(content: str) -> JsonAnalysis:
    """Strictly parse *content* and summarise it.

    On a syntax error the analysis is marked invalid and keeps the raw text.
    """
    try:
        data = json.loads(content, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        logger.info("JSON parse failed: %s", exc)
        return JsonAnalysis(valid=False, error=str(exc), text=content)

    return JsonAnalysis(valid=True, structure=summarize_structure(data), size=len(content))
