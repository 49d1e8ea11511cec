"""Helpers for turning free-form model output into typed records."""
from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, Mapping

from pydantic.alias_generators import to_camel

from interview_coach.core.error_handling import AnalysisFailure

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def extract_json_object(text: str, kind: str = "analysis") -> Dict[str, Any]:
    """Parse the first JSON object in ``text``.

    Markdown code fences are stripped first. Raises AnalysisFailure when no
    JSON object can be recovered.
    """
    if not isinstance(text, str) or not text.strip():
        raise AnalysisFailure(kind, "empty response")

    cleaned = _FENCE.sub("", text).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            raise AnalysisFailure(kind, "response is not JSON")
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as exc:
            raise AnalysisFailure(kind, f"malformed JSON: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise AnalysisFailure(kind, f"expected an object, got {type(parsed).__name__}")
    return parsed


def _lookup(raw: Mapping[str, Any], key: str) -> Any:
    if key in raw:
        return raw[key]
    return raw.get(to_camel(key))


def _coerce_score(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(round(min(100, max(0, value))))
    return None


def _coerce_list(value: Any, template: list) -> list | None:
    if not isinstance(value, list):
        return None
    if template and isinstance(template[0], dict):
        return [item for item in value if isinstance(item, dict)]
    return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]


def merge_with_defaults(raw: Any, defaults: Mapping[str, Any]) -> Dict[str, Any]:
    """Field-by-field merge of untrusted output over a defaults tree.

    ``defaults`` is keyed in snake_case; ``raw`` may use snake_case or
    camelCase. A raw value is taken only when it has the right shape for its
    default: ints are read as 0-100 scores, strings must be non-empty,
    lists must be lists and mappings are merged recursively. Anything else
    keeps the default.
    """
    source = raw if isinstance(raw, Mapping) else {}
    merged: Dict[str, Any] = {}
    for key, default in defaults.items():
        value = _lookup(source, key)
        if isinstance(default, Mapping):
            merged[key] = merge_with_defaults(value, default)
        elif isinstance(default, bool):
            merged[key] = value if isinstance(value, bool) else default
        elif isinstance(default, int):
            score = _coerce_score(value)
            merged[key] = default if score is None else score
        elif isinstance(default, float):
            merged[key] = float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else default
        elif isinstance(default, str):
            merged[key] = value.strip() if isinstance(value, str) and value.strip() else default
        elif isinstance(default, list):
            items = _coerce_list(value, default)
            merged[key] = list(default) if items is None else items
        else:
            merged[key] = default if value is None else value
    return merged
