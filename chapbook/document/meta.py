"""Helpers for the open-ended, JSON-shaped ``meta`` mapping."""

from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Any

from pydantic import JsonValue


def merge(target: JsonValue, patch: JsonValue) -> JsonValue:
    """Merge patch into target per RFC 7396 and return the result.

    Null values in patch delete keys. A non-object patch replaces target
    wholesale. Neither argument is mutated.
    """
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge(result.get(key), value)
    return result


def get_deep(value: JsonValue, path: str) -> JsonValue:
    """Walk a dot-separated path, e.g. ``get_deep(meta, "music.artist.name")``.

    Numeric segments index into lists. Returns None when any segment is missing.
    """
    current = value
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def to_json_value(value: Any) -> JsonValue:
    """Coerce YAML-loaded data into JSON-compatible values.

    YAML gives us dates, datetimes and non-string keys; those become ISO
    strings and str keys respectively.
    """
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_value(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
