from __future__ import annotations

import json
from typing import Any, Sequence

from .errors import MalformedJsonError, NoMappingError, NotAnArrayError
from .sources import Row, Rows

MISSING_CELL = "null"


def cellText(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def jsonTypeName(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "null" if value is None else type(value).__name__


def extractRow(item: Any, mapping: Sequence[str]) -> Row:
    if not isinstance(item, dict):
        return tuple(MISSING_CELL for _ in mapping)
    return tuple(cellText(item[key]) if key in item else MISSING_CELL for key in mapping)


def extractRows(raw: bytes | str, mapping: Sequence[str] | None) -> Rows:
    """Turn a JSON array of objects into rows, one cell per mapped key.

    String values are used as-is, every other value is rendered as compact
    JSON text, and a key missing from an object gives the cell "null".

    Raises:
        NoMappingError: mapping is None (checked before parsing).
        MalformedJsonError: raw is not valid JSON.
        NotAnArrayError: the JSON root is not an array.
    """
    if mapping is None:
        raise NoMappingError()

    try:
        dataObj = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise MalformedJsonError(f"invalid JSON: {exc}") from exc

    if not isinstance(dataObj, list):
        raise NotAnArrayError(f"expected a JSON array, got {jsonTypeName(dataObj)}")

    keys = list(mapping)
    return tuple(extractRow(item, keys) for item in dataObj)
