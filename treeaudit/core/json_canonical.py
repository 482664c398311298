"""
Deterministic JSON serialization for run reports.

Identical data produces identical bytes regardless of dict ordering, so two
reports of the same run can be compared directly.
"""

from __future__ import annotations

from typing import Any

import orjson


def canonical_json_dumps(obj: Any, *, indent: bool = False) -> str:
    """
    Serialize object to canonical JSON string.

    Examples:
        >>> canonical_json_dumps({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    options = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS
    if indent:
        options |= orjson.OPT_INDENT_2

    return orjson.dumps(obj, option=options).decode("utf-8")
