"""Query-string helpers for webservice list endpoints."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Tuple

_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]+)\]$")


def parse_query_params(items: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Build the raw parameter map from decoded query-string pairs.

    ``price[gte]=100`` becomes ``{"price": {"gte": "100"}}``. Only one level of
    nesting is expanded; keys that do not match ``field[op]`` are kept as-is.
    For repeated keys the last value wins.
    """
    params: Dict[str, Any] = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if match is None:
            params[key] = value
            continue
        field, op = match.group("field"), match.group("op")
        nested = params.get(field)
        if not isinstance(nested, dict):
            nested = {}
            params[field] = nested
        nested[op] = value
    return params


def parse_positive_int(raw: str | None, default: int) -> int:
    """Parse a page/limit value.

    Only ASCII digits with an optional leading ``+`` are accepted. Absent,
    blank, non-integer and non-positive values all fall back to ``default``.
    """
    if raw is None or not isinstance(raw, str):
        return default
    digits = raw.strip().removeprefix("+")
    if not (digits.isascii() and digits.isdigit()):
        return default
    value = int(digits)
    return value if value >= 1 else default
