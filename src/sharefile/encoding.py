"""Request and response encoding shared by all API calls.

This module provides:
- build_query: Query string encoding with "true"/"false" booleans
- decode_body: JSON-or-text response decoding
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(params: Mapping[str, Any]) -> str:
    """Encode query parameters in the order given.

    Booleans become "true"/"false", None values are dropped and everything
    else is percent-encoded.
    """
    return urlencode(
        [(key, _format_param(value)) for key, value in params.items() if value is not None],
        quote_via=quote,
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Not a JSON value: {name}")


def decode_body(body: str) -> Any:
    """Decode a response body as JSON, falling back to the raw text.

    Empty bodies are returned as an empty string. NaN and Infinity are not
    JSON, so bodies made of them stay text.
    """
    if not body:
        return body
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except ValueError:
        return body
