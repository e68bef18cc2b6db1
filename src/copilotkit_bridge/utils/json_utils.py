"""Centralized JSON serialization utilities.

Pre-created partial functions for the serialization patterns used on the wire
and in tool payloads.
"""

from __future__ import annotations

import json

from collections.abc import Callable
from functools import partial
from typing import Any

# Compact JSON serialization (no spaces) with fallback to str for non-serializable types.
# Use for SSE frames and tool results where size matters.
# Example: json_compact({"key": "value"}) -> '{"key":"value"}'
json_compact: Callable[..., str] = partial(json.dumps, separators=(",", ":"), default=str)


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """Parse ``text`` as a JSON object.

    Returns None for blank input, invalid JSON, or JSON that is not an object.
    """
    if not text or not text.strip():
        return None
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None
