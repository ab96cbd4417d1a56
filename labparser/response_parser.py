"""
Response Parser
===============
Best-effort extraction of a JSON array from free-form model output.

The heuristic is deliberately simple:
    1. Find the first ``[`` and the last ``]``
    2. Slice between them (inclusive)
    3. ``json.loads`` the slice

Text outside that span is discarded. Several separate arrays, or
unbalanced brackets, are not handled specially and will usually fail
to parse. The slice always starts with ``[`` and ends with ``]``, so a
successful decode is always a list. This function never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

NO_ARRAY_ERROR = "No JSON array found in response"
PARSE_ERROR = "Failed to parse response as JSON"


@dataclass
class JsonArrayParse:
    """Outcome of :func:`extract_json_array`."""
    success: bool
    data: list[Any] = field(default_factory=list)
    error: Optional[str] = None


def extract_json_array(text: Optional[str]) -> JsonArrayParse:
    """Parse the outermost ``[...]`` span of ``text`` as a JSON array."""
    if not text:
        return JsonArrayParse(success=False, error=NO_ARRAY_ERROR)

    start = text.find("[")
    if start == -1:
        return JsonArrayParse(success=False, error=NO_ARRAY_ERROR)

    end = text.rfind("]") + 1
    if end <= start:
        # Opening bracket with no closing bracket after it
        return JsonArrayParse(success=False, error=PARSE_ERROR)

    try:
        data = json.loads(text[start:end])
    except (ValueError, RecursionError) as e:
        # RecursionError: pathologically deep nesting
        logger.debug(f"JSON decode failed: {type(e).__name__}: {e}")
        return JsonArrayParse(success=False, error=PARSE_ERROR)

    return JsonArrayParse(success=True, data=data)
