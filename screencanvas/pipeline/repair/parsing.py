"""Pull the JSON document out of a model's free-text reply."""

from __future__ import annotations

import json
import re
from typing import Any


_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class GeneratedTextError(ValueError):
    """Raised when a generated reply contains no parseable JSON."""

    def __init__(self, reason: str, excerpt: str = "") -> None:
        self.reason = reason
        self.excerpt = excerpt
        super().__init__(f"Generated text is not valid JSON: {reason}")


def extract_json(text: str) -> str:
    """Return the most likely JSON object substring of *text*.

    Handles a surrounding markdown fence, and prose before or after the
    object.  Falls back to the trimmed text.
    """
    trimmed = text.strip()
    fence = _FENCE_RE.match(trimmed)
    if fence:
        return fence.group(1).strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start >= 0 and end > start:
        return trimmed[start:end + 1]
    return trimmed


def parse_generated(text: str) -> Any:
    """Extract and decode the JSON document of a generated reply."""
    candidate = extract_json(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise GeneratedTextError(str(exc), excerpt=text[:1000]) from exc
