"""Extract JSON payloads from free-form LLM output.

Models occasionally wrap JSON in markdown fences or add commentary before
or after it.  These helpers strip the common wrappers and pull out the
first JSON object / array.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from legal_doc_ai.errors import ResponseParseError

logger = logging.getLogger(__name__)

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def clean_response_text(text: str) -> str:
    """Strip ```json … ``` fences and surrounding whitespace."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        first_newline = cleaned.index("\n") if "\n" in cleaned else 3
        cleaned = cleaned[first_newline + 1 :]
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
        cleaned = cleaned.strip()
    return cleaned


def _extract(text: str, pattern: re.Pattern[str], kind: str) -> Any:
    cleaned = clean_response_text(text)
    match = pattern.search(cleaned)
    if match is None:
        raise ResponseParseError(f"No JSON {kind} found in response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.warning("Could not parse LLM JSON %s: %.200s", kind, text)
        raise ResponseParseError(f"Invalid JSON {kind} in response: {exc}") from exc


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first ``{...}`` span of *text* decoded as a dict."""
    return _extract(text, _OBJECT_RE, "object")


def extract_json_array(text: str) -> list[Any]:
    """Return the first ``[...]`` span of *text* decoded as a list."""
    return _extract(text, _ARRAY_RE, "array")


def response_text(response: Any) -> str:
    """Text content of a chat-model response (``AIMessage`` or plain str)."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # multi-part content: keep the text parts
        content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    if not isinstance(content, str):
        raise ResponseParseError("Response is not a string")
    return content
