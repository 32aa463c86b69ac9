"""Extract JSON payloads from LLM responses."""

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from src.sitegen.core.exceptions import ParseError

_JSON_FENCE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[a-zA-Z0-9_-]*\s*(.*?)```", re.DOTALL)

# A response is either plain text or a list of content parts ({"type": "text", "text": ...})
Content = str | Sequence[Mapping[str, Any] | str]


def content_to_text(content: Content) -> str:
    """Flatten provider content into a single string.

    Non-text parts (tool use, images) are skipped.
    """
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif part.get("type", "text") == "text" and isinstance(part.get("text"), str):
            parts.append(part["text"])
    return "\n".join(parts)


def _candidates(text: str) -> list[str]:
    candidates = [match.strip() for match in _JSON_FENCE.findall(text)]
    candidates += [match.strip() for match in _ANY_FENCE.findall(text)]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])
    candidates.append(text.strip())
    return candidates


def extract_json(content: Content) -> dict[str, Any]:
    """Return the first JSON object found in ``content``.

    Looks at, in order: ```json fenced blocks, any fenced block, the outermost
    ``{...}`` span, and finally the whole text.

    Raises:
        ParseError: If no candidate decodes to a JSON object.
    """
    text = content_to_text(content)
    if not text.strip():
        raise ParseError("Provider returned empty content")

    for candidate in _candidates(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    raise ParseError("No JSON object found in provider response", details={"preview": text[:200]})


def strip_json_blocks(content: Content) -> str:
    """Text of the response with fenced JSON blocks removed."""
    return _JSON_FENCE.sub("", content_to_text(content)).strip()
