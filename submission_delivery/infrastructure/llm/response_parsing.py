"""Parsing of provider responses.

Both providers are asked for ``{"final_text": "..."}``. Models sometimes
wrap the object in prose or code fences, so the outermost JSON object is
extracted before parsing.
"""

from __future__ import annotations

import json
import re

from submission_delivery.domain.errors.generation import ProviderError

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

JSON_INSTRUCTION = (
    "Respond with ONLY valid JSON in this exact format:\n"
    '{"final_text": "your submission text here"}'
)


def extract_final_text(provider: str, content: str) -> str:
    """Return the non-empty final_text field of a provider reply.

    Raises:
        ProviderError: The reply holds no JSON object or no final_text.
    """
    match = _JSON_OBJECT.search(content or "")
    if match is None:
        raise ProviderError(provider, "response contained no JSON object")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as error:
        raise ProviderError(provider, f"invalid JSON in response: {error}") from None

    final_text = parsed.get("final_text") if isinstance(parsed, dict) else None
    if not isinstance(final_text, str) or not final_text.strip():
        raise ProviderError(provider, "response missing final_text")
    return final_text
