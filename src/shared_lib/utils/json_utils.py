"""Shared JSON helpers for LLM replies and node outputs.

LLM replies frequently wrap JSON in markdown code fences, and node outputs are
raw strings that may or may not be JSON. This module provides:
- `strip_code_fences`: removes ```json / ``` markers around a reply
- `parse_json_reply`: strips fences and decodes the first JSON object found
- `try_parse_json`: decodes a string, returning None instead of raising
- `format_for_display`: pretty-prints JSON strings (display only)
- `error_output` / `is_error_output`: the ``Error:`` convention for node outputs
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

ERROR_PREFIX = "Error:"

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    if not text:
        return ""
    return _FENCE_PATTERN.sub("", text.strip()).strip()


def parse_json_reply(text: str) -> Dict[str, Any]:
    """
    Decode a JSON object from an LLM reply.

    Args:
        text: Raw reply text, possibly wrapped in code fences

    Returns:
        Decoded JSON object

    Raises:
        ValueError: If no JSON object can be decoded from the reply
    """
    cleaned = strip_code_fences(text)
    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError:
        # Try to find any JSON object embedded in prose
        match = _OBJECT_PATTERN.search(cleaned)
        if not match:
            raise ValueError("No JSON found in response")
        try:
            result = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in response: {e}") from e

    if not isinstance(result, dict):
        raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
    return result


def try_parse_json(text: Optional[str]) -> Optional[Any]:
    """Decode *text* as JSON, returning None when it is empty or invalid."""
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def format_for_display(output: Optional[str]) -> Optional[str]:
    """
    Pretty-print an output for display.

    JSON objects and arrays are re-indented; anything else is returned
    verbatim. The stored output is never modified.
    """
    if output is None:
        return None
    stripped = output.strip()
    if not stripped.startswith(("{", "[")):
        return output
    parsed = try_parse_json(stripped)
    if parsed is None:
        return output
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def error_output(message: str) -> str:
    """Build a human-readable error output for a node."""
    message = (message or "").strip() or "Unknown error"
    if message.startswith(ERROR_PREFIX):
        return message
    return f"{ERROR_PREFIX} {message}"


def is_error_output(output: Optional[str]) -> bool:
    """Return True when *output* follows the ``Error:`` convention."""
    return bool(output) and output.lstrip().startswith(ERROR_PREFIX)
