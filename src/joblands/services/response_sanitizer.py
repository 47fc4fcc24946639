"""Recover a JSON object from model output that ignored "JSON only" instructions."""

import json
import logging
import re
from typing import Any

from joblands.core.exceptions import MalformedJsonError, NoJsonFoundError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```json|```", re.IGNORECASE)

_decoder = json.JSONDecoder()


def strip_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).strip()


def _first_complete_object(text: str, start: int) -> Any:
    """Decode the first complete JSON value starting at ``start``.

    Unlike the first/last brace slice this honours string escapes, so a "}"
    inside a string value followed by trailing text does not break parsing.
    """
    value, _ = _decoder.raw_decode(text, start)
    return value


def sanitize(raw: str) -> dict[str, Any]:
    cleaned = strip_fences(raw)

    first = cleaned.find("{")
    if first == -1:
        raise NoJsonFoundError("No JSON object found in model response", raw)
    last = cleaned.rfind("}")
    if last < first:
        # an opening brace with no closing one: output was cut off
        raise MalformedJsonError("Truncated JSON object in model output", raw)

    try:
        parsed = json.loads(cleaned[first : last + 1])
    except json.JSONDecodeError as e:
        try:
            parsed = _first_complete_object(cleaned, first)
        except json.JSONDecodeError:
            logger.warning("Unparseable model output (%d chars): %s", len(raw), e)
            raise MalformedJsonError(f"Failed to parse JSON from model output: {e}", raw) from e
        logger.info("Recovered JSON object with string-aware scan after slice failed")

    if not isinstance(parsed, dict):
        raise MalformedJsonError("Model output is JSON but not an object", raw)
    return parsed
