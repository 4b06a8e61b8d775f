"""
Turns raw AI text into a validated RoutineDraft.

The model is asked for bare JSON but routinely wraps it in markdown fences,
adds prose around it, or gets cut off mid-object. Truncation is reported
separately from malformed output so callers can retry with fewer products.
"""
import json
import logging
import re
from typing import Optional, Tuple

from pydantic import ValidationError

from app.core.exceptions import ContentBlocked, MalformedResponse, TruncatedResponse
from app.schemas.routine import DEFAULT_ESTIMATED_DURATION, RoutineDraft
from app.services.ai_completion_service import (
    COMPLETION_BLOCKED,
    COMPLETION_OK,
    COMPLETION_OTHER,
    COMPLETION_TRUNCATED,
)

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 500

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned.strip()


def extract_json_span(text: str) -> Tuple[Optional[str], bool]:
    """
    Return (span, closed) for the first top-level {...} object in text.

    span is None if there is no '{'. Braces inside JSON string literals are
    ignored. When the opening brace is never balanced, span is the rest of the
    text and closed is False.
    """
    start = text.find("{")
    if start == -1:
        return None, False

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1], True

    return text[start:].rstrip(), False


def parse_routine_response(text: Optional[str], completion_status: str = COMPLETION_OK) -> RoutineDraft:
    if completion_status == COMPLETION_TRUNCATED:
        logger.warning("⚠️ Response was truncated due to token limit")
        raise TruncatedResponse("Response too long. Please try with fewer products.")
    if completion_status == COMPLETION_BLOCKED:
        raise ContentBlocked("Response blocked by safety filters")
    if completion_status == COMPLETION_OTHER:
        logger.warning("AI completion finished for an unexpected reason, attempting to parse anyway")

    raw = text or ""
    cleaned = strip_code_fences(raw)
    span, closed = extract_json_span(cleaned)

    if span is None:
        candidate = cleaned
    else:
        if not span.endswith("}") or not closed:
            logger.warning(f"AI response appears to be truncated: {span[:SNIPPET_LENGTH]}")
            raise TruncatedResponse("AI response was truncated. Please try again.")
        candidate = span

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response: {raw[:1000]}")
        raise MalformedResponse(f"Invalid JSON: {e.msg}", snippet=candidate[:SNIPPET_LENGTH]) from e

    if not isinstance(payload, dict) or not isinstance(payload.get("steps"), list):
        raise MalformedResponse(
            "Invalid response structure: missing or invalid steps array",
            snippet=candidate[:SNIPPET_LENGTH],
        )

    if not payload.get("compatibilityWarnings"):
        payload["compatibilityWarnings"] = []
    if not payload.get("estimatedDuration"):
        payload["estimatedDuration"] = DEFAULT_ESTIMATED_DURATION
    if not payload.get("tips"):
        payload["tips"] = []

    # Optional fields are coerced by RoutineDraft; only steps can make the payload invalid
    try:
        return RoutineDraft.model_validate(payload)
    except ValidationError as e:
        logger.error(f"AI response failed schema validation: {e}")
        raise MalformedResponse(
            f"Invalid response structure: {e.error_count()} field error(s)",
            snippet=candidate[:SNIPPET_LENGTH],
        ) from e
