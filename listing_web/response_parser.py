"""Interpretation of raw model replies.

Locates the JSON object in the reply text, parses it, checks the required
fields and maps each failure to a distinct error so the user can tell "the
model did not answer" apart from "the model answered in the wrong shape".
"""

import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

from .logging_utils import log_interaction
from .models import OEM_FIELDS, GeneratedContent
from .pricing import fill_derived_pricing
from .prompts import INTERNAL_ONLY_FIELDS

__all__ = [
    "REQUIRED_FIELDS",
    "ResponseFormatError",
    "NoJsonFoundError",
    "MalformedJsonError",
    "MissingFieldsError",
    "extract_json_object",
    "parse_json_object",
    "interpret_generation_response",
    "interpret_autofill_response",
    "confidence_score",
]

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("productTitle", "pricingAnalysis")

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


class ResponseFormatError(ValueError):
    """The model replied, but not with a usable JSON object."""

    kind = "response_format"
    user_message = "The AI's response could not be used."

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.user_message)
        self.detail = detail


class NoJsonFoundError(ResponseFormatError):
    kind = "no_json"
    user_message = "The AI did not return any structured content. Please try again."


class MalformedJsonError(ResponseFormatError):
    kind = "malformed_json"
    user_message = "Failed to parse the AI's response. The format was invalid."


class MissingFieldsError(ResponseFormatError):
    kind = "missing_fields"
    user_message = "Generated content is missing required fields."

    def __init__(self, missing: tuple):
        super().__init__(f"missing required fields: {', '.join(missing)}")
        self.missing = missing


def extract_json_object(raw: Optional[str], strategy: str = "greedy") -> str:
    """Return the JSON object span embedded in ``raw``.

    The default "greedy" strategy takes everything from the first "{" to the
    last "}", which tolerates prose and code fences around the object. The
    "fenced" strategy prefers the contents of a ```json block and falls back
    to greedy when there is none.

    Raises:
        NoJsonFoundError: If the text contains no "{ ... }" span.
    """
    text = raw or ""

    if strategy == "fenced":
        match = _FENCED_JSON.search(text)
        if match:
            return match.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise NoJsonFoundError("no JSON object found in response")
    return text[start:end + 1]


def parse_json_object(raw: Optional[str], strategy: str = "greedy") -> Dict[str, Any]:
    """Locate and parse the JSON object in ``raw``.

    Raises:
        NoJsonFoundError: No object span in the text.
        MalformedJsonError: The span does not parse as a JSON object.
    """
    span = extract_json_object(raw, strategy)
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(f"malformed JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise MalformedJsonError("top-level JSON value is not an object")
    return parsed


def _missing_required(parsed: Mapping[str, Any]) -> tuple:
    missing = []
    for key in REQUIRED_FIELDS:
        value = parsed.get(key)
        if key == "pricingAnalysis":
            if not isinstance(value, dict):
                missing.append(key)
        elif not isinstance(value, str) or not value.strip():
            missing.append(key)
    return tuple(missing)


def interpret_generation_response(
    raw: Optional[str],
    cost_price: Optional[str] = None,
    strategy: str = "greedy",
) -> GeneratedContent:
    """Turn a raw generation reply into validated GeneratedContent.

    Args:
        raw: Reply text from the model.
        cost_price: Cost price from the form, used to derive profit/margin
            when the model left them null.
        strategy: JSON extraction strategy ("greedy" or "fenced").

    Returns:
        GeneratedContent with internal-only fields removed.

    Raises:
        ResponseFormatError: One of its subclasses, depending on what failed.
    """
    try:
        parsed = parse_json_object(raw, strategy)
        missing = _missing_required(parsed)
        if missing:
            raise MissingFieldsError(missing)
    except ResponseFormatError as e:
        log_interaction(
            "response_format_error",
            {"kind": e.kind, "error": str(e), "raw": raw, "stage": "generation"},
        )
        raise

    for key in INTERNAL_ONLY_FIELDS:
        parsed.pop(key, None)

    content = GeneratedContent.from_dict(parsed)
    fill_derived_pricing(content.pricingAnalysis, cost_price)
    return content


def interpret_autofill_response(raw: Optional[str], strategy: str = "greedy") -> Dict[str, str]:
    """Parse an auto-fill reply into a dict with every OEM key present.

    Unknown keys are dropped and missing ones default to "" so callers never
    need to check for key presence.

    Raises:
        ResponseFormatError: If no JSON object can be located or parsed.
    """
    try:
        parsed = parse_json_object(raw, strategy)
    except ResponseFormatError as e:
        log_interaction(
            "response_format_error",
            {"kind": e.kind, "error": str(e), "raw": raw, "stage": "autofill"},
        )
        raise

    specs = {}
    for key in OEM_FIELDS:
        value = parsed.get(key)
        specs[key] = "" if value is None else str(value).strip()
    return specs


def confidence_score(specs: Mapping[str, Any]) -> int:
    """Percentage of spec fields that have a non-empty value, rounded half up."""
    total = len(specs)
    if total == 0:
        return 0
    found = sum(1 for value in specs.values() if value and str(value).strip())
    # Halves round up
    return int(found / total * 100 + 0.5)
