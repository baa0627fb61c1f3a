"""Outbound calls to the OpenAI Responses API.

Two calls are made: listing generation (text plus optional label photo,
JSON output) and spec auto-fill (text only, web search enabled). Both
return the raw reply text; interpretation lives in response_parser.py.
No retries are attempted here, a failed call surfaces immediately.
"""

import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from .config import LLM_MODEL, LLM_REASONING_EFFORT, require_api_key
from .logging_utils import log_interaction
from .timing import timer

__all__ = ["LLMTransportError", "call_generation_model", "call_autofill_model"]

logger = logging.getLogger(__name__)


class LLMTransportError(RuntimeError):
    """The model call failed (network, authorization, empty reply)."""

    kind = "transport"
    user_message = "An unexpected error occurred while contacting the AI service. Please try again."


def _get_openai_client() -> OpenAI:
    """Get OpenAI client (lazy initialization)."""
    return OpenAI(api_key=require_api_key())


def _extract_output_text(resp: Any) -> Optional[str]:
    """Return the first text content of a Responses API result."""
    for item in resp.output:
        content = getattr(item, "content", None)
        if not content:
            continue
        text = getattr(content[0], "text", None)
        if text:
            return text
    return None


def _create_response(stage: str, request: Dict[str, Any]) -> str:
    client = _get_openai_client()
    try:
        with timer(f"llm_call_{stage}"):
            resp = client.responses.create(**request)
    except OpenAIError as e:
        log_interaction("llm_error", {"error": str(e), "stage": stage})
        logger.exception(f"Error calling LLM for {stage}")
        raise LLMTransportError(str(e)) from e

    raw = _extract_output_text(resp)
    log_interaction(f"llm_response_{stage}", {"model": LLM_MODEL, "raw_response": raw})
    if raw is None:
        log_interaction("llm_error", {"error": "empty response", "stage": stage})
        raise LLMTransportError("The AI service returned an empty response.")
    return raw


def call_generation_model(parts: List[Dict[str, Any]]) -> str:
    """Send the generation request and return the raw reply text.

    Args:
        parts: Ordered content parts from prompts.build_generation_request.

    Raises:
        LLMTransportError: If the call fails or returns no text.
    """
    log_interaction(
        "llm_call_generation",
        {
            "model": LLM_MODEL,
            "prompt": next((p["text"] for p in parts if p.get("type") == "input_text"), ""),
            "image_attached": any(p.get("type") == "input_image" for p in parts),
        },
    )
    return _create_response(
        "generation",
        {
            "model": LLM_MODEL,
            "input": [{"role": "user", "content": parts}],
            "text": {"format": {"type": "json_object"}},
            "reasoning": {"effort": LLM_REASONING_EFFORT},
        },
    )


def call_autofill_model(prompt: str) -> str:
    """Send the spec auto-fill request with web search enabled.

    Raises:
        LLMTransportError: If the call fails or returns no text.
    """
    log_interaction("llm_call_autofill", {"model": LLM_MODEL, "prompt": prompt})
    return _create_response(
        "autofill",
        {
            "model": LLM_MODEL,
            "input": [{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
            "tools": [{"type": "web_search"}],
        },
    )
