"""API endpoints for listing generation.

This module provides the request flows behind the form page:
1. Generation - validate the form, build the prompt, call the model, interpret the reply
2. Auto-fill - look up specs for a URL or model number and hold them as a proposal
3. Save/Load - keep the form in a named slot and restore it later

Each browser session has its own SessionState; a newer generation request
supersedes an older one and late results are answered with 409.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request, session

from .config import JSON_EXTRACTION_STRATEGY, SAVED_PRODUCT_KEY
from .image_utils import process_label_image
from .llm_client import LLMTransportError, call_autofill_model, call_generation_model
from .logging_utils import log_interaction
from .models import ProductInput
from .prompts import build_autofill_prompt, build_generation_request
from .rendering import render_content
from .response_parser import (
    ResponseFormatError,
    confidence_score,
    interpret_autofill_response,
    interpret_generation_response,
)
from .session import AutofillProposal, SessionRegistry, SessionState
from .storage import CorruptStorageError, KeyValueStore, load_product_input, save_product_input
from .timing import get_timings, reset_timings
from .validation import InputValidationError, validate_product_input

__all__ = ["api", "registry"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

registry = SessionRegistry()

ApiResponse = Union[Response, Tuple[Response, int]]

UNEXPECTED_ERROR_MESSAGE = "Something went wrong while generating content. Please try again."


def _session_id() -> str:
    if "sid" not in session:
        session["sid"] = uuid.uuid4().hex
    return session["sid"]


def _current_state() -> SessionState:
    return registry.get(_session_id())


def _store() -> KeyValueStore:
    return current_app.config["PRODUCT_STORE"]


def _slot_key() -> str:
    return f"{_session_id()}:{SAVED_PRODUCT_KEY}"


def _error(message: str, status: int, **extra: Any) -> Tuple[Response, int]:
    return jsonify({"error": message, **extra}), status


def _read_product(data: Dict[str, Any]) -> Optional[ProductInput]:
    product_data = data.get("product_input")
    if not isinstance(product_data, dict):
        return None
    return ProductInput.from_dict(product_data)


@api.route("/session", methods=["GET"])
def get_session() -> Response:
    """Return the working product input, last result and request status."""
    state = _current_state()
    payload = state.to_dict()
    payload["view"] = render_content(state.generated_content) if state.generated_content else None
    return jsonify(payload)


@api.route("/product", methods=["PUT"])
def update_product() -> ApiResponse:
    """Replace the working product input with the form contents."""
    product = _read_product(request.get_json(silent=True) or {})
    if product is None:
        return _error("product_input must be an object", 400)
    _current_state().product_input = product
    return jsonify({"product_input": product.to_dict()})


@api.route("/generate", methods=["POST"])
def generate() -> ApiResponse:
    """Generate the listing content package.

    Request JSON:
        {
            "product_input": {...},          // ProductInput.to_dict() shape
            "image_base64": "optional label photo"
        }

    Response JSON (success):
        {"request_id": "...", "content": {...}, "view": {...}}

    Errors:
        400 with field_errors for invalid competitor rows or a bad image,
        502 with error_kind for transport and response-format failures,
        409 when a newer request superseded this one,
        500 with error_kind "unexpected" for anything else.
    """
    reset_timings()
    data = request.get_json(silent=True) or {}
    product = _read_product(data)
    if product is None:
        return _error("product_input must be an object", 400)

    try:
        validate_product_input(product)
    except InputValidationError as e:
        log_interaction("validation_error", {"field_errors": e.field_errors})
        return _error(str(e), 400, error_kind="validation", field_errors=e.field_errors)

    image, image_error = process_label_image(data.get("image_base64"))
    if image_error:
        return _error(image_error, 400, error_kind="image")
    product.oem_image = image

    state = _current_state()
    state.product_input = product
    request_id = state.begin_generation()

    log_interaction(
        "user_input",
        {
            "request_id": request_id,
            "product_input": product.to_dict(),
            "image_attached": image is not None,
        },
    )

    parts = build_generation_request(product)
    try:
        raw = call_generation_model(parts)
        content = interpret_generation_response(
            raw, cost_price=product.cost_price, strategy=JSON_EXTRACTION_STRATEGY
        )
    except (LLMTransportError, ResponseFormatError) as e:
        if not state.fail_generation(request_id, e.kind, e.user_message):
            return jsonify({"request_id": request_id, "superseded": True}), 409
        return _error(e.user_message, 502, error_kind=e.kind, request_id=request_id)
    except Exception as e:
        logger.exception(f"Unexpected error during generation {request_id}")
        log_interaction("generation_error", {"request_id": request_id, "error": str(e)})
        if not state.fail_generation(request_id, "unexpected", UNEXPECTED_ERROR_MESSAGE):
            return jsonify({"request_id": request_id, "superseded": True}), 409
        return _error(UNEXPECTED_ERROR_MESSAGE, 500, error_kind="unexpected", request_id=request_id)

    if not state.complete_generation(request_id, content):
        return jsonify({"request_id": request_id, "superseded": True}), 409

    log_interaction("performance", {"request_id": request_id, "timings": get_timings()})
    return jsonify(
        {
            "request_id": request_id,
            "content": content.to_dict(),
            "view": render_content(content),
        }
    )


@api.route("/autofill", methods=["POST"])
def autofill() -> ApiResponse:
    """Look up specs for a URL or model number.

    Request JSON:
        {"query": "https://... or 20L5CTO1WW"}

    The result is held as a proposal and only merged into the form by
    POST /api/autofill/apply.
    """
    data = request.get_json(silent=True) or {}
    query = data.get("query", "")
    if not isinstance(query, str) or not query.strip():
        return _error("query is required", 400)

    state = _current_state()
    request_id = state.begin_autofill()
    try:
        raw = call_autofill_model(build_autofill_prompt(query))
        specs = interpret_autofill_response(raw, strategy=JSON_EXTRACTION_STRATEGY)
    except (LLMTransportError, ResponseFormatError) as e:
        return _error(e.user_message, 502, error_kind=e.kind, request_id=request_id)

    proposal = AutofillProposal(query=query.strip(), specs=specs, confidence=confidence_score(specs))
    if not state.propose_autofill(request_id, proposal):
        return jsonify({"request_id": request_id, "superseded": True}), 409

    log_interaction("autofill_result", {"request_id": request_id, **proposal.to_dict()})
    return jsonify({"request_id": request_id, **proposal.to_dict()})


@api.route("/autofill/apply", methods=["POST"])
def apply_autofill() -> ApiResponse:
    state = _current_state()
    if not state.apply_autofill():
        return _error("No auto-fill proposal to apply.", 404)
    return jsonify({"product_input": state.product_input.to_dict()})


@api.route("/autofill/discard", methods=["POST"])
def discard_autofill() -> Response:
    _current_state().discard_autofill()
    return jsonify({"discarded": True})


@api.route("/product/save", methods=["POST"])
def save_product() -> ApiResponse:
    """Save the working product (or the posted one) to the saved slot."""
    state = _current_state()
    product = _read_product(request.get_json(silent=True) or {})
    if product is not None:
        state.product_input = product

    try:
        save_product_input(_store(), state.product_input, key=_slot_key())
    except OSError as e:
        log_interaction("storage_error", {"error": str(e), "operation": "save"})
        logger.exception("Failed to save product data")
        return _error("Could not save product data.", 500, error_kind="storage")
    return jsonify({"saved": True})


@api.route("/product/load", methods=["POST"])
def load_product() -> ApiResponse:
    """Replace the working product with the saved one."""
    try:
        product = load_product_input(_store(), key=_slot_key())
    except CorruptStorageError as e:
        return _error(e.user_message, 422, error_kind=e.kind)

    if product is None:
        return _error("No saved product data found.", 404)

    _current_state().product_input = product
    return jsonify({"product_input": product.to_dict()})


@api.route("/product/saved", methods=["GET"])
def has_saved_product() -> Response:
    """Whether the load button should be enabled."""
    try:
        available = _store().get(_slot_key()) is not None
    except CorruptStorageError:
        # Let the load attempt report the corruption
        available = True
    return jsonify({"available": available})
