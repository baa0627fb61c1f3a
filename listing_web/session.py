"""Per-browser session state.

Each browser session owns one working ProductInput, the last generated
content, and the status of its generation and auto-fill requests. A new
request supersedes any earlier one; results arriving for a superseded
request are dropped so stale content is never shown.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .models import GeneratedContent, ProductInput

__all__ = [
    "STATUS_IDLE",
    "STATUS_REQUESTING",
    "STATUS_SUCCEEDED",
    "STATUS_FAILED",
    "AutofillProposal",
    "SessionState",
    "SessionRegistry",
]

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_REQUESTING = "requesting"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"


@dataclass
class AutofillProposal:
    """Specs found by auto-fill, waiting for the user to apply or discard."""

    query: str
    specs: Dict[str, str]
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query, "specs": self.specs, "confidence": self.confidence}


@dataclass
class SessionState:
    """Mutable state of one browser session."""

    product_input: ProductInput = field(default_factory=ProductInput)
    generated_content: Optional[GeneratedContent] = None
    status: str = STATUS_IDLE
    error: Optional[Dict[str, str]] = None
    generation_request_id: Optional[str] = None
    autofill_request_id: Optional[str] = None
    autofill_proposal: Optional[AutofillProposal] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    # ---------- generation ----------

    def begin_generation(self) -> str:
        """Start a generation request, superseding any in flight."""
        with self._lock:
            if self.status == STATUS_REQUESTING:
                logger.info(f"Generation {self.generation_request_id} superseded")
            self.generation_request_id = uuid.uuid4().hex
            self.status = STATUS_REQUESTING
            self.error = None
            return self.generation_request_id

    def is_current_generation(self, request_id: str) -> bool:
        return request_id == self.generation_request_id

    def complete_generation(self, request_id: str, content: GeneratedContent) -> bool:
        """Store the result if ``request_id`` is still current.

        Returns:
            False when the request was superseded and the result discarded.
        """
        with self._lock:
            if not self.is_current_generation(request_id):
                logger.info(f"Discarding late result for superseded request {request_id}")
                return False
            # Replaced wholesale, never merged with the previous result
            self.generated_content = content
            self.status = STATUS_SUCCEEDED
            self.error = None
            return True

    def fail_generation(self, request_id: str, kind: str, message: str) -> bool:
        with self._lock:
            if not self.is_current_generation(request_id):
                logger.info(f"Discarding late error for superseded request {request_id}")
                return False
            self.status = STATUS_FAILED
            self.error = {"kind": kind, "message": message}
            return True

    @property
    def is_busy(self) -> bool:
        return self.status == STATUS_REQUESTING

    # ---------- auto-fill ----------

    def begin_autofill(self) -> str:
        with self._lock:
            self.autofill_request_id = uuid.uuid4().hex
            self.autofill_proposal = None
            return self.autofill_request_id

    def propose_autofill(self, request_id: str, proposal: AutofillProposal) -> bool:
        with self._lock:
            if request_id != self.autofill_request_id:
                logger.info(f"Discarding late auto-fill result {request_id}")
                return False
            self.autofill_proposal = proposal
            return True

    def apply_autofill(self) -> bool:
        """Merge the pending proposal into the label data on explicit confirmation."""
        with self._lock:
            if self.autofill_proposal is None:
                return False
            self.product_input.oem_label_data = self.product_input.oem_label_data.merged_with(
                self.autofill_proposal.specs
            )
            self.autofill_proposal = None
            return True

    def discard_autofill(self) -> None:
        with self._lock:
            self.autofill_proposal = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_input": self.product_input.to_dict(),
            "status": self.status,
            "error": self.error,
            "generated_content": (
                self.generated_content.to_dict() if self.generated_content else None
            ),
            "autofill_proposal": (
                self.autofill_proposal.to_dict() if self.autofill_proposal else None
            ),
        }


class SessionRegistry:
    """In-memory map of session id to SessionState."""

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = SessionState()
                self._sessions[session_id] = state
            return state

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
