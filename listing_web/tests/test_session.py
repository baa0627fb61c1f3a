"""Test the per-session request state machine."""

import threading

from listing_web.models import GeneratedContent, OEMLabelData, PricingAnalysis
from listing_web.session import (
    STATUS_FAILED,
    STATUS_IDLE,
    STATUS_REQUESTING,
    STATUS_SUCCEEDED,
    AutofillProposal,
    SessionRegistry,
    SessionState,
)


def _content(title):
    return GeneratedContent(productTitle=title, pricingAnalysis=PricingAnalysis())


class TestGenerationLifecycle:
    def test_starts_idle(self):
        assert SessionState().status == STATUS_IDLE

    def test_success(self):
        state = SessionState()
        request_id = state.begin_generation()
        assert state.status == STATUS_REQUESTING
        assert state.is_busy
        assert state.complete_generation(request_id, _content("A"))
        assert state.status == STATUS_SUCCEEDED
        assert state.generated_content.productTitle == "A"
        assert not state.is_busy

    def test_failure(self):
        state = SessionState()
        request_id = state.begin_generation()
        assert state.fail_generation(request_id, "malformed_json", "bad")
        assert state.status == STATUS_FAILED
        assert state.error == {"kind": "malformed_json", "message": "bad"}

    def test_new_request_clears_error(self):
        state = SessionState()
        state.fail_generation(state.begin_generation(), "transport", "down")
        state.begin_generation()
        assert state.error is None

    def test_late_result_is_ignored(self):
        """A superseded request must not overwrite the newer result."""
        state = SessionState()
        first = state.begin_generation()
        second = state.begin_generation()
        assert state.complete_generation(second, _content("new"))
        assert not state.complete_generation(first, _content("stale"))
        assert state.generated_content.productTitle == "new"

    def test_late_error_is_ignored(self):
        state = SessionState()
        first = state.begin_generation()
        second = state.begin_generation()
        assert not state.fail_generation(first, "transport", "late")
        assert state.status == STATUS_REQUESTING
        assert state.complete_generation(second, _content("ok"))

    def test_result_replaced_not_merged(self):
        state = SessionState()
        state.complete_generation(state.begin_generation(), _content("first"))
        replacement = _content("second")
        state.complete_generation(state.begin_generation(), replacement)
        assert state.generated_content is replacement


class TestConcurrentTransitions:
    """Transitions from handler threads serialize on the state lock."""

    def test_final_result_belongs_to_current_request(self):
        state = SessionState()

        def run():
            for _ in range(50):
                request_id = state.begin_generation()
                state.complete_generation(request_id, _content(request_id))

        threads = [threading.Thread(target=run) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert state.status == STATUS_SUCCEEDED
        assert state.generated_content.productTitle == state.generation_request_id

    def test_completion_waits_for_lock_holder(self):
        state = SessionState()
        request_id = state.begin_generation()
        done = threading.Event()

        def complete():
            state.complete_generation(request_id, _content("A"))
            done.set()

        with state._lock:
            worker = threading.Thread(target=complete)
            worker.start()
            assert not done.wait(0.05)
            assert state.status == STATUS_REQUESTING
        worker.join()
        assert state.status == STATUS_SUCCEEDED


class TestAutofillProposal:
    def test_apply_requires_confirmation(self):
        state = SessionState()
        state.product_input.oem_label_data = OEMLabelData(brand="Lenovo", cpu="i5")
        request_id = state.begin_autofill()
        proposal = AutofillProposal(query="T480", specs={"cpu": "i7", "brand": ""}, confidence=8)
        assert state.propose_autofill(request_id, proposal)
        # Nothing merged yet
        assert state.product_input.oem_label_data.cpu == "i5"

        assert state.apply_autofill()
        assert state.product_input.oem_label_data.cpu == "i7"
        assert state.product_input.oem_label_data.brand == "Lenovo"
        assert state.autofill_proposal is None

    def test_discard(self):
        state = SessionState()
        request_id = state.begin_autofill()
        state.propose_autofill(request_id, AutofillProposal("x", {"cpu": "i7"}, 8))
        state.discard_autofill()
        assert not state.apply_autofill()
        assert state.product_input.oem_label_data.cpu == ""

    def test_stale_proposal_ignored(self):
        state = SessionState()
        first = state.begin_autofill()
        state.begin_autofill()
        assert not state.propose_autofill(first, AutofillProposal("x", {"cpu": "i7"}, 8))
        assert state.autofill_proposal is None


class TestSessionRegistry:
    def test_same_id_same_state(self):
        registry = SessionRegistry()
        assert registry.get("a") is registry.get("a")
        assert registry.get("a") is not registry.get("b")

    def test_to_dict(self):
        data = SessionState().to_dict()
        assert data["status"] == STATUS_IDLE
        assert data["generated_content"] is None
        assert data["autofill_proposal"] is None
