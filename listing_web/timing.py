"""Per-request timing for LLM calls and local processing.

Example:
    with timer("llm_call_generation"):
        raw = call_generation_model(parts)

    log_interaction("performance", get_timings())
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from flask import g, has_request_context

__all__ = ["timer", "get_timings", "reset_timings", "TimingTracker"]


class TimingTracker:
    """Accumulate durations per named operation."""

    def __init__(self) -> None:
        self.durations: Dict[str, list] = {}

    def record(self, operation: str, seconds: float) -> None:
        self.durations.setdefault(operation, []).append(seconds)

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, time.perf_counter() - started)

    def get_all(self) -> Dict[str, Any]:
        """Return per-operation totals plus an LLM vs. app breakdown."""
        result: Dict[str, Any] = {}
        for op, values in self.durations.items():
            result[op] = {
                "count": len(values),
                "total_seconds": round(sum(values), 3),
                "max_seconds": round(max(values), 3),
            }

        if result:
            llm_time = sum(sum(v) for op, v in self.durations.items() if "llm" in op.lower())
            app_time = sum(sum(v) for op, v in self.durations.items() if "llm" not in op.lower())
            total_time = llm_time + app_time
            result["__summary__"] = {
                "total_seconds": round(total_time, 3),
                "llm_seconds": round(llm_time, 3),
                "llm_percent": round((llm_time / total_time * 100) if total_time > 0 else 0, 1),
                "app_seconds": round(app_time, 3),
            }
        return result

    def reset(self) -> None:
        self.durations.clear()


# Used outside a request (tests, scripts)
_tracker: Optional[TimingTracker] = None


def _get_tracker() -> TimingTracker:
    """Request-scoped tracker inside Flask, module-level tracker otherwise."""
    if has_request_context():
        if not hasattr(g, "timing_tracker"):
            g.timing_tracker = TimingTracker()
        return g.timing_tracker

    global _tracker
    if _tracker is None:
        _tracker = TimingTracker()
    return _tracker


@contextmanager
def timer(operation: str) -> Iterator[None]:
    """Time the enclosed block under ``operation``."""
    with _get_tracker().measure(operation):
        yield


def get_timings() -> Dict[str, Any]:
    return _get_tracker().get_all()


def reset_timings() -> None:
    _get_tracker().reset()
