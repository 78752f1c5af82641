"""Performance timing tracker for gateway and app operations.

Example:
    from bazaar.timing import timer, get_timings

    with timer("gateway_product_content"):
        content = gateway.generate_product_content(name, category)

    log_interaction("performance", get_timings())
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from flask import g, has_request_context

__all__ = ["timer", "get_timings", "reset_timings", "TimingTracker"]


class TimingTracker:
    """Track timing for multiple operations within a request."""

    def __init__(self):
        self.timings: Dict[str, Dict[str, Any]] = {}
        self.active_timers: Dict[str, float] = {}

    def start(self, operation: str) -> None:
        self.active_timers[operation] = time.perf_counter()

    def end(self, operation: str) -> float:
        """End timing and return duration in seconds."""
        if operation not in self.active_timers:
            return 0.0

        duration = time.perf_counter() - self.active_timers.pop(operation)

        stats = self.timings.setdefault(
            operation,
            {"count": 0, "total_seconds": 0.0, "max_seconds": 0.0},
        )
        stats["count"] += 1
        stats["total_seconds"] += duration
        stats["max_seconds"] = max(stats["max_seconds"], duration)

        return duration

    @contextmanager
    def measure(self, operation: str):
        self.start(operation)
        try:
            yield
        finally:
            self.end(operation)

    def get_all(self) -> Dict[str, Any]:
        """Get all timings, rounded for JSON serialization."""
        result = {}
        for op, stats in self.timings.items():
            result[op] = {
                "count": stats["count"],
                "total_seconds": round(stats["total_seconds"], 3),
                "avg_seconds": round(stats["total_seconds"] / stats["count"], 3),
                "max_seconds": round(stats["max_seconds"], 3),
            }

        if result:
            gateway_time = sum(
                stats["total_seconds"] for op, stats in self.timings.items() if op.startswith("gateway")
            )
            total_time = sum(stats["total_seconds"] for stats in self.timings.values())
            result["__summary__"] = {
                "total_seconds": round(total_time, 3),
                "gateway_seconds": round(gateway_time, 3),
                "gateway_percent": round((gateway_time / total_time * 100) if total_time > 0 else 0, 1),
            }

        return result

    def reset(self) -> None:
        self.timings.clear()
        self.active_timers.clear()


# Global tracker instance for non-Flask contexts (e.g., tests)
_tracker: Optional[TimingTracker] = None


def _get_tracker() -> TimingTracker:
    """Get the tracker for the current context.

    In Flask request context, uses flask.g for per-request storage.
    Otherwise, uses a process-wide tracker.
    """
    if has_request_context():
        if not hasattr(g, "timing_tracker"):
            g.timing_tracker = TimingTracker()
        return g.timing_tracker

    global _tracker
    if _tracker is None:
        _tracker = TimingTracker()
    return _tracker


@contextmanager
def timer(operation: str):
    """Context manager for timing an operation.

    Operation names starting with "gateway" count towards the gateway share
    in the summary.
    """
    with _get_tracker().measure(operation):
        yield


def get_timings() -> Dict[str, Any]:
    return _get_tracker().get_all()


def reset_timings() -> None:
    _get_tracker().reset()
