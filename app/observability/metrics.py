"""Prometheus-style metrics collector. Thread-safe, in-memory. No real Prometheus dependency."""

import threading
from typing import Any


class MetricsCollector:
    """
    In-memory Prometheus-style counter registry.
    Thread-safe. Exposes increment, export_metrics, reset.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Counters: name -> value or name -> {labels_key -> value}
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        record_type: str | None = None,
        role: str | None = None,
    ) -> None:
        """Increment a counter. Optional record_type or role for dimensional metrics."""
        with self._lock:
            if record_type is not None:
                key = f"{name}:record_type={record_type}"
            elif role is not None:
                key = f"{name}:role={role}"
            else:
                self._counters[name] = self._counters.get(name, 0) + value
                return
            bucket = self._counters_by_labels.setdefault(name, {})
            bucket[key] = bucket.get(key, 0) + value

    def get(self, name: str) -> float:
        """Unlabelled counter value plus every labelled series of the same name."""
        with self._lock:
            total = self._counters.get(name, 0)
            total += sum(self._counters_by_labels.get(name, {}).values())
            return total

    def export_metrics(self) -> dict[str, Any]:
        """Export all metrics as a dict (simulated Prometheus-style)."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "counters_by_labels": {
                    k: dict(v) for k, v in self._counters_by_labels.items()
                },
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._counters_by_labels.clear()
