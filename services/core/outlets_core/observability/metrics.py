"""In-process metrics for the outlets service.

Counters and histograms kept in memory and exposed through /metrics.
Each histogram keeps only its most recent samples.
"""

import threading
from collections import deque
from typing import Any, Optional


DEFAULT_MAX_SAMPLES = 1000


class MetricsCollector:
    """Thread-safe metrics collector."""

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES):
        self._lock = threading.RLock()
        self._max_samples = max_samples
        self._counters: dict[str, float] = {}
        self._histograms: dict[str, deque[float]] = {}

    def _make_key(self, name: str, labels: Optional[dict[str, str]] = None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def increment(
        self,
        name: str,
        value: float = 1.0,
        labels: Optional[dict[str, str]] = None,
    ) -> None:
        """Increment a counter."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def record_histogram(
        self,
        name: str,
        value: float,
        labels: Optional[dict[str, str]] = None,
    ) -> None:
        """Record a value in a histogram, dropping the oldest past the cap."""
        key = self._make_key(name, labels)
        with self._lock:
            samples = self._histograms.get(key)
            if samples is None:
                samples = self._histograms[key] = deque(maxlen=self._max_samples)
            samples.append(value)

    def get(self, name: str, labels: Optional[dict[str, str]] = None) -> float:
        """Get a counter value, or 0 if it was never incremented."""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def get_histogram_stats(
        self,
        name: str,
        labels: Optional[dict[str, str]] = None,
    ) -> dict[str, float]:
        """Get count, min, max, avg and percentiles for a histogram."""
        key = self._make_key(name, labels)
        with self._lock:
            values = list(self._histograms.get(key, []))

        if not values:
            return {"count": 0, "min": 0, "max": 0, "avg": 0}

        sorted_values = sorted(values)
        count = len(values)

        return {
            "count": count,
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "avg": sum(values) / count,
            "p50": sorted_values[int(count * 0.5)],
            "p95": sorted_values[min(int(count * 0.95), count - 1)],
            "p99": sorted_values[min(int(count * 0.99), count - 1)],
        }

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "histograms": {
                    k: self.get_histogram_stats(k) for k in self._histograms.keys()
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


# Global metrics collector instance
_collector = MetricsCollector()


def get_collector() -> MetricsCollector:
    """Get the global metrics collector."""
    return _collector
