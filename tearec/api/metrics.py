"""Metrics service for the recommender.

Singleton service tracking recommendation calls and training rounds.
"""

import threading
from typing import Dict, Optional


class MetricsService:
    """Singleton service for tracking service metrics.

    Thread-safe counters for recommendation latency and training outcomes.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._recommendation_count = 0
        self._fallback_count = 0
        self._total_latency_ms = 0.0
        self._max_latency_ms = 0.0
        self._training_succeeded = 0
        self._training_failed = 0
        self._last_training_ms: Optional[float] = None

    def record_recommendation(self, latency_ms: float) -> None:
        """Record a recommendation call with its latency.

        Args:
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._recommendation_count += 1
            self._total_latency_ms += latency_ms
            if latency_ms > self._max_latency_ms:
                self._max_latency_ms = latency_ms

    def record_fallback(self) -> None:
        """Record a request answered by the fallback recommender."""
        with self._lock:
            self._fallback_count += 1

    def record_training(self, duration_ms: float, succeeded: bool) -> None:
        """Record the outcome of a training round."""
        with self._lock:
            if succeeded:
                self._training_succeeded += 1
            else:
                self._training_failed += 1
            self._last_training_ms = duration_ms

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with recommendation and fallback counts, latency,
            and training round counts with the duration of the last round.
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._recommendation_count
                if self._recommendation_count > 0
                else 0.0
            )

            return {
                "recommendation_count": self._recommendation_count,
                "fallback_count": self._fallback_count,
                "average_latency_ms": round(avg_latency, 2),
                "max_latency_ms": round(self._max_latency_ms, 2),
                "training_succeeded": self._training_succeeded,
                "training_failed": self._training_failed,
                "last_training_ms": self._last_training_ms,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
