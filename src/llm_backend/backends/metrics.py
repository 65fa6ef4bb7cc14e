"""Per-adapter latency and outcome bookkeeping."""

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, Optional

LATENCY_WINDOW = 100


@dataclass(frozen=True)
class MetricsSnapshot:
    average_latency_ms: Optional[float]
    success_count: int
    failure_count: int
    last_error: Optional[str]
    last_successful_request: Optional[datetime]


class BackendMetrics:
    """Rolling latency window and success/failure counters for one adapter.

    Safe to update from concurrent tasks and threads.
    """

    def __init__(self, window: int = LATENCY_WINDOW):
        self._lock = threading.Lock()
        self._latencies: Deque[float] = deque(maxlen=window)
        self._success_count = 0
        self._failure_count = 0
        self._last_error: Optional[str] = None
        self._last_success_at: Optional[datetime] = None

    def record_success(self, latency_ms: float) -> None:
        with self._lock:
            self._latencies.append(latency_ms)
            self._success_count += 1
            self._last_success_at = datetime.now(timezone.utc)

    def record_failure(self, error: str) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_error = error

    @property
    def average_latency_ms(self) -> Optional[float]:
        with self._lock:
            if not self._latencies:
                return None
            return sum(self._latencies) / len(self._latencies)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            avg = sum(self._latencies) / len(self._latencies) if self._latencies else None
            return MetricsSnapshot(
                average_latency_ms=avg,
                success_count=self._success_count,
                failure_count=self._failure_count,
                last_error=self._last_error,
                last_successful_request=self._last_success_at,
            )
