"""Process-wide per-backend statistics used for selection and reporting."""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, Optional

from ..backends.metrics import LATENCY_WINDOW
from ..schemas.llm import BackendStatistics


@dataclass
class _Record:
    name: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    latencies: Deque[float] = field(default_factory=lambda: deque(maxlen=LATENCY_WINDOW))
    last_used: Optional[datetime] = None
    is_available: bool = True
    last_error: Optional[str] = None

    def average_latency(self) -> Optional[float]:
        if not self.latencies:
            return None
        return sum(self.latencies) / len(self.latencies)


class StatisticsRegistry:
    """Backend name -> live counters.

    Names are matched case-insensitively. Updates for one backend are
    serialized; reads return copies.
    """

    def __init__(self, window: int = LATENCY_WINDOW):
        self._lock = threading.Lock()
        self._window = window
        self._records: Dict[str, _Record] = {}

    def _record(self, name: str) -> _Record:
        key = name.casefold()
        record = self._records.get(key)
        if record is None:
            record = _Record(name=name, latencies=deque(maxlen=self._window))
            self._records[key] = record
        return record

    def register(self, name: str) -> None:
        with self._lock:
            self._record(name)

    def record_success(self, name: str, latency_ms: float) -> None:
        with self._lock:
            record = self._record(name)
            record.total_requests += 1
            record.successful_requests += 1
            record.latencies.append(latency_ms)
            record.last_used = datetime.now(timezone.utc)
            record.is_available = True

    def record_failure(self, name: str, error: Optional[str] = None, latency_ms: Optional[float] = None) -> None:
        """Record a failed attempt.

        ``latency_ms`` is only sampled when the backend actually answered;
        raised exceptions pass ``None``.
        """
        with self._lock:
            record = self._record(name)
            record.total_requests += 1
            record.failed_requests += 1
            if latency_ms is not None:
                record.latencies.append(latency_ms)
            record.last_used = datetime.now(timezone.utc)
            record.is_available = False
            record.last_error = error

    def average_latency(self, name: str) -> Optional[float]:
        with self._lock:
            record = self._records.get(name.casefold())
            return record.average_latency() if record else None

    def get(self, name: str) -> Optional[BackendStatistics]:
        with self._lock:
            record = self._records.get(name.casefold())
            return self._snapshot(record) if record else None

    def snapshot(self) -> Dict[str, BackendStatistics]:
        with self._lock:
            return {record.name: self._snapshot(record) for record in self._records.values()}

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    @staticmethod
    def _snapshot(record: _Record) -> BackendStatistics:
        return BackendStatistics(
            backend_name=record.name,
            total_requests=record.total_requests,
            successful_requests=record.successful_requests,
            failed_requests=record.failed_requests,
            average_latency_ms=record.average_latency(),
            last_used=record.last_used,
            is_available=record.is_available,
            last_error=record.last_error,
        )
