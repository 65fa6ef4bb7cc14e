"""Backend selection strategies."""

import math
import random
import threading
from typing import List, Optional, Sequence

import structlog

from ..backends.base import BaseBackend
from ..schemas.llm import SelectionStrategy
from .statistics import StatisticsRegistry

logger = structlog.get_logger()


class BackendRouter:
    """Turns the configured backends into an ordered candidate list per request.

    Disabled backends never appear. An explicit backend name (per request, or
    the configured one under ``SPECIFIC``) yields a singleton list, or an
    empty list when the name is unknown or disabled.
    """

    def __init__(
        self,
        backends: Sequence[BaseBackend],
        statistics: StatisticsRegistry,
        strategy: SelectionStrategy = SelectionStrategy.FAILOVER,
        specific_backend: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize router."""
        self.backends = list(backends)
        self.statistics = statistics
        self.strategy = strategy
        self.specific_backend = specific_backend
        self._rng = rng or random.Random()
        self._round_robin_index = 0
        self._lock = threading.Lock()

    @property
    def enabled_backends(self) -> List[BaseBackend]:
        return [b for b in self.backends if b.enabled]

    def find(self, name: str) -> Optional[BaseBackend]:
        wanted = name.casefold()
        for backend in self.backends:
            if backend.name.casefold() == wanted:
                return backend
        return None

    def select(self, preferred_backend: Optional[str] = None) -> List[BaseBackend]:
        if preferred_backend:
            return self._select_named(preferred_backend)

        if self.strategy == SelectionStrategy.SPECIFIC:
            if not self.specific_backend:
                logger.warning("Specific strategy without a configured backend")
                return []
            return self._select_named(self.specific_backend)

        candidates = self.enabled_backends
        if not candidates:
            return []

        if self.strategy == SelectionStrategy.FAILOVER:
            return self._failover_order(candidates)
        if self.strategy == SelectionStrategy.ROUND_ROBIN:
            return self._round_robin_order(candidates)
        if self.strategy == SelectionStrategy.LOWEST_LATENCY:
            return self._lowest_latency_order(candidates)
        if self.strategy == SelectionStrategy.RANDOM:
            return self._random_order(candidates)

        raise ValueError(f"Unhandled selection strategy: {self.strategy}")

    def _select_named(self, name: str) -> List[BaseBackend]:
        backend = self.find(name)
        if backend is None:
            logger.warning("Requested backend not found", backend=name)
            return []
        if not backend.enabled:
            logger.warning("Requested backend is disabled", backend=name)
            return []
        return [backend]

    def _failover_order(self, candidates: List[BaseBackend]) -> List[BaseBackend]:
        return sorted(candidates, key=lambda b: (b.priority, b.name.casefold()))

    def _round_robin_order(self, candidates: List[BaseBackend]) -> List[BaseBackend]:
        with self._lock:
            index = self._round_robin_index
            self._round_robin_index += 1
        start = index % len(candidates)
        return candidates[start:] + candidates[:start]

    def _lowest_latency_order(self, candidates: List[BaseBackend]) -> List[BaseBackend]:
        def latency_key(backend: BaseBackend):
            avg = self.statistics.average_latency(backend.name)
            return (math.inf if avg is None else avg, backend.name.casefold())

        return sorted(candidates, key=latency_key)

    def _random_order(self, candidates: List[BaseBackend]) -> List[BaseBackend]:
        shuffled = list(candidates)
        self._rng.shuffle(shuffled)
        return shuffled
