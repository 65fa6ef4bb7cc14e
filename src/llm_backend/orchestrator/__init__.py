"""Backend orchestration: selection, retry and failover."""

from .retry_handler import RetryHandler
from .router import BackendRouter
from .service import LlmService
from .statistics import StatisticsRegistry

__all__ = ["BackendRouter", "LlmService", "RetryHandler", "StatisticsRegistry"]
