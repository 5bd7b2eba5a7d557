"""Resilience patterns for external calls

Circuit breaker, retry with backoff and metrics for the insight provider,
so a flaky or absent provider degrades to default text instead of failing.
"""

from goalmate.resilience.circuit_breaker import INSIGHT_BREAKER, with_circuit_breaker
from goalmate.resilience.retry import retry_with_backoff
from goalmate.resilience.metrics import (
    record_circuit_breaker_state,
    record_provider_call,
    record_provider_failure,
    record_retry,
    record_default_used,
    record_persistence_result,
)

__all__ = [
    # Circuit Breakers
    "INSIGHT_BREAKER",
    "with_circuit_breaker",
    # Retry
    "retry_with_backoff",
    # Metrics
    "record_circuit_breaker_state",
    "record_provider_call",
    "record_provider_failure",
    "record_retry",
    "record_default_used",
    "record_persistence_result",
]
