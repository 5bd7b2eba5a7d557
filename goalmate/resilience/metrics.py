"""Prometheus metrics for provider calls and check-in persistence

Recording never raises: a metrics failure is logged and ignored.
"""

import logging
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

# Circuit breaker state
# Values: closed, open, half_open
circuit_breaker_state = Enum(
    'goalmate_circuit_breaker_state',
    'Current state of circuit breaker',
    ['breaker'],
    states=['closed', 'open', 'half_open']
)

# Labels: call (question/acknowledgment/weekly_quest/chat_reply/modules), status (success/failure)
provider_calls_total = Counter(
    'goalmate_provider_calls_total',
    'Total number of insight provider calls',
    ['call', 'status']
)

provider_call_duration = Histogram(
    'goalmate_provider_call_duration_seconds',
    'Duration of insight provider calls in seconds',
    ['call'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float('inf'))
)

# Labels: call, error_type (APITimeoutError/RateLimitError/etc)
provider_failures_total = Counter(
    'goalmate_provider_failures_total',
    'Total number of insight provider failures',
    ['call', 'error_type']
)

provider_retries_total = Counter(
    'goalmate_provider_retries_total',
    'Total number of provider retry attempts',
    ['call']
)

# Labels: call, reason (unconfigured/error/empty)
provider_defaults_total = Counter(
    'goalmate_provider_defaults_total',
    'Total number of times a default text replaced a provider response',
    ['call', 'reason']
)

# Labels: status (success/failure)
checkin_persistence_total = Counter(
    'goalmate_checkin_persistence_total',
    'Check-in persistence attempts',
    ['status']
)


def record_circuit_breaker_state(breaker: str, state: str) -> None:
    """
    Record circuit breaker state change.

    Args:
        breaker: Breaker name (insight_provider)
        state: New state (closed, open, half_open)
    """
    try:
        circuit_breaker_state.labels(breaker=breaker).state(state)
        logger.debug(f"[METRICS] Circuit breaker {breaker} state: {state}")
    except Exception as e:
        logger.error(f"Failed to record circuit breaker state: {e}")


def record_provider_call(call: str, success: bool, duration: float) -> None:
    try:
        status = 'success' if success else 'failure'
        provider_calls_total.labels(call=call, status=status).inc()
        provider_call_duration.labels(call=call).observe(duration)
        logger.debug(f"[METRICS] Provider call {call}: {status}, duration: {duration:.2f}s")
    except Exception as e:
        logger.error(f"Failed to record provider call metrics: {e}")


def record_provider_failure(call: str, error_type: str) -> None:
    try:
        provider_failures_total.labels(call=call, error_type=error_type).inc()
        logger.debug(f"[METRICS] Provider failure {call}: {error_type}")
    except Exception as e:
        logger.error(f"Failed to record provider failure: {e}")


def record_retry(call: str) -> None:
    try:
        provider_retries_total.labels(call=call).inc()
        logger.debug(f"[METRICS] Retry attempt for {call}")
    except Exception as e:
        logger.error(f"Failed to record retry: {e}")


def record_default_used(call: str, reason: str) -> None:
    """
    Record that a call site fell back to its default text.

    Args:
        call: Provider call name
        reason: Why (unconfigured, error, empty)
    """
    try:
        provider_defaults_total.labels(call=call, reason=reason).inc()
        logger.debug(f"[METRICS] Default used for {call}: {reason}")
    except Exception as e:
        logger.error(f"Failed to record default usage: {e}")


def record_persistence_result(success: bool) -> None:
    try:
        checkin_persistence_total.labels(status='success' if success else 'failure').inc()
    except Exception as e:
        logger.error(f"Failed to record persistence result: {e}")
