"""Circuit breaker for the insight provider

After repeated provider failures the breaker opens and calls fail fast, so
verification dialogs and quest requests go straight to their default text.
After ``reset_timeout`` one probe call is let through (half-open).
"""

import logging
from functools import wraps
from typing import Any, Callable

import pybreaker

from goalmate.resilience.metrics import record_circuit_breaker_state

logger = logging.getLogger(__name__)

INSIGHT_FAIL_MAX = 5
INSIGHT_RESET_TIMEOUT = 60  # seconds


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Logs breaker activity and mirrors its state into the metrics gauge"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        logger.warning(f"[CIRCUIT_BREAKER] {cb.name}: {old_state.name} -> {new_state.name}")
        record_circuit_breaker_state(cb.name, new_state.name.lower().replace("-", "_"))

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.error(
            f"[CIRCUIT_BREAKER] {cb.name} failure {cb.fail_counter}/{cb.fail_max}: "
            f"{type(exc).__name__}: {exc}"
        )

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} call succeeded")


INSIGHT_BREAKER = pybreaker.CircuitBreaker(
    fail_max=INSIGHT_FAIL_MAX,
    reset_timeout=INSIGHT_RESET_TIMEOUT,
    name="insight_provider",
    listeners=[CircuitBreakerListener()]
)


def with_circuit_breaker(breaker: pybreaker.CircuitBreaker) -> Callable:
    """Route an async provider call through ``breaker``.

    Raises pybreaker.CircuitBreakerError without calling the function while
    the breaker is open.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await breaker.call_async(func, *args, **kwargs)
            except pybreaker.CircuitBreakerError:
                logger.warning(f"[CIRCUIT_BREAKER] {breaker.name} open, skipping {func.__name__}")
                raise
        return wrapper
    return decorator
