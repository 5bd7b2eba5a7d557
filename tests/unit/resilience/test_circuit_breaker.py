"""Unit tests for circuit breaker functionality"""
import pytest
import pybreaker

from goalmate.resilience.circuit_breaker import (
    INSIGHT_BREAKER,
    CircuitBreakerListener,
    with_circuit_breaker,
)


@pytest.fixture
def breaker():
    """Fresh breaker per test so state never leaks"""
    return pybreaker.CircuitBreaker(
        fail_max=3,
        reset_timeout=60,
        name="test_breaker",
        listeners=[CircuitBreakerListener()]
    )


@pytest.mark.asyncio
async def test_circuit_breaker_closes_on_success(breaker):
    """Test that circuit breaker remains CLOSED when calls succeed"""

    @with_circuit_breaker(breaker)
    async def successful_function():
        return "success"

    for _ in range(10):
        assert await successful_function() == "success"

    assert breaker.current_state == pybreaker.STATE_CLOSED


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_failures(breaker):
    """Test that circuit breaker opens after threshold failures"""

    @with_circuit_breaker(breaker)
    async def failing_function():
        raise RuntimeError("Simulated failure")

    for _ in range(2):
        with pytest.raises(RuntimeError, match="Simulated failure"):
            await failing_function()

    # The failure that reaches the threshold trips the breaker
    with pytest.raises((RuntimeError, pybreaker.CircuitBreakerError)):
        await failing_function()

    assert breaker.current_state == pybreaker.STATE_OPEN


@pytest.mark.asyncio
async def test_circuit_breaker_fails_fast_when_open(breaker):
    """Test that an OPEN breaker doesn't call the function"""
    call_count = 0

    @with_circuit_breaker(breaker)
    async def failing_function():
        nonlocal call_count
        call_count += 1
        raise RuntimeError("Simulated failure")

    for _ in range(3):
        with pytest.raises(Exception):
            await failing_function()
    assert call_count == 3

    with pytest.raises(pybreaker.CircuitBreakerError):
        await failing_function()
    assert call_count == 3


@pytest.mark.asyncio
async def test_circuit_breaker_listener_state_change():
    """Test that the listener sees the CLOSED -> OPEN transition"""
    listener = CircuitBreakerListener()
    state_changes = []
    original_state_change = listener.state_change

    def tracked_state_change(cb, old_state, new_state):
        state_changes.append((old_state.name, new_state.name))
        original_state_change(cb, old_state, new_state)

    listener.state_change = tracked_state_change
    test_breaker = pybreaker.CircuitBreaker(
        fail_max=2,
        reset_timeout=1,
        name="listener_breaker",
        listeners=[listener]
    )

    @with_circuit_breaker(test_breaker)
    async def failing_function():
        raise RuntimeError("Test failure")

    for _ in range(2):
        with pytest.raises(Exception):
            await failing_function()

    assert state_changes[-1][1] == "open"


def test_insight_breaker_configuration():
    assert INSIGHT_BREAKER.name == "insight_provider"
    assert INSIGHT_BREAKER.fail_max == 5
    assert INSIGHT_BREAKER.reset_timeout == 60
