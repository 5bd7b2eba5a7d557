"""Unit tests for VerificationService (goalmate/services/verification_service.py)"""
import asyncio

import pytest
from unittest.mock import AsyncMock

from goalmate.exceptions import (
    OperationInProgressError,
    RecordNotFoundError,
    StaleOperationError,
    ValidationError,
)
from goalmate.models.goal import ModuleStatus
from goalmate.services.verification_service import VerificationService


@pytest.fixture
def service(session, mock_generator):
    return VerificationService(session, mock_generator)


# ============================================================================
# Happy Path Tests
# ============================================================================

@pytest.mark.asyncio
async def test_verify_flow_awards_xp(service, session, learning_goal, mock_generator, today):
    module = learning_goal.modules[0]

    attempt = await service.begin(learning_goal.id, module.id)
    assert attempt.question == "What does JSX compile to?"

    result = await service.submit_answer(attempt, "Calls to React.createElement", today=today)

    assert result["acknowledgment"] == "Great effort! Keep going."
    assert result["xp_awarded"] == 10
    assert module.verified is True
    assert module.status == ModuleStatus.COMPLETED
    assert session.profile.experience == 10
    assert session.guard.in_flight(attempt.key) is False
    mock_generator.acknowledge.assert_awaited_once_with(
        "Learn React", "Introduction to JSX", "What does JSX compile to?", "Calls to React.createElement"
    )


@pytest.mark.asyncio
async def test_self_complete_closes_attempt(service, session, learning_goal):
    module = learning_goal.modules[1]
    attempt = await service.begin(learning_goal.id, module.id)

    result = service.self_complete(attempt)

    assert result["changed"] is True
    assert module.status == ModuleStatus.COMPLETED
    assert module.verified is False
    assert session.profile.experience == 0
    assert session.guard.in_flight(attempt.key) is False


# ============================================================================
# Validation Tests
# ============================================================================

@pytest.mark.asyncio
async def test_empty_answer_rejected_attempt_stays_open(service, session, learning_goal, today):
    attempt = await service.begin(learning_goal.id, learning_goal.modules[0].id)

    with pytest.raises(ValidationError):
        await service.submit_answer(attempt, "   ", today=today)

    assert session.guard.is_current(attempt.key, attempt.token)
    assert learning_goal.modules[0].status == ModuleStatus.PENDING

    result = await service.submit_answer(attempt, "A real answer", today=today)
    assert result["module"].verified is True


@pytest.mark.asyncio
async def test_unknown_module(service, learning_goal):
    with pytest.raises(RecordNotFoundError):
        await service.begin(learning_goal.id, "m_missing")


# ============================================================================
# Concurrency and Cancellation Tests
# ============================================================================

@pytest.mark.asyncio
async def test_second_attempt_on_same_module_rejected(service, learning_goal):
    module = learning_goal.modules[0]
    await service.begin(learning_goal.id, module.id)

    with pytest.raises(OperationInProgressError):
        await service.begin(learning_goal.id, module.id)


@pytest.mark.asyncio
async def test_attempts_on_different_modules_allowed(service, learning_goal):
    first = await service.begin(learning_goal.id, learning_goal.modules[0].id)
    second = await service.begin(learning_goal.id, learning_goal.modules[1].id)

    assert first.token != second.token


@pytest.mark.asyncio
async def test_cancel_during_acknowledgment_discards_result(session, learning_goal, mock_generator, today):
    """Test a late acknowledgment after the dialog closed applies nothing"""
    gate = asyncio.Event()

    async def slow_acknowledge(*args):
        await gate.wait()
        return "Thanks!"

    mock_generator.acknowledge = AsyncMock(side_effect=slow_acknowledge)
    service = VerificationService(session, mock_generator)
    module = learning_goal.modules[0]

    attempt = await service.begin(learning_goal.id, module.id)
    pending = asyncio.ensure_future(service.submit_answer(attempt, "An answer", today=today))
    await asyncio.sleep(0)

    assert service.cancel(attempt) is True
    gate.set()
    result = await pending

    assert result is None
    assert module.status == ModuleStatus.PENDING
    assert module.verified is False
    assert session.profile.experience == 0


@pytest.mark.asyncio
async def test_cancel_while_question_loading(session, learning_goal, mock_generator):
    gate = asyncio.Event()

    async def slow_question(*args):
        await gate.wait()
        return "Late question?"

    mock_generator.ask_module_question = AsyncMock(side_effect=slow_question)
    service = VerificationService(session, mock_generator)
    module = learning_goal.modules[0]

    pending = asyncio.ensure_future(service.begin(learning_goal.id, module.id))
    await asyncio.sleep(0)
    service.cancel_module(learning_goal.id, module.id)
    gate.set()

    assert await pending is None
    # The module is free for a new attempt
    attempt = await service.begin(learning_goal.id, module.id)
    assert attempt is not None


@pytest.mark.asyncio
async def test_closed_attempt_is_stale(service, learning_goal, today):
    attempt = await service.begin(learning_goal.id, learning_goal.modules[0].id)
    service.cancel(attempt)

    assert service.cancel(attempt) is False
    with pytest.raises(StaleOperationError):
        await service.submit_answer(attempt, "Too late", today=today)
    with pytest.raises(StaleOperationError):
        service.self_complete(attempt)
