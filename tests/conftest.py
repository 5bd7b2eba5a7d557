"""Global test fixtures and utilities for goalmate tests"""
import pytest
from unittest.mock import AsyncMock
from datetime import date, datetime, timezone

from goalmate.gamification.goal_progress import create_goal
from goalmate.gamification.streak_system import create_habit
from goalmate.models.goal import GoalKind
from goalmate.resilience.circuit_breaker import INSIGHT_BREAKER
from goalmate.session import new_session


# ============================================================================
# Date Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed calendar date so rollover rules are deterministic"""
    return date(2024, 7, 10)


@pytest.fixture
def now():
    """Fixed timestamp on the same calendar day as `today`"""
    return datetime(2024, 7, 10, 12, 0, 0)


@pytest.fixture
def aware_now():
    return datetime(2024, 7, 10, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "test-user"


@pytest.fixture
def session(test_user_id):
    """Fresh session at 0 XP, level 1"""
    return new_session(user_id=test_user_id, starting_xp=0)


@pytest.fixture
def learning_goal(session):
    """Learning goal with three pending modules"""
    return create_goal(
        session,
        "Learn React",
        category="Tech",
        kind=GoalKind.LEARNING,
        modules=["Introduction to JSX", "Components and Props", "State and Lifecycle"],
        emoji="⚛️",
    )


@pytest.fixture
def generic_goal(session):
    """Generic goal with stored progress"""
    return create_goal(
        session,
        "Run a 5K",
        category="Fitness",
        kind=GoalKind.GENERIC,
        progress_percent=40,
        status_text="Week 3 of 8",
    )


@pytest.fixture
def habit(session):
    """Empty habit with one freeze token"""
    return create_habit(session, "Read 20 minutes", emoji="📚")


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture
def mock_generator():
    """Insight generator double with fixed responses"""
    generator = AsyncMock()
    generator.ask_module_question = AsyncMock(return_value="What does JSX compile to?")
    generator.acknowledge = AsyncMock(return_value="Great effort! Keep going.")
    generator.suggest_weekly_quest = AsyncMock(return_value="")
    generator.chat_reply = AsyncMock(return_value="Nice!")
    return generator


@pytest.fixture
def mock_recorder():
    """Check-in recorder double that always succeeds"""
    recorder = AsyncMock()
    recorder.record_check_in = AsyncMock(return_value=True)
    return recorder


@pytest.fixture
def reset_insight_breaker():
    """Close the insight breaker before and after a test"""
    INSIGHT_BREAKER.close()
    yield INSIGHT_BREAKER
    INSIGHT_BREAKER.close()
