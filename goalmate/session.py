"""
Session Context - process-wide state for one user session

Owns the user profile, the goal and habit collections, the chart activity
log and the operation guard. Every mutation goes through the operations in
goalmate.gamification; views only read.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
import logging

from goalmate.config import SESSION_USER_ID, STARTING_XP
from goalmate.exceptions import RecordNotFoundError
from goalmate.gamification.activity_log import ActivityLog
from goalmate.models.goal import Goal
from goalmate.models.habit import Habit
from goalmate.models.user import UserProfile
from goalmate.services.operation_guard import OperationGuard

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Single-writer state shared by every operation in a session"""

    user_id: str = SESSION_USER_ID
    profile: UserProfile = field(default_factory=UserProfile)
    goals: Dict[str, Goal] = field(default_factory=dict)
    habits: Dict[str, Habit] = field(default_factory=dict)
    activity: ActivityLog = field(default_factory=ActivityLog)
    guard: OperationGuard = field(default_factory=OperationGuard, repr=False)
    last_daily_checkin: Optional[date] = None

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def add_goal(self, goal: Goal) -> Goal:
        self.goals[goal.id] = goal
        logger.info(f"Added goal {goal.id} '{goal.title}' ({goal.kind.value})")
        return goal

    def get_goal(self, goal_id: str) -> Goal:
        goal = self.goals.get(goal_id)
        if goal is None:
            raise RecordNotFoundError(
                f"Goal {goal_id} not found",
                record_type="Goal",
                record_id=goal_id,
                user_id=self.user_id
            )
        return goal

    def active_goals(self) -> List[Goal]:
        """Goals that are neither finalized nor at 100%"""
        from goalmate.gamification.progress import calculate_progress_display

        return [
            goal for goal in self.goals.values()
            if not goal.finalized and calculate_progress_display(goal).percent < 100
        ]

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    def add_habit(self, habit: Habit) -> Habit:
        self.habits[habit.id] = habit
        logger.info(f"Added habit {habit.id} '{habit.name}'")
        return habit

    def get_habit(self, habit_id: str) -> Habit:
        habit = self.habits.get(habit_id)
        if habit is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} not found",
                record_type="Habit",
                record_id=habit_id,
                user_id=self.user_id
            )
        return habit

    def find_habit(self, habit_id: Optional[str]) -> Optional[Habit]:
        """Weak lookup: None for a missing or dangling id"""
        if not habit_id:
            return None
        return self.habits.get(habit_id)


def new_session(user_id: str = SESSION_USER_ID, starting_xp: int = STARTING_XP) -> SessionContext:
    """Create a session whose profile level/perks agree with its starting XP"""
    from goalmate.gamification.xp_system import sync_profile_level

    session = SessionContext(user_id=user_id)
    session.profile.experience = starting_xp
    sync_profile_level(session.profile)
    return session


# Global session instance (initialized at startup)
_session: Optional[SessionContext] = None


def get_session() -> SessionContext:
    """
    Get the global session.

    Raises:
        RuntimeError: If session not initialized (call init_session first)
    """
    if _session is None:
        raise RuntimeError(
            "Session not initialized. "
            "Call init_session() at startup before using the engine."
        )
    return _session


def init_session(user_id: str = SESSION_USER_ID, starting_xp: int = STARTING_XP) -> SessionContext:
    """Initialize the global session; replaces any previous one"""
    global _session

    _session = new_session(user_id=user_id, starting_xp=starting_xp)
    logger.info(f"Session initialized for user {user_id}")
    return _session


def reset_session() -> None:
    """Tear down the global session (session end)"""
    global _session

    _session = None
    logger.info("Session torn down")
