"""
Gamification core for GoalMate

- XP and leveling ledger with perk unlocks
- Goal/module progress model and the progress projector
- Habit streak tracking with freezes
- Derived achievement badges
- Weekly quest parsing
"""

from goalmate.gamification.xp_system import award_experience, calculate_level_from_xp, get_level_progress
from goalmate.gamification.streak_system import check_in, use_streak_freeze, get_habit_status
from goalmate.gamification.goal_progress import create_goal, verify_module, self_complete_module, finalize_goal
from goalmate.gamification.progress import calculate_progress_display
from goalmate.gamification.achievement_system import get_badges, get_profile_stats
from goalmate.gamification.quests import parse_quest_response, get_weekly_quest

__all__ = [
    "award_experience",
    "calculate_level_from_xp",
    "get_level_progress",
    "check_in",
    "use_streak_freeze",
    "get_habit_status",
    "create_goal",
    "verify_module",
    "self_complete_module",
    "finalize_goal",
    "calculate_progress_display",
    "get_badges",
    "get_profile_stats",
    "parse_quest_response",
    "get_weekly_quest",
]
