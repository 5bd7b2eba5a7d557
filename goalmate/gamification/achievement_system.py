"""
Achievement (badge) system

Badges are derived from session state on every read and never stored, so
they can't drift from the goals and habits they describe.
"""

from typing import Any, Dict, List, TYPE_CHECKING
import logging

from goalmate.gamification.progress import calculate_progress_display

if TYPE_CHECKING:
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)

# Badge definitions: (id, name, icon, description, stat, minimum)
BADGE_DEFINITIONS = [
    ("first_goal", "Goal Setter", "🎯", "Completed your first goal!", "goals_completed", 1),
    ("ten_streak", "Streak Starter", "🔥", "Achieved a 10-day streak!", "longest_streak", 10),
    ("verified_pro", "Verified Pro", "✅", "Verified 5 modules with AI!", "modules_verified", 5),
    ("new_buddy", "Team Player", "🧑‍🤝‍🧑", "Started your journey with a buddy!", None, 0),
]


def get_profile_stats(session: "SessionContext") -> Dict[str, int]:
    """
    Aggregate stats for the profile page

    Returns:
        {
            'goals_completed': int,   # projector percent == 100
            'modules_verified': int,
            'longest_streak': int
        }
    """
    goals = list(session.goals.values())
    return {
        "goals_completed": sum(1 for g in goals if calculate_progress_display(g).percent == 100),
        "modules_verified": sum(1 for g in goals for m in g.modules if m.verified),
        "longest_streak": max((h.longest_streak for h in session.habits.values()), default=0),
    }


def get_badges(session: "SessionContext") -> List[Dict[str, Any]]:
    """All badges with their unlocked flag, in definition order"""
    stats = get_profile_stats(session)
    badges = []

    for badge_id, name, icon, description, stat, minimum in BADGE_DEFINITIONS:
        unlocked = True if stat is None else stats[stat] >= minimum
        badges.append({
            "id": badge_id,
            "name": name,
            "icon": icon,
            "description": description,
            "unlocked": unlocked,
        })

    return badges


def get_unlocked_badges(session: "SessionContext") -> List[Dict[str, Any]]:
    return [badge for badge in get_badges(session) if badge["unlocked"]]
