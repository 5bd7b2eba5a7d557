"""
XP and Leveling System (leveling ledger)

Owns experience, level and perk unlocks on the session's UserProfile.

Leveling Curve:
- Level 1: 0 XP
- Level 2: 100 XP
- Level 3: 250 XP
- Level 4: 500 XP
- Level 5: 1000 XP (max)

Perks (unlocked once, in table order, never removed):
- Dark Mode Theme: 100 XP
- Buddy Insight Stats: 200 XP
- Custom Goal Categories: 300 XP
- Community Quests: 500 XP
"""

from datetime import date
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import logging

from goalmate.exceptions import ValidationError
from goalmate.models.user import Perk, UserProfile
from goalmate.utils.datetime_helpers import today_local

if TYPE_CHECKING:
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)

LEVEL_THRESHOLDS: Dict[int, int] = {1: 0, 2: 100, 3: 250, 4: 500, 5: 1000}
MAX_LEVEL = max(LEVEL_THRESHOLDS)
# Span shown for the progress bar once the table is exhausted
MAX_LEVEL_DISPLAY_SPAN = 150

PERKS: List[Perk] = [
    Perk(id="dark_mode", display_name="Dark Mode Theme", xp_required=100),
    Perk(id="buddy_stats", display_name="Buddy Insight Stats", xp_required=200),
    Perk(id="custom_categories", display_name="Custom Goal Categories", xp_required=300),
    Perk(id="community_quests", display_name="Community Quests", xp_required=500),
]


def calculate_level_from_xp(total_xp: int) -> int:
    """Largest level whose threshold is <= total_xp"""
    level = 1
    for candidate, threshold in sorted(LEVEL_THRESHOLDS.items()):
        if total_xp >= threshold:
            level = candidate
    return level


def _climb_levels(profile: UserProfile) -> int:
    """Walk the threshold table upward from the current level"""
    level = profile.level
    while level + 1 in LEVEL_THRESHOLDS and profile.experience >= LEVEL_THRESHOLDS[level + 1]:
        level += 1
    profile.level = level
    return level


def _unlock_perks(profile: UserProfile) -> List[Perk]:
    """Unlock every eligible perk not yet held; idempotent"""
    unlocked = []
    for perk in PERKS:
        if profile.experience >= perk.xp_required and not profile.has_perk(perk.id):
            profile.unlocked_perks.append(perk)
            unlocked.append(perk)
            logger.info(f"Perk unlocked: {perk.display_name}!")
    return unlocked


def sync_profile_level(profile: UserProfile) -> None:
    """Bring level and perks in line with experience (session start)"""
    _climb_levels(profile)
    _unlock_perks(profile)


def award_experience(
    session: "SessionContext",
    amount: int,
    reason: str = "Progress made",
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Award XP to the session user and check for level ups and perk unlocks

    Args:
        session: Session whose profile receives the XP
        amount: Non-negative XP amount; 0 is a no-op
        reason: Human-readable description for the log
        today: Calendar date for the XP log (defaults to today)

    Returns:
        {
            'xp_awarded': int,
            'old_total_xp': int,
            'new_total_xp': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool,
            'unlocked_perks': list[Perk]
        }

    Raises:
        ValidationError: amount is negative (nothing changes)
    """
    profile = session.profile
    old_total_xp = profile.experience
    old_level = profile.level

    if amount < 0:
        raise ValidationError(
            "XP amount cannot be negative",
            field="amount",
            value=amount,
            user_id=session.user_id,
            operation="award_experience"
        )

    result = {
        "xp_awarded": 0,
        "old_total_xp": old_total_xp,
        "new_total_xp": old_total_xp,
        "old_level": old_level,
        "new_level": old_level,
        "leveled_up": False,
        "unlocked_perks": [],
    }
    if amount == 0:
        return result

    profile.experience = old_total_xp + amount
    session.activity.record_xp(today_local(today), profile.experience)

    new_level = _climb_levels(profile)
    unlocked = _unlock_perks(profile)

    logger.info(
        f"Awarded {amount} XP to user {session.user_id} for {reason}. "
        f"Total: {profile.experience} XP, Level: {new_level}"
    )
    if new_level > old_level:
        logger.info(f"User {session.user_id} leveled up from {old_level} to {new_level}!")

    result.update({
        "xp_awarded": amount,
        "new_total_xp": profile.experience,
        "new_level": new_level,
        "leveled_up": new_level > old_level,
        "unlocked_perks": unlocked,
    })
    return result


def get_level_progress(profile: UserProfile) -> Dict[str, Any]:
    """
    Progress toward the next level, for the profile progress bar

    Returns:
        {
            'level': int,
            'experience': int,
            'current_level_xp': int,
            'next_level_xp': int,
            'xp_into_level': int,
            'xp_for_next_level': int,
            'percent': float (0-100)
        }
    """
    current_level_xp = LEVEL_THRESHOLDS.get(profile.level, 0)
    next_level_xp = LEVEL_THRESHOLDS.get(profile.level + 1, current_level_xp + MAX_LEVEL_DISPLAY_SPAN)
    xp_into_level = profile.experience - current_level_xp
    xp_for_next_level = next_level_xp - current_level_xp

    percent = (xp_into_level / xp_for_next_level) * 100 if xp_for_next_level > 0 else 100.0

    return {
        "level": profile.level,
        "experience": profile.experience,
        "current_level_xp": current_level_xp,
        "next_level_xp": next_level_xp,
        "xp_into_level": xp_into_level,
        "xp_for_next_level": xp_for_next_level,
        "percent": min(max(percent, 0.0), 100.0),
    }


def can_use_perk(profile: UserProfile, perk_id: str) -> bool:
    return profile.has_perk(perk_id)


def set_dark_mode(session: "SessionContext", enabled: bool) -> bool:
    """
    Toggle dark mode; enabling requires the dark_mode perk

    Raises:
        ValidationError: enabling before the perk is unlocked
    """
    if enabled and not can_use_perk(session.profile, "dark_mode"):
        required = next(p.xp_required for p in PERKS if p.id == "dark_mode")
        raise ValidationError(
            f"Reach {required} XP to unlock Dark Mode!",
            field="dark_mode",
            value=enabled,
            user_id=session.user_id,
            operation="set_dark_mode"
        )
    session.profile.dark_mode_enabled = enabled
    logger.info(f"Dark mode {'enabled' if enabled else 'disabled'} for user {session.user_id}")
    return enabled
