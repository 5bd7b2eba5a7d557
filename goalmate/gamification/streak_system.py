"""
Habit Streak Tracking System

Daily check-ins per habit with:
- At most one log entry per habit per calendar date
- Proof requirements (screenshot/link need a payload, unverified does not)
- Streak freezes (preserve the streak for a day, never increment it)
- Rollover reset when a whole day was skipped
- Best (longest) streak tracking
"""

from datetime import date
from typing import Any, Dict, Iterable, Optional, TYPE_CHECKING
import logging

from goalmate.config import DEFAULT_STREAK_FREEZES, PROOF_CHECKIN_XP, UNVERIFIED_CHECKIN_XP
from goalmate.exceptions import ValidationError
from goalmate.gamification.xp_system import award_experience
from goalmate.models.habit import (
    CheckIn,
    CheckInStatus,
    Habit,
    PAYLOAD_REQUIRED,
    Proof,
    ProofKind,
    StreakFreezes,
)
from goalmate.utils.datetime_helpers import today_local, yesterday_of

if TYPE_CHECKING:
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)


def checkin_xp_for(kind: ProofKind) -> int:
    """XP paid for a check-in with this proof kind"""
    if kind in PAYLOAD_REQUIRED:
        return PROOF_CHECKIN_XP
    return UNVERIFIED_CHECKIN_XP


def create_habit(
    session: "SessionContext",
    name: str,
    emoji: str = "💡",
    description: Optional[str] = "A new daily habit to build momentum!",
    freezes: int = DEFAULT_STREAK_FREEZES
) -> Habit:
    """Create an empty habit with a full freeze balance"""
    if not name or not name.strip():
        raise ValidationError("Habit name is required", field="name", value=name)

    habit = Habit(
        name=name.strip(),
        emoji=emoji,
        description=description,
        streak_freezes=StreakFreezes(remaining=freezes, total=freezes),
    )
    return session.add_habit(habit)


def refresh_streak(habit: Habit, today: Optional[date] = None) -> bool:
    """
    Apply the rollover rule: reset the streak if a whole day was skipped

    Only the gap between today and the latest log date counts; older gaps
    in the history never reset anything.

    Returns:
        True if the streak was reset
    """
    day = today_local(today)
    last_date = habit.last_log_date

    if last_date is None or last_date >= yesterday_of(day):
        return False
    if habit.current_streak == 0:
        return False

    logger.info(
        f"Habit {habit.id} streak broken: was {habit.current_streak}, "
        f"last log {last_date}, today {day}"
    )
    habit.current_streak = 0
    return True


def check_in(
    session: "SessionContext",
    habit_id: str,
    proof: Proof,
    xp: Optional[int] = None,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Log today's completion for a habit

    Args:
        session: Current session
        habit_id: Habit to check in
        proof: Screenshot/link (payload required) or unverified proof
        xp: XP to award on success; defaults to the rate for the proof kind
        today: Calendar date of the check-in (defaults to today)

    Returns:
        {
            'current_streak': int,
            'longest_streak': int,
            'xp_awarded': int,
            'leveled_up': bool,
            'message': str
        }

    Raises:
        ValidationError: duplicate check-in today, missing proof payload,
            frozen proof kind or negative XP. Nothing changes.
    """
    habit = session.get_habit(habit_id)
    day = today_local(today)

    if habit.log_for(day) is not None:
        raise ValidationError(
            "You've already logged this habit today",
            field="date",
            value=day.isoformat(),
            user_id=session.user_id,
            operation="check_in"
        )
    if proof.kind == ProofKind.FROZEN:
        raise ValidationError(
            "Use a streak freeze instead of a frozen check-in",
            field="proof",
            value=proof.kind.value,
            operation="check_in"
        )
    if proof.kind in PAYLOAD_REQUIRED and not proof.has_payload:
        raise ValidationError(
            f"Please provide a {proof.kind.value} to check in.",
            field="proof",
            value=proof.kind.value,
            operation="check_in"
        )
    if xp is None:
        xp = checkin_xp_for(proof.kind)
    if xp < 0:
        raise ValidationError("XP amount cannot be negative", field="xp", value=xp, operation="check_in")

    refresh_streak(habit, day)

    habit.logs.append(CheckIn(date=day, status=CheckInStatus.COMPLETED, proof=proof))
    habit.current_streak += 1
    habit.longest_streak = max(habit.longest_streak, habit.current_streak)
    session.activity.record_checkin(day)

    xp_result = award_experience(session, xp, reason=f"habit check-in ({proof.kind.value})", today=day)

    if habit.current_streak == 1:
        message = "Streak started! Day 1 🎉"
    else:
        message = f"Streak continues! Day {habit.current_streak} 🔥"

    logger.info(
        f"Habit {habit.id} checked in for {day} with {proof.kind.value} proof. "
        f"Streak: {habit.current_streak} (best {habit.longest_streak})"
    )

    return {
        "current_streak": habit.current_streak,
        "longest_streak": habit.longest_streak,
        "xp_awarded": xp_result["xp_awarded"],
        "leveled_up": xp_result["leveled_up"],
        "message": message,
    }


def use_streak_freeze(
    session: "SessionContext",
    habit_id: str,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Spend a freeze token to cover today without checking in

    Returns:
        {
            'success': True,
            'current_streak': int,
            'freezes_remaining': int,
            'message': str
        }

    Raises:
        ValidationError: no tokens left, or today already has a log entry
    """
    habit = session.get_habit(habit_id)
    day = today_local(today)

    if habit.streak_freezes.remaining <= 0:
        raise ValidationError(
            "No streak freezes remaining",
            field="streak_freezes",
            value=0,
            user_id=session.user_id,
            operation="use_streak_freeze"
        )
    if habit.log_for(day) is not None:
        raise ValidationError(
            "Today already has a log entry for this habit",
            field="date",
            value=day.isoformat(),
            user_id=session.user_id,
            operation="use_streak_freeze"
        )

    refresh_streak(habit, day)

    habit.logs.append(
        CheckIn(date=day, status=CheckInStatus.FROZEN, proof=Proof(kind=ProofKind.FROZEN))
    )
    habit.streak_freezes.remaining -= 1

    logger.info(
        f"Habit {habit.id} used a streak freeze for {day}. "
        f"{habit.streak_freezes.remaining} remaining"
    )

    return {
        "success": True,
        "current_streak": habit.current_streak,
        "freezes_remaining": habit.streak_freezes.remaining,
        "message": f"Streak frozen. {habit.streak_freezes.remaining} freeze(s) remaining 🧊",
    }


def get_habit_status(
    session: "SessionContext",
    habit_id: str,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """Read a habit for display, applying the rollover rule first"""
    habit = session.get_habit(habit_id)
    day = today_local(today)
    refresh_streak(habit, day)
    todays_log = habit.log_for(day)

    return {
        "habit_id": habit.id,
        "name": habit.name,
        "current_streak": habit.current_streak,
        "longest_streak": habit.longest_streak,
        "streak_label": streak_label(habit.current_streak),
        "logged_today": todays_log is not None,
        "today_status": todays_log.status.value if todays_log else None,
        "freezes_remaining": habit.streak_freezes.remaining,
        "freezes_total": habit.streak_freezes.total,
    }


def streak_label(streak: int) -> str:
    """Encouragement shown under the streak counter"""
    if streak == 0:
        return "Start your streak!"
    if streak < 5:
        return "Getting started!"
    return "On fire!"


def format_streak_display(habits: Iterable[Habit]) -> str:
    """
    Format habit streaks as plain text

    Args:
        habits: Habits to list (any order; sorted by current streak)

    Returns:
        Formatted string for display
    """
    habits = sorted(habits, key=lambda h: h.current_streak, reverse=True)
    if not habits:
        return "No habits yet. Create one to start building your streak! 💪"

    lines = ["🔥 YOUR STREAKS\n"]
    for habit in habits:
        days = "Day" if habit.current_streak == 1 else "Days"
        line = f"{habit.emoji} {habit.name}: {habit.current_streak} {days} Strong"
        if habit.longest_streak > habit.current_streak:
            line += f" (best: {habit.longest_streak})"
        if habit.streak_freezes.remaining > 0:
            line += f" 🛡️×{habit.streak_freezes.remaining}"
        lines.append(line)

    return "\n".join(lines)
