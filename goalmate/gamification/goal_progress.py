"""
Goal and Module Progress Model

Module state machine:
    pending ──self-complete──▶ completed (unverified)
    pending ──verify──────────▶ completed (verified)      +XP
    completed (unverified) ──verify──▶ completed (verified) +XP

Nothing moves a module back to pending, and nothing clears `verified`.
Every successful verification call awards XP, including re-verification.

Goals are never deleted. A finalized goal takes no new modules and no
progress updates.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union, TYPE_CHECKING
import logging

from goalmate.config import MODULE_VERIFICATION_XP
from goalmate.exceptions import RecordNotFoundError, ValidationError
from goalmate.gamification.progress import calculate_progress_display
from goalmate.gamification.streak_system import create_habit
from goalmate.gamification.xp_system import award_experience
from goalmate.models.goal import Goal, GoalKind, Module, ModuleSource, ModuleStatus
from goalmate.models.habit import Habit

if TYPE_CHECKING:
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)

FINALIZED_STATUS_TEXT = "Completed & Finalized!"


def _reject_if_finalized(goal: Goal, operation: str) -> None:
    if goal.finalized:
        raise ValidationError(
            "This goal is finalized and can no longer change",
            field="goal",
            value=goal.id,
            operation=operation
        )


def create_goal(
    session: "SessionContext",
    title: str,
    category: str = "General",
    kind: GoalKind = GoalKind.GENERIC,
    modules: Optional[Iterable[Union[str, Module]]] = None,
    emoji: Optional[str] = None,
    description: Optional[str] = None,
    progress_percent: int = 0,
    status_text: Optional[str] = None
) -> Goal:
    """
    Create a goal and register it with the session

    `modules` accepts module names or ready Module objects and is only
    valid for Learning goals.
    """
    if not title or not title.strip():
        raise ValidationError("Goal title is required", field="title", value=title)

    module_list = [
        m if isinstance(m, Module) else Module(name=m)
        for m in (modules or [])
    ]
    if module_list and kind != GoalKind.LEARNING:
        raise ValidationError(
            "Only Learning goals can have modules",
            field="kind",
            value=kind.value,
            operation="create_goal"
        )

    goal = Goal(
        title=title.strip(),
        category=category,
        kind=kind,
        emoji=emoji,
        description=description,
        modules=module_list,
        progress_percent=progress_percent,
        status_text=status_text,
    )
    return session.add_goal(goal)


def add_module(
    goal: Goal,
    name: str,
    source: ModuleSource = ModuleSource.USER,
    description: Optional[str] = None
) -> Module:
    """Append a pending module to a Learning goal"""
    _reject_if_finalized(goal, "add_module")
    if not goal.is_learning:
        raise ValidationError(
            "Modules can only be added to Learning goals",
            field="kind",
            value=goal.kind.value,
            operation="add_module"
        )
    if not name or not name.strip():
        raise ValidationError("Module name is required", field="name", value=name)

    module = Module(name=name.strip(), source=source, description=description)
    goal.modules.append(module)
    logger.info(f"Added {source.value} module '{module.name}' to goal {goal.id}")
    return module


def apply_generated_modules(goal: Goal, suggestions: List[Dict[str, Any]]) -> List[Module]:
    """Append provider-suggested modules ({name, description}) as pending"""
    added = []
    for suggestion in suggestions:
        name = (suggestion.get("name") or "").strip()
        if not name:
            continue
        added.append(
            add_module(goal, name, source=ModuleSource.GENERATED, description=suggestion.get("description"))
        )
    return added


def get_module(session: "SessionContext", goal_id: str, module_id: str) -> Tuple[Goal, Module]:
    """Look up a module through its owning goal"""
    goal = session.get_goal(goal_id)
    module = goal.find_module(module_id)
    if module is None:
        raise RecordNotFoundError(
            f"Module {module_id} not found in goal {goal_id}",
            record_type="Module",
            record_id=module_id,
            user_id=session.user_id
        )
    return goal, module


def self_complete_module(
    session: "SessionContext",
    goal_id: str,
    module_id: str,
    xp: int = 0,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Mark a pending module completed without verification

    A module that is already completed is left untouched (a verified module
    is never downgraded) and no XP is awarded.

    Returns:
        {'module': Module, 'changed': bool, 'xp_awarded': int}
    """
    goal, module = get_module(session, goal_id, module_id)

    if module.is_completed:
        logger.info(f"Module {module_id} already completed, self-complete ignored")
        return {"module": module, "changed": False, "xp_awarded": 0}

    if xp < 0:
        raise ValidationError("XP amount cannot be negative", field="xp", value=xp)

    module.status = ModuleStatus.COMPLETED
    xp_result = award_experience(session, xp, reason=f"self-completed module '{module.name}'", today=today)

    logger.info(f"Module {module_id} of goal {goal.id} self-completed")
    return {"module": module, "changed": True, "xp_awarded": xp_result["xp_awarded"]}


def verify_module(
    session: "SessionContext",
    goal_id: str,
    module_id: str,
    xp: int = MODULE_VERIFICATION_XP,
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Mark a module completed and verified, awarding XP

    Works from pending or from completed-unverified. Each successful call
    awards XP again, including on an already verified module.

    Returns:
        {'module': Module, 'was_verified': bool, 'xp_awarded': int, 'leveled_up': bool}
    """
    goal, module = get_module(session, goal_id, module_id)

    if xp < 0:
        raise ValidationError("XP amount cannot be negative", field="xp", value=xp)

    was_verified = module.verified
    module.status = ModuleStatus.COMPLETED
    module.verified = True

    xp_result = award_experience(session, xp, reason=f"verified module '{module.name}'", today=today)

    logger.info(
        f"Module {module_id} of goal {goal.id} verified "
        f"({'re-verification' if was_verified else 'first verification'})"
    )
    return {
        "module": module,
        "was_verified": was_verified,
        "xp_awarded": xp_result["xp_awarded"],
        "leveled_up": xp_result["leveled_up"],
    }


def update_generic_progress(
    session: "SessionContext",
    goal_id: str,
    percent: int,
    status_text: Optional[str] = None
) -> Goal:
    """Set the stored progress of a Generic goal"""
    goal = session.get_goal(goal_id)
    _reject_if_finalized(goal, "update_generic_progress")

    if goal.is_learning:
        raise ValidationError(
            "Learning goal progress is derived from its modules",
            field="kind",
            value=goal.kind.value,
            operation="update_generic_progress"
        )
    if not 0 <= percent <= 100:
        raise ValidationError("Progress must be between 0 and 100", field="percent", value=percent)

    goal.progress_percent = percent
    if status_text is not None:
        goal.status_text = status_text
    logger.info(f"Goal {goal.id} progress set to {percent}%")
    return goal


def can_finalize(goal: Goal) -> bool:
    """Every module completed (Learning) or stored progress at 100 (Generic)"""
    if goal.is_learning:
        return all(m.is_completed for m in goal.modules)
    return goal.progress_percent == 100


def finalize_goal(session: "SessionContext", goal_id: str) -> Goal:
    """
    Move a goal to its terminal display state; idempotent once reached

    Raises:
        ValidationError: the goal is not ready to be finalized
    """
    goal = session.get_goal(goal_id)

    if goal.finalized:
        return goal

    if not can_finalize(goal):
        if goal.is_learning:
            message = "All modules must be completed (either self-completed or AI-verified) to finalize."
        else:
            message = "Goal must be 100% complete to finalize."
        raise ValidationError(
            message,
            field="goal",
            value=goal_id,
            user_id=session.user_id,
            operation="finalize_goal"
        )

    goal.finalized = True
    goal.progress_percent = 100
    goal.status_text = FINALIZED_STATUS_TEXT
    logger.info(f"Goal {goal.id} '{goal.title}' finalized")
    return goal


def link_habit(session: "SessionContext", goal_id: str, habit_id: str) -> Goal:
    """Set or replace the goal's linked habit (lookup key only)"""
    goal = session.get_goal(goal_id)
    previous = goal.linked_habit_id
    goal.linked_habit_id = habit_id
    logger.info(f"Goal {goal.id} linked to habit {habit_id} (was {previous})")
    return goal


def create_and_link_habit(
    session: "SessionContext",
    goal_id: str,
    habit_name: str
) -> Tuple[Goal, Habit]:
    """
    Create a habit, then link it

    Two independent steps: if linking fails the new habit stays.
    """
    session.get_goal(goal_id)
    habit = create_habit(session, habit_name)
    goal = link_habit(session, goal_id, habit.id)
    return goal, habit


def resolve_linked_habit(session: "SessionContext", goal: Goal) -> Optional[Habit]:
    """The linked habit, or None when unset or dangling"""
    return session.find_habit(goal.linked_habit_id)


def get_goal_view(session: "SessionContext", goal_id: str) -> Dict[str, Any]:
    """Read model for a goal page: fresh progress, linked habit, finalize state"""
    goal = session.get_goal(goal_id)
    progress = calculate_progress_display(goal)
    habit = resolve_linked_habit(session, goal)

    return {
        "goal": goal,
        "percent": progress.percent,
        "text": progress.text,
        "linked_habit": habit,
        "can_finalize": can_finalize(goal),
        "finalized": goal.finalized,
    }
