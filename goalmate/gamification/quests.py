"""
Weekly quest parsing

The provider answers with three labeled lines:

    Quest Title: <title>
    Description: <description>
    Related Goal: <exact goal title>

The strict parser extracts all three; anything else goes through the
fallback extractor. Nothing here raises: every path returns a Quest.
"""

import random
import re
from typing import TYPE_CHECKING, Iterable, List, Optional
import logging

from goalmate.exceptions import ProviderUnavailableError
from goalmate.models.goal import Goal
from goalmate.models.quest import Quest

if TYPE_CHECKING:
    from goalmate.agent.insights import InsightGenerator
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)

_TITLE_RE = re.compile(r"^[ \t]*Quest Title:[ \t]*(\S.*)$", re.MULTILINE)
_DESCRIPTION_RE = re.compile(r"^[ \t]*Description:[ \t]*(\S.*)$", re.MULTILINE)
_RELATED_GOAL_RE = re.compile(r"^[ \t]*Related Goal:[ \t]*(\S.*)$", re.MULTILINE)

FALLBACK_TITLE = "Weekly Quest Suggestion"
GENERAL_GOAL = "General"

NO_GOALS_QUEST = Quest(
    title="No Goals Yet!",
    description="Add a goal to get your first weekly quest!",
    related_goal="",
)
ALL_DONE_QUEST = Quest(
    title="All Goals Conquered!",
    description="Looks like you've completed all your current goals! Amazing! Add a new one for a fresh quest.",
    related_goal="",
)
PROVIDER_OFFLINE_QUEST = Quest(
    title="Tech Offline!",
    description="Our AI is taking a break. How about you set a small step for one of your goals yourself this week?",
    related_goal="",
)


def _match_goal_title(text: str, goal_titles: Iterable[str]) -> str:
    """First goal title found in `text` (case-insensitive), else 'General'"""
    lowered = text.lower()
    for title in goal_titles:
        if title and title.lower() in lowered:
            return title
    return GENERAL_GOAL


def parse_quest_response(text: Optional[str], goal_titles: Iterable[str] = ()) -> Quest:
    """
    Turn raw provider text into a Quest

    Args:
        text: Raw provider output
        goal_titles: Titles the fallback extractor may match against

    Returns:
        Quest parsed from the labeled lines, or a fallback quest whose
        description is the raw text verbatim
    """
    raw = text or ""
    title = _TITLE_RE.search(raw)
    description = _DESCRIPTION_RE.search(raw)
    related_goal = _RELATED_GOAL_RE.search(raw)

    if title and description and related_goal:
        return Quest(
            title=title.group(1).strip(),
            description=description.group(1).strip(),
            related_goal=related_goal.group(1).strip(),
        )

    logger.warning(f"Failed to parse quest response, using fallback extractor: {raw[:120]!r}")
    return Quest(
        title=FALLBACK_TITLE,
        description=raw,
        related_goal=_match_goal_title(raw, list(goal_titles)),
    )


def offline_quest(active_goals: List[Goal], rng: Optional[random.Random] = None) -> Quest:
    """Fixed quest pointing at a random active goal, or goal-agnostic"""
    chooser = rng or random
    goal = chooser.choice(active_goals) if active_goals else None

    if goal is None:
        return Quest(
            title="Quest Idea!",
            description="Focus on making a solid leap forward in one of your goals this week. You've got this!",
            related_goal="",
        )
    return Quest(
        title="Quest Idea!",
        description=(
            "Focus on making a solid leap forward in one of your goals this week. "
            f"Perhaps something for '{goal.title}'?"
        ),
        related_goal=goal.title,
    )


async def get_weekly_quest(
    session: "SessionContext",
    generator: "InsightGenerator",
    rng: Optional[random.Random] = None
) -> Quest:
    """
    Fetch and parse this week's quest; never raises

    Order of fallbacks:
    - no goals at all          -> "No Goals Yet!"
    - no active goals          -> "All Goals Conquered!"
    - provider not configured  -> "Tech Offline!"
    - provider call failed     -> random active goal quest
    """
    if not session.goals:
        return NO_GOALS_QUEST

    active_goals = session.active_goals()
    if not active_goals:
        return ALL_DONE_QUEST

    titles = [goal.title for goal in active_goals]
    try:
        raw = await generator.suggest_weekly_quest(titles)
    except ProviderUnavailableError:
        return PROVIDER_OFFLINE_QUEST
    except Exception as e:
        logger.error(f"Error generating weekly quest: {e}", exc_info=True)
        return offline_quest(active_goals, rng=rng)

    if not raw or not raw.strip():
        logger.warning("Empty quest response from provider")
        return offline_quest(active_goals, rng=rng)

    return parse_quest_response(raw.strip(), [goal.title for goal in session.goals.values()])
