"""
DailyCheckInService - once-per-day check-in backed by persistence

Withhold policy: the check-in is recorded first and only a confirmed
write applies XP and the "checked in today" flag. A failed write leaves
the session untouched and raises PersistenceError.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional, TYPE_CHECKING

from goalmate.config import DAILY_CHECKIN_XP
from goalmate.exceptions import PersistenceError, ValidationError
from goalmate.gamification.xp_system import award_experience
from goalmate.resilience.metrics import record_persistence_result
from goalmate.services.operation_guard import checkin_key
from goalmate.utils.datetime_helpers import now_utc, today_local

if TYPE_CHECKING:
    from goalmate.db.checkins import CheckInRecorder
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)


class DailyCheckInService:
    """
    Service for the daily check-in button.

    Responsibilities:
    - Reject a second check-in on the same calendar day
    - Reject a second request while the first is still being recorded
    - Record through the persistence collaborator, then award XP
    """

    def __init__(self, session: "SessionContext", recorder: "CheckInRecorder", xp: int = DAILY_CHECKIN_XP):
        self.session = session
        self.recorder = recorder
        self.xp = xp
        logger.debug("DailyCheckInService initialized")

    def in_progress(self) -> bool:
        return self.session.guard.in_flight(checkin_key(self.session.user_id))

    def cancel(self) -> None:
        """Abandon an outstanding check-in; its late result is discarded"""
        self.session.guard.cancel(checkin_key(self.session.user_id))

    def has_checked_in(self, today: Optional[date] = None) -> bool:
        day = today_local(today)
        return self.session.last_daily_checkin == day

    async def check_in(self, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """
        Record today's check-in and award XP

        Args:
            now: Timestamp sent to the recorder (defaults to now, UTC);
                its local calendar date is the check-in day

        Returns:
            {
                'xp_awarded': int,
                'leveled_up': bool,
                'new_level': int,
                'message': str
            }
            or None when the check-in was cancelled while being recorded

        Raises:
            ValidationError: already checked in today
            OperationInProgressError: a check-in is still being recorded
            PersistenceError: the recorder failed; nothing changed locally
        """
        session = self.session
        timestamp = now or now_utc()
        day = timestamp.astimezone().date() if timestamp.tzinfo else timestamp.date()

        if self.has_checked_in(day):
            raise ValidationError(
                "You've already checked in today!",
                field="date",
                value=day.isoformat(),
                user_id=session.user_id,
                operation="daily_check_in"
            )

        key = checkin_key(session.user_id)
        async with session.guard.guarded(key) as token:
            cause = None
            try:
                saved = await self.recorder.record_check_in(session.user_id, timestamp)
            except Exception as e:
                logger.error(f"Error recording check-in for {session.user_id}: {e}", exc_info=True)
                saved, cause = False, e

            if not session.guard.is_current(key, token):
                logger.warning(f"Daily check-in for {session.user_id} was cancelled, result discarded")
                return None

            record_persistence_result(saved)
            if not saved:
                raise PersistenceError(
                    "Check-in recorder reported a failure",
                    user_id=session.user_id,
                    operation="daily_check_in",
                    context={"date": day.isoformat()},
                    cause=cause
                )

            session.last_daily_checkin = day
            xp_result = award_experience(session, self.xp, reason="daily check-in", today=day)

        logger.info(f"User {session.user_id} checked in for {day}")
        return {
            "xp_awarded": xp_result["xp_awarded"],
            "leveled_up": xp_result["leveled_up"],
            "new_level": xp_result["new_level"],
            "message": f"Daily Check-in Logged! +{xp_result['xp_awarded']} XP",
        }
