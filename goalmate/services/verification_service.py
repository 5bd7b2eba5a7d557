"""
VerificationService - AI-assisted module verification

A verification attempt holds the module's operation token from the moment
the question is requested until the attempt is answered, self-completed
or cancelled. A second attempt on the same module is rejected meanwhile,
and any provider result that arrives after cancellation is discarded
without touching the module or the XP ledger.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, TYPE_CHECKING

from goalmate.config import MODULE_VERIFICATION_XP
from goalmate.exceptions import StaleOperationError, ValidationError
from goalmate.gamification.goal_progress import get_module, self_complete_module, verify_module
from goalmate.services.operation_guard import module_key

if TYPE_CHECKING:
    from goalmate.agent.insights import InsightGenerator
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class VerificationAttempt:
    goal_id: str
    module_id: str
    token: str
    question: str

    @property
    def key(self) -> str:
        return module_key(self.goal_id, self.module_id)


class VerificationService:
    """
    Service for the verify-with-AI dialog.

    Responsibilities:
    - Ask the insight generator for a question about the module
    - Acknowledge the user's answer and verify the module (+XP)
    - Offer self-completion as the no-XP alternative
    - Drop late results for cancelled attempts
    """

    def __init__(
        self,
        session: "SessionContext",
        generator: "InsightGenerator",
        xp: int = MODULE_VERIFICATION_XP
    ):
        self.session = session
        self.generator = generator
        self.xp = xp
        logger.debug("VerificationService initialized")

    async def begin(self, goal_id: str, module_id: str) -> Optional[VerificationAttempt]:
        """
        Open an attempt and fetch its question

        Returns:
            The attempt, or None if it was cancelled while the question
            was being generated

        Raises:
            RecordNotFoundError: unknown goal or module
            OperationInProgressError: an attempt for this module is open
        """
        goal, module = get_module(self.session, goal_id, module_id)
        key = module_key(goal_id, module_id)
        token = self.session.guard.begin(key)

        try:
            question = await self.generator.ask_module_question(goal.title, module.name)
        except BaseException:
            self.session.guard.finish(key, token)
            raise

        if not self.session.guard.is_current(key, token):
            logger.warning(f"Verification of {key} cancelled before the question arrived")
            return None

        logger.info(f"Verification started for module {module_id} of goal {goal_id}")
        return VerificationAttempt(goal_id=goal_id, module_id=module_id, token=token, question=question)

    def _require_current(self, attempt: VerificationAttempt) -> None:
        if not self.session.guard.is_current(attempt.key, attempt.token):
            raise StaleOperationError(attempt.key, user_id=self.session.user_id, operation="verification")

    async def submit_answer(
        self,
        attempt: VerificationAttempt,
        answer: str,
        today: Optional[date] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Acknowledge an answer, then verify the module and award XP

        The answer is never graded: any non-empty answer verifies.

        Returns:
            {
                'acknowledgment': str,
                'module': Module,
                'was_verified': bool,
                'xp_awarded': int,
                'leveled_up': bool
            }
            or None if the attempt was cancelled while waiting on the
            acknowledgment

        Raises:
            ValidationError: empty answer (the attempt stays open)
            StaleOperationError: the attempt was already closed
        """
        self._require_current(attempt)
        if not answer or not answer.strip():
            raise ValidationError(
                "Please provide an answer to demonstrate your understanding.",
                field="answer",
                value=answer,
                user_id=self.session.user_id,
                operation="submit_answer"
            )

        goal, module = get_module(self.session, attempt.goal_id, attempt.module_id)
        try:
            acknowledgment = await self.generator.acknowledge(
                goal.title, module.name, attempt.question, answer.strip()
            )
        except BaseException:
            self.session.guard.finish(attempt.key, attempt.token)
            raise

        if not self.session.guard.is_current(attempt.key, attempt.token):
            logger.warning(f"Verification of {attempt.key} cancelled, acknowledgment discarded")
            return None

        try:
            result = verify_module(self.session, attempt.goal_id, attempt.module_id, xp=self.xp, today=today)
        finally:
            self.session.guard.finish(attempt.key, attempt.token)

        result["acknowledgment"] = acknowledgment
        return result

    def self_complete(self, attempt: VerificationAttempt, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Close the attempt by self-completing the module (no XP)

        Raises:
            StaleOperationError: the attempt was already closed
        """
        self._require_current(attempt)
        try:
            result = self_complete_module(self.session, attempt.goal_id, attempt.module_id, today=today)
        finally:
            self.session.guard.finish(attempt.key, attempt.token)
        result["message"] = "Marked as self-completed. Keep up the great work!"
        return result

    def cancel(self, attempt: VerificationAttempt) -> bool:
        """Close the dialog; returns False if the attempt was already closed"""
        if not self.session.guard.is_current(attempt.key, attempt.token):
            return False
        self.session.guard.cancel(attempt.key)
        return True

    def cancel_module(self, goal_id: str, module_id: str) -> None:
        """Cancel whatever attempt is open on a module, including one still fetching its question"""
        self.session.guard.cancel(module_key(goal_id, module_id))
