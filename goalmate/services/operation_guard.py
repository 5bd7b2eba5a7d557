"""
Per-entity operation tokens

Async flows (AI verification, persisted daily check-in) reserve a token for
the entity they touch before suspending on an external call. While the
token is outstanding a second request for the same entity is rejected, and
a result that comes back after its token was cancelled is discarded.

Keys are plain strings such as "module:<goal_id>:<module_id>" or
"checkin:<user_id>".
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import uuid4
import logging

from goalmate.exceptions import OperationInProgressError

logger = logging.getLogger(__name__)


def module_key(goal_id: str, module_id: str) -> str:
    return f"module:{goal_id}:{module_id}"


def checkin_key(user_id: str) -> str:
    return f"checkin:{user_id}"


class OperationGuard:
    """Tracks at most one outstanding operation token per entity key"""

    def __init__(self):
        self._tokens: Dict[str, str] = {}

    def begin(self, key: str) -> str:
        """
        Reserve `key` for a new operation

        Raises:
            OperationInProgressError: another operation holds the key
        """
        if key in self._tokens:
            raise OperationInProgressError(key, operation="begin")
        token = uuid4().hex
        self._tokens[key] = token
        logger.debug(f"Operation {token[:8]} started for {key}")
        return token

    def is_current(self, key: str, token: str) -> bool:
        return self._tokens.get(key) == token

    def in_flight(self, key: str) -> bool:
        return key in self._tokens

    def finish(self, key: str, token: str) -> bool:
        """Release `key` if `token` still owns it; returns whether it did"""
        if self._tokens.get(key) != token:
            return False
        del self._tokens[key]
        logger.debug(f"Operation {token[:8]} finished for {key}")
        return True

    def cancel(self, key: str) -> None:
        """Drop the outstanding token so a late result is discarded"""
        token = self._tokens.pop(key, None)
        if token:
            logger.info(f"Operation {token[:8]} cancelled for {key}")

    @asynccontextmanager
    async def guarded(self, key: str) -> AsyncIterator[str]:
        """
        Hold `key` for the duration of the block

        Example:
            async with session.guard.guarded(checkin_key(user_id)) as token:
                await recorder.record_check_in(user_id, now)
        """
        token = self.begin(key)
        try:
            yield token
        finally:
            self.finish(key, token)
