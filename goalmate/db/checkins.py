"""
Check-in persistence collaborator

`record_check_in(user_id, timestamp)` reports success or failure; the
daily check-in service only applies local state after a success.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

import psycopg

from goalmate.config import ENABLE_CHECKIN_PERSISTENCE
from goalmate.db.connection import Database, db
from goalmate.exceptions import wrap_external_exception

logger = logging.getLogger(__name__)

CREATE_CHECKINS_TABLE = """
CREATE TABLE IF NOT EXISTS checkins (
    id BIGSERIAL PRIMARY KEY,
    user_id TEXT NOT NULL,
    date TIMESTAMPTZ NOT NULL
)
"""


class CheckInRecorder:
    """Base recorder; subclasses persist one check-in row per call"""

    async def record_check_in(self, user_id: str, timestamp: datetime) -> bool:
        raise NotImplementedError


class InMemoryCheckInRecorder(CheckInRecorder):
    """Keeps rows in a list; used when persistence is disabled and in tests"""

    def __init__(self):
        self.rows: List[Tuple[str, datetime]] = []

    async def record_check_in(self, user_id: str, timestamp: datetime) -> bool:
        self.rows.append((user_id, timestamp))
        logger.debug(f"Recorded check-in for user {user_id} at {timestamp.isoformat()} (in memory)")
        return True


class PostgresCheckInRecorder(CheckInRecorder):
    """Inserts into checkins(user_id, date) through the async pool"""

    def __init__(self, database: Database = db):
        self.database = database

    async def ensure_schema(self) -> None:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(CREATE_CHECKINS_TABLE)
                await conn.commit()
        logger.info("checkins table ready")

    async def record_check_in(self, user_id: str, timestamp: datetime) -> bool:
        """
        Insert one check-in row

        Returns:
            False when the database rejected the insert (logged as a
            PersistenceError), True otherwise
        """
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        INSERT INTO checkins (user_id, date)
                        VALUES (%s, %s)
                        """,
                        (user_id, timestamp)
                    )
                    await conn.commit()
        except psycopg.Error as e:
            wrap_external_exception(e, operation="record_check_in", user_id=user_id)
            return False

        logger.info(f"Persisted check-in for user {user_id}")
        return True


def get_checkin_recorder(enabled: Optional[bool] = None) -> CheckInRecorder:
    """Postgres recorder when persistence is enabled, in-memory otherwise"""
    if enabled is None:
        enabled = ENABLE_CHECKIN_PERSISTENCE
    if enabled:
        return PostgresCheckInRecorder()
    logger.info("Check-in persistence disabled, using in-memory recorder")
    return InMemoryCheckInRecorder()
