"""Main entry point: start a session, report its state, shut down cleanly"""
import logging
import asyncio
from typing import Optional

from goalmate.config import validate_config, LOG_LEVEL, ENABLE_CHECKIN_PERSISTENCE, SESSION_USER_ID
from goalmate.db.checkins import PostgresCheckInRecorder, get_checkin_recorder
from goalmate.db.connection import db
from goalmate.gamification.quests import get_weekly_quest
from goalmate.gamification.xp_system import get_level_progress
from goalmate.services.container import init_container
from goalmate.session import init_session, reset_session

logger = logging.getLogger(__name__)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging from LOG_LEVEL"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    )


async def main() -> None:
    """Main application entry point"""
    try:
        # Validate configuration
        logger.info("Validating configuration...")
        validate_config()

        recorder = get_checkin_recorder()
        if ENABLE_CHECKIN_PERSISTENCE:
            logger.info("Initializing database connection pool...")
            await db.init_pool()
            if isinstance(recorder, PostgresCheckInRecorder):
                await recorder.ensure_schema()

        session = init_session(user_id=SESSION_USER_ID)
        container = init_container(session, recorder=recorder)

        progress = get_level_progress(session.profile)
        logger.info(
            f"Level {progress['level']} with {progress['experience']} XP "
            f"({progress['percent']:.0f}% to next level)"
        )

        quest = await get_weekly_quest(session, container.generator)
        logger.info(f"Weekly quest: {quest.title} - {quest.description}")

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        reset_session()

        if db.is_open:
            logger.info("Closing database connection...")
            await db.close_pool()

        logger.info("Shutdown complete")


def run() -> None:
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
