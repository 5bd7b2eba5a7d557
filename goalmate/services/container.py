"""
Service Container - Dependency Injection Container

Holds the session plus its collaborators (insight generator, check-in
recorder). Services are instantiated only when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from goalmate.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Collaborators default to the configured implementations when not injected.
    """

    session: "SessionContext"
    generator: Optional[object] = None  # InsightGenerator
    recorder: Optional[object] = None  # CheckInRecorder

    _verification_service: Optional[object] = field(default=None, init=False, repr=False)
    _checkin_service: Optional[object] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.generator is None:
            from goalmate.agent.insights import get_insight_generator
            self.generator = get_insight_generator()
        if self.recorder is None:
            from goalmate.db.checkins import get_checkin_recorder
            self.recorder = get_checkin_recorder()

    @property
    def verification_service(self):
        """Get VerificationService instance (lazy-loaded)"""
        if self._verification_service is None:
            from goalmate.services.verification_service import VerificationService
            self._verification_service = VerificationService(self.session, self.generator)
            logger.debug("VerificationService instantiated")
        return self._verification_service

    @property
    def checkin_service(self):
        """Get DailyCheckInService instance (lazy-loaded)"""
        if self._checkin_service is None:
            from goalmate.services.checkin_service import DailyCheckInService
            self._checkin_service = DailyCheckInService(self.session, self.recorder)
            logger.debug("DailyCheckInService instantiated")
        return self._checkin_service


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() in main.py before using services."
        )
    return _container


def init_container(
    session: "SessionContext",
    generator: Optional[object] = None,
    recorder: Optional[object] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        session: Session the services operate on
        generator: InsightGenerator (defaults to get_insight_generator())
        recorder: CheckInRecorder (defaults to get_checkin_recorder())
    """
    global _container

    _container = ServiceContainer(session=session, generator=generator, recorder=recorder)

    logger.info("Service container initialized")
    return _container
