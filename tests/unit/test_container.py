"""Unit tests for the service container (goalmate/services/container.py)"""
import pytest

from goalmate.agent.insights import OfflineInsightGenerator
from goalmate.db.checkins import InMemoryCheckInRecorder
from goalmate.services import container as container_module
from goalmate.services.checkin_service import DailyCheckInService
from goalmate.services.container import ServiceContainer, get_container, init_container
from goalmate.services.verification_service import VerificationService


def test_services_are_lazy_singletons(session):
    container = ServiceContainer(
        session=session,
        generator=OfflineInsightGenerator(),
        recorder=InMemoryCheckInRecorder()
    )

    assert container._verification_service is None
    assert isinstance(container.verification_service, VerificationService)
    assert container.verification_service is container.verification_service
    assert isinstance(container.checkin_service, DailyCheckInService)
    assert container.checkin_service.recorder is container.recorder


def test_collaborators_default_from_config(session, monkeypatch):
    monkeypatch.setattr("goalmate.agent.insights.OPENAI_API_KEY", "")
    monkeypatch.setattr("goalmate.db.checkins.ENABLE_CHECKIN_PERSISTENCE", False)

    container = ServiceContainer(session=session)

    assert isinstance(container.generator, OfflineInsightGenerator)
    assert isinstance(container.recorder, InMemoryCheckInRecorder)


def test_get_container_before_init(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)

    with pytest.raises(RuntimeError):
        get_container()


def test_init_container(session, monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)
    generator = OfflineInsightGenerator()
    recorder = InMemoryCheckInRecorder()

    container = init_container(session, generator=generator, recorder=recorder)

    assert get_container() is container
    assert container.generator is generator
