import pytest

from mock_interview.interview.events import SessionEventBus, EventType, Notifier
from mock_interview.interview.testing import ManualScheduler


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def event_bus():
    return SessionEventBus()


@pytest.fixture
def notifications(event_bus):
    """Every NotificationEvent emitted on the bus, in order."""
    received = []
    event_bus.subscribe(EventType.NOTIFICATION, received.append)
    return received


@pytest.fixture
def notifier(event_bus):
    return Notifier(event_bus, "test-session")
