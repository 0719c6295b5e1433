"""Shared fixtures for the toNote tests."""
import pytest

from fakes import ManualTicker
from tonote.core.events import Event, EventBus


@pytest.fixture
def manual_ticker():
    ManualTicker.instances = []
    yield ManualTicker
    ManualTicker.instances = []


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def published(event_bus):
    events = []
    event_bus.subscribe(Event, events.append)
    return events
