"""
Pytest Configuration and Fixtures
"""

from datetime import datetime, timezone

import pytest

from eventrepo.core.event_store import EventStore
from eventrepo.core.events import Event, EventType
from eventrepo.db.memory import InMemoryEventBackend


@pytest.fixture
def backend() -> InMemoryEventBackend:
    """Returns an empty in-memory backend."""
    return InMemoryEventBackend()


@pytest.fixture
def store(backend) -> EventStore:
    """Returns an EventStore over the in-memory backend."""
    return EventStore(backend)


def at(minute: int) -> datetime:
    return datetime(2024, 5, 1, 12, minute, tzinfo=timezone.utc)


def make_event(event_id: str, event_type: EventType = EventType.PUBLISH_API, minute: int = 0, **kwargs) -> Event:
    return Event(
        id=event_id,
        type=event_type,
        payload=kwargs.pop("payload", f"payload-{event_id}"),
        created_at=at(minute),
        updated_at=at(minute),
        **kwargs,
    )
