from typing import Optional

from psycopg import Connection

from eventrepo.core.errors import (
    DataCorruptionError,
    EventNotFoundError,
    EventStoreError,
    InvalidArgumentError,
    TechnicalError,
)
from eventrepo.core.event_store import EventStore
from eventrepo.core.events import Event, EventType, Page
from eventrepo.db.postgres import PostgresEventBackend, get_app_db
from eventrepo.infra.logging import configure_logging


def build_event_store(conn: Optional[Connection] = None) -> EventStore:
    """
    Wire a Postgres-backed EventStore, opening a connection from the
    environment settings when none is given.
    """
    configure_logging()
    return EventStore(PostgresEventBackend(conn or get_app_db()))


__all__ = [
    "DataCorruptionError",
    "Event",
    "EventNotFoundError",
    "EventStore",
    "EventStoreError",
    "EventType",
    "InvalidArgumentError",
    "Page",
    "TechnicalError",
    "build_event_store",
]
