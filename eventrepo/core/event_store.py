from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from eventrepo.core.errors import (
    EventNotFoundError,
    EventStoreError,
    InvalidArgumentError,
    TechnicalError,
)
from eventrepo.core.events import Event, EventType, Page, as_utc, utc_now
from eventrepo.db import mapper, queries
from eventrepo.db.backend import EventBackend
from eventrepo.db.records import EventRecord
from eventrepo.infra.logging import get_logger


class EventStore:
    """
    Storage-agnostic access to persisted events.

    Every backend failure surfaces as TechnicalError; mapping errors
    (DataCorruptionError) and argument errors pass through untouched.
    The store holds no state besides its collaborators.
    """

    def __init__(self, backend: EventBackend, logger: Any = None):
        self.backend = backend
        self.logger = logger or get_logger(__name__)

    @contextmanager
    def _guard(self, action: str, **fields):
        try:
            yield
        except EventStoreError:
            raise
        except Exception as e:
            self.logger.error(f"An error occurred when {action}", exc_info=True, **fields)
            raise TechnicalError(f"An error occurred when {action}", cause=e) from e

    def _unique(self, records: Iterable[EventRecord]) -> List[Event]:
        # dedup on id, keeping backend order
        events: Dict[str, Event] = {}
        for event in mapper.to_events(records):
            events.setdefault(event.id, event)
        return list(events.values())

    # --------------------------------------------------
    # Single-record operations
    # --------------------------------------------------
    def find_by_id(self, event_id: str) -> Optional[Event]:
        self.logger.debug("Find event by ID", event_id=event_id)

        with self._guard("finding event", event_id=event_id):
            record = self.backend.find_one(event_id)
        event = mapper.to_event(record)

        self.logger.debug("Find event by ID - Done", event_id=event_id, found=event is not None)
        return event

    def create(self, event: Event) -> Event:
        if event is None:
            raise InvalidArgumentError("Event to create must not be null")
        if event.type is None:
            raise InvalidArgumentError("Event to create must have a type")

        created_at = event.created_at or utc_now()
        event = replace(
            event,
            id=event.id or str(uuid4()),
            created_at=created_at,
            updated_at=event.updated_at or created_at,
        )
        self.logger.debug("Create event", event_id=event.id, type=event.type.name)

        with self._guard("creating event", event_id=event.id):
            stored = self.backend.insert(mapper.to_record(event))
        created = mapper.to_event(stored)

        self.logger.debug("Create event - Done", event_id=event.id)
        return created

    def update(self, event: Event) -> Event:
        if event is None or event.id is None:
            raise InvalidArgumentError("Event to update must have an id")
        if event.type is None:
            raise InvalidArgumentError("Event to update must have a type")

        self.logger.debug("Update event", event_id=event.id)

        with self._guard("updating event", event_id=event.id):
            record = self.backend.find_one(event.id)
        if record is None:
            raise EventNotFoundError(event.id)

        updated_at = event.updated_at or utc_now()
        if record.created_at is not None and as_utc(updated_at) < as_utc(record.created_at):
            raise InvalidArgumentError(
                f"Event [{event.id}] cannot be updated before it was created"
            )

        # id and createdAt stay as stored
        record.properties = dict(event.properties or {})
        record.type = event.type.name
        record.payload = event.payload
        record.parent_id = event.parent_id
        record.updated_at = updated_at

        with self._guard("updating event", event_id=event.id):
            saved = self.backend.save(record)
        updated = mapper.to_event(saved)

        self.logger.debug("Update event - Done", event_id=event.id)
        return updated

    def delete(self, event_id: str) -> None:
        if event_id is None:
            raise InvalidArgumentError("Event to delete must have an id")

        with self._guard("deleting event", event_id=event_id):
            self.backend.delete(event_id)

        self.logger.debug("Delete event - Done", event_id=event_id)

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------
    def find_by_type(self, types: Iterable[EventType]) -> List[Event]:
        if types is None:
            raise InvalidArgumentError("Event types must not be null")

        criteria = queries.by_types(types)
        self.logger.debug("Find events by type", types=sorted(criteria.types))

        with self._guard("finding events by type"):
            records = self.backend.find(criteria)
        return self._unique(records)

    def find_by_property(self, key: str, value: str) -> List[Event]:
        if key is None:
            raise InvalidArgumentError("Property key must not be null")

        self.logger.debug("Find events by property", key=key, value=value)

        with self._guard("finding events by property", key=key):
            records = self.backend.find(queries.by_property(key, value))
        return self._unique(records)

    def search(
        self,
        filters: Optional[Dict[str, Any]],
        from_ms: int,
        to_ms: int,
        page: int,
        size: int,
    ) -> Page:
        criteria = queries.for_search(filters, from_ms, to_ms, page, size)
        self.logger.debug("Search events", filters=filters, page=page, size=size)

        with self._guard("searching events", page=page, size=size):
            records = self.backend.find(criteria)
            total = self.backend.count(criteria)

        return Page(
            content=mapper.to_events(records),
            page_number=page,
            page_size=size,
            total_elements=total,
        )
