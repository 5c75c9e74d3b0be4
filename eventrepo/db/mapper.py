from typing import Iterable, List, Optional

from eventrepo.core.errors import DataCorruptionError
from eventrepo.core.events import Event, EventType
from eventrepo.db.records import EventRecord


def to_record(event: Optional[Event]) -> Optional[EventRecord]:
    if event is None:
        return None

    return EventRecord(
        id=event.id,
        type=event.type.name,
        payload=event.payload,
        parent_id=event.parent_id,
        properties=dict(event.properties or {}),
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def to_event(record: Optional[EventRecord]) -> Optional[Event]:
    if record is None:
        return None

    try:
        event_type = EventType[record.type]
    except KeyError:
        raise DataCorruptionError(record.id, record.type) from None

    return Event(
        id=record.id,
        type=event_type,
        payload=record.payload,
        parent_id=record.parent_id,
        properties=dict(record.properties),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_events(records: Iterable[EventRecord]) -> List[Event]:
    return [to_event(record) for record in records]
