"""
In-Memory Event Backend
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from eventrepo.core.events import as_utc
from eventrepo.db.backend import EventBackend
from eventrepo.db.queries import PROPERTY_PREFIX, EventCriteria
from eventrepo.db.records import EventRecord


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _aware(value: Optional[datetime]) -> datetime:
    return _EPOCH if value is None else as_utc(value)


class DuplicateEventError(Exception):
    pass


class InMemoryEventBackend(EventBackend):
    """
    Dict-backed storage keyed by event id.
    Useful for testing and local demos; records are copied on the way
    in and out so callers never share state with the storage.
    """

    def __init__(self):
        self._storage: Dict[str, EventRecord] = {}

    def find_one(self, event_id: str) -> Optional[EventRecord]:
        record = self._storage.get(event_id)
        return record.model_copy(deep=True) if record else None

    def insert(self, record: EventRecord) -> EventRecord:
        if record.id in self._storage:
            raise DuplicateEventError(f"duplicate key: {record.id}")
        return self.save(record)

    def save(self, record: EventRecord) -> EventRecord:
        self._storage[record.id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    def delete(self, event_id: str) -> None:
        self._storage.pop(event_id, None)

    def _field(self, record: EventRecord, field: str) -> Any:
        if field.startswith(PROPERTY_PREFIX):
            return record.properties.get(field[len(PROPERTY_PREFIX):])
        return record.to_document()[field]

    def _matches(self, record: EventRecord, criteria: EventCriteria) -> bool:
        if criteria.types is not None and record.type not in criteria.types:
            return False

        for field, expected in criteria.equals:
            actual = self._field(record, field)
            if isinstance(expected, tuple):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False

        created_at = _aware(record.created_at)
        if criteria.created_from is not None and created_at < criteria.created_from:
            return False
        if criteria.created_to is not None and created_at > criteria.created_to:
            return False

        return True

    def _select(self, criteria: EventCriteria) -> List[EventRecord]:
        matches = [r for r in self._storage.values() if self._matches(r, criteria)]
        # createdAt DESC, id DESC
        matches.sort(key=lambda r: (_aware(r.created_at), r.id), reverse=True)
        return matches

    def find(self, criteria: EventCriteria) -> List[EventRecord]:
        if criteria.out_of_range:
            return []

        matches = self._select(criteria)
        if criteria.paginated:
            matches = matches[criteria.offset : criteria.offset + criteria.size]
        return [r.model_copy(deep=True) for r in matches]

    def count(self, criteria: EventCriteria) -> int:
        return len(self._select(criteria))

    def clear(self):
        self._storage.clear()
