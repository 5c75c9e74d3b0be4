"""
Event Backend Interface
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from eventrepo.db.queries import EventCriteria
from eventrepo.db.records import EventRecord


class EventBackend(ABC):
    """
    Storage primitives the EventStore is built on.
    Implementations may raise whatever their driver raises; the store
    converts those failures at its boundary.
    """

    @abstractmethod
    def find_one(self, event_id: str) -> Optional[EventRecord]:
        pass

    @abstractmethod
    def insert(self, record: EventRecord) -> EventRecord:
        """
        Persist a new record. Fails if the id is already taken.
        """
        pass

    @abstractmethod
    def save(self, record: EventRecord) -> EventRecord:
        """
        Insert or fully replace the record with the same id.
        """
        pass

    @abstractmethod
    def delete(self, event_id: str) -> None:
        """
        Remove a record. Unknown ids are a no-op.
        """
        pass

    @abstractmethod
    def find(self, criteria: EventCriteria) -> List[EventRecord]:
        """
        Records matching criteria, newest createdAt first.
        """
        pass

    @abstractmethod
    def count(self, criteria: EventCriteria) -> int:
        """
        Number of matches, ignoring page and size.
        """
        pass
