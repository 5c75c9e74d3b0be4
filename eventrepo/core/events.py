from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class EventType(str, Enum):
    PUBLISH_API = "PUBLISH_API"
    UNPUBLISH_API = "UNPUBLISH_API"
    START_API = "START_API"
    STOP_API = "STOP_API"
    GATEWAY_STARTED = "GATEWAY_STARTED"
    GATEWAY_STOPPED = "GATEWAY_STOPPED"

    def __str__(self) -> str:
        return self.name


@dataclass
class Event:
    type: EventType
    id: Optional[str] = None
    payload: Optional[str] = None
    parent_id: Optional[str] = None  # weak link, never enforced
    properties: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Page:
    """
    One slice of a search result.

    page_number is zero-based; total_elements counts every match,
    not just the events in content.
    """
    content: List[Event]
    page_number: int
    page_size: int
    total_elements: int


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # naive timestamps are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
