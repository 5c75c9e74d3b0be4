"""
Backend-neutral query criteria for the events collection.

Builders here only describe *what* to select. Each backend renders an
EventCriteria natively (SQL for Postgres, a predicate in memory).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from eventrepo.core.errors import InvalidArgumentError


PROPERTY_PREFIX = "properties."

# filter key -> record column
FILTER_FIELDS = {
    "id": "id",
    "type": "type",
    "payload": "payload",
    "parentId": "parentId",
    "parent_id": "parentId",
}


@dataclass(frozen=True)
class EventCriteria:
    types: Optional[FrozenSet[str]] = None
    equals: Tuple[Tuple[str, Any], ...] = ()
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    page: Optional[int] = None
    size: Optional[int] = None

    @property
    def paginated(self) -> bool:
        return self.page is not None and self.size is not None

    @property
    def offset(self) -> int:
        return self.page * self.size if self.paginated else 0

    @property
    def out_of_range(self) -> bool:
        # negative pages and empty page sizes select nothing
        return self.paginated and (self.page < 0 or self.size <= 0)


def _render(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(_render(v) for v in value)
    return value


_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def _from_epoch_ms(value: int) -> Optional[datetime]:
    if value is None or value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        # past year 9999: clamp to the latest representable instant
        return _LATEST


def by_types(types: Iterable[Any]) -> EventCriteria:
    return EventCriteria(types=frozenset(_render(t) for t in types))


def by_property(key: str, value: str) -> EventCriteria:
    return EventCriteria(equals=((PROPERTY_PREFIX + key, value),))


def for_search(
    filters: Optional[Dict[str, Any]],
    from_ms: int,
    to_ms: int,
    page: int,
    size: int,
) -> EventCriteria:
    equals = []
    for key, value in (filters or {}).items():
        if key.startswith(PROPERTY_PREFIX) and len(key) > len(PROPERTY_PREFIX):
            field = key
        elif key in FILTER_FIELDS:
            field = FILTER_FIELDS[key]
        else:
            raise InvalidArgumentError(f"Unsupported event filter [{key}]")
        equals.append((field, _render(value)))

    # page and size are not validated: out-of-range pages come back empty
    return EventCriteria(
        equals=tuple(equals),
        created_from=_from_epoch_ms(from_ms),
        created_to=_from_epoch_ms(to_ms),
        page=page,
        size=size,
    )
