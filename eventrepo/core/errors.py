from typing import Optional


class EventStoreError(Exception):
    """Base class for every error raised by the event store."""


class InvalidArgumentError(EventStoreError, ValueError):
    pass


class EventNotFoundError(EventStoreError, LookupError):
    def __init__(self, event_id: str):
        super().__init__(f"No event found with id [{event_id}]")
        self.event_id = event_id


class TechnicalError(EventStoreError):
    """
    A backend operation failed.

    The backend exception is kept on `cause` (and chained as __cause__
    by the raiser); its type never escapes the store.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DataCorruptionError(EventStoreError):
    def __init__(self, record_id: Optional[str], value: object):
        super().__init__(
            f"Event [{record_id}] has unknown type {value!r}"
        )
        self.record_id = record_id
        self.value = value
