from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from eventrepo.core.errors import (
    DataCorruptionError,
    EventNotFoundError,
    InvalidArgumentError,
    TechnicalError,
)
from eventrepo.core.event_store import EventStore
from eventrepo.core.events import Event, EventType
from eventrepo.db.records import EventRecord

from conftest import at, make_event


# --------------------------------------------------
# create / find_by_id
# --------------------------------------------------
def test_create_then_find_by_id(store):
    event = make_event("1", EventType.START_API, properties={"api_id": "a"}, parent_id="0")

    created = store.create(event)

    assert created == event
    assert store.find_by_id("1") == created


def test_create_assigns_id_and_timestamps(store):
    created = store.create(Event(type=EventType.GATEWAY_STARTED))

    assert created.id
    assert created.created_at is not None
    assert created.updated_at == created.created_at
    assert store.find_by_id(created.id) == created


def test_create_duplicate_id_is_technical_error(store):
    store.create(make_event("1"))

    with pytest.raises(TechnicalError):
        store.create(make_event("1", EventType.STOP_API))

    assert store.find_by_id("1").type == EventType.PUBLISH_API


def test_find_by_id_missing_returns_none(store):
    assert store.find_by_id("missing") is None


def test_find_by_id_unknown_type_raises_data_corruption(store, backend):
    backend.save(EventRecord(id="bad", type="UNKNOWN_KIND"))

    with pytest.raises(DataCorruptionError):
        store.find_by_id("bad")


def test_stored_state_is_isolated_from_callers(store):
    event = make_event("1", properties={"k": "v"})
    created = store.create(event)

    event.properties["k"] = "mutated"
    created.properties["k"] = "mutated"

    assert store.find_by_id("1").properties == {"k": "v"}


# --------------------------------------------------
# update
# --------------------------------------------------
def test_update_replaces_mutable_fields_only(store):
    store.create(make_event("1", properties={"k": "v"}, parent_id="p"))

    changed = Event(
        id="1",
        type=EventType.UNPUBLISH_API,
        payload="new",
        parent_id=None,
        properties={"other": "x"},
        created_at=at(59),
        updated_at=at(5),
    )
    updated = store.update(changed)

    assert updated.type == EventType.UNPUBLISH_API
    assert updated.payload == "new"
    assert updated.parent_id is None
    assert updated.properties == {"other": "x"}
    assert updated.updated_at == at(5)
    assert updated.created_at == at(0)
    assert store.find_by_id("1") == updated


def test_update_defaults_updated_at_to_now(store):
    store.create(make_event("1"))

    updated = store.update(Event(id="1", type=EventType.STOP_API))

    assert updated.updated_at > updated.created_at


def test_update_missing_event_is_not_found(store):
    with pytest.raises(EventNotFoundError):
        store.update(make_event("ghost"))

    assert store.find_by_id("ghost") is None


@pytest.mark.parametrize("event", [None, Event(type=EventType.STOP_API)])
def test_update_without_id_is_invalid(store, event):
    with pytest.raises(InvalidArgumentError):
        store.update(event)


def test_update_before_creation_is_invalid(store):
    store.create(make_event("1", minute=10))

    with pytest.raises(InvalidArgumentError):
        store.update(
            Event(id="1", type=EventType.STOP_API, updated_at=at(10) - timedelta(seconds=1))
        )

    assert store.find_by_id("1").type == EventType.PUBLISH_API


# --------------------------------------------------
# delete
# --------------------------------------------------
def test_delete_removes_event(store):
    store.create(make_event("1"))

    store.delete("1")

    assert store.find_by_id("1") is None


def test_delete_missing_id_is_silent(store):
    store.delete("never-existed")


def test_delete_backend_failure_is_technical_error():
    backend = MagicMock()
    backend.delete.side_effect = ConnectionError("connection reset")
    store = EventStore(backend)

    with pytest.raises(TechnicalError) as exc:
        store.delete("1")

    assert isinstance(exc.value.cause, ConnectionError)


def test_query_backend_failure_is_technical_error():
    backend = MagicMock()
    backend.find.side_effect = TimeoutError("slow")
    store = EventStore(backend)

    with pytest.raises(TechnicalError):
        store.find_by_type([EventType.START_API])


# --------------------------------------------------
# find_by_type / find_by_property
# --------------------------------------------------
def test_find_by_type_selects_only_requested_types(store):
    store.create(make_event("a", EventType.START_API, minute=1))
    store.create(make_event("b", EventType.STOP_API, minute=2))
    store.create(make_event("c", EventType.GATEWAY_STARTED, minute=3))

    found = store.find_by_type({EventType.START_API, EventType.STOP_API})

    assert {e.id for e in found} == {"a", "b"}


def test_find_by_type_empty_set(store):
    store.create(make_event("a"))

    assert store.find_by_type(set()) == []


def test_find_by_property_and_type_scenario(store):
    store.create(make_event("1", EventType.PUBLISH_API, properties={"k": "v"}))
    store.create(make_event("2", EventType.STOP_API, properties={"k": "v"}))
    store.create(make_event("3", EventType.STOP_API, properties={"k": "w"}))

    assert {e.id for e in store.find_by_property("k", "v")} == {"1", "2"}
    assert [e.id for e in store.find_by_type({EventType.PUBLISH_API})] == ["1"]


def test_find_by_property_nothing_matched(store):
    assert store.find_by_property("k", "v") == []


def test_queries_drop_duplicate_ids():
    record = EventRecord(id="1", type="START_API")
    backend = MagicMock()
    backend.find.return_value = [record, record.model_copy()]
    store = EventStore(backend)

    assert [e.id for e in store.find_by_property("k", "v")] == ["1"]


# --------------------------------------------------
# search
# --------------------------------------------------
@pytest.fixture
def populated(store):
    for minute in range(7):
        store.create(
            make_event(
                f"e{minute}",
                EventType.START_API if minute % 2 else EventType.STOP_API,
                minute=minute,
                properties={"api_id": "api-1"},
            )
        )
    store.create(make_event("other", minute=30, properties={"api_id": "api-2"}))
    return store


@pytest.mark.parametrize("page", [0, 1, 2, 3, 10])
def test_search_total_is_independent_of_page(populated, page):
    result = populated.search({"properties.api_id": "api-1"}, 0, 0, page, 3)

    assert len(result.content) <= 3
    assert result.total_elements == 7
    assert result.page_number == page
    assert result.page_size == 3


def test_search_orders_newest_first(populated):
    result = populated.search({"properties.api_id": "api-1"}, 0, 0, 0, 3)

    assert [e.id for e in result.content] == ["e6", "e5", "e4"]

    last = populated.search({"properties.api_id": "api-1"}, 0, 0, 2, 3)
    assert [e.id for e in last.content] == ["e0"]


def test_search_time_range_is_inclusive(populated):
    start = int(at(2).timestamp() * 1000)
    end = int(at(4).timestamp() * 1000)

    result = populated.search({}, start, end, 0, 10)

    assert [e.id for e in result.content] == ["e4", "e3", "e2"]
    assert result.total_elements == 3


def test_search_list_filter_matches_any(populated):
    result = populated.search({"type": [EventType.STOP_API]}, 0, 0, 0, 100)

    assert {e.id for e in result.content} == {"e0", "e2", "e4", "e6"}


def test_search_out_of_range_page_is_empty(populated):
    result = populated.search({}, 0, 0, -1, 5)

    assert result.content == []
    assert result.total_elements == 8


def test_search_unknown_filter_is_invalid(populated):
    with pytest.raises(InvalidArgumentError):
        populated.search({"color": "red"}, 0, 0, 0, 5)


def test_injected_logger_sees_failures():
    backend = MagicMock()
    backend.save.side_effect = RuntimeError("disk full")
    backend.find_one.return_value = EventRecord(id="1", type="START_API", createdAt=at(0))
    logger = MagicMock()
    store = EventStore(backend, logger=logger)

    with pytest.raises(TechnicalError):
        store.update(make_event("1", minute=1))

    logger.error.assert_called_once()
    assert logger.error.call_args.kwargs["event_id"] == "1"


def test_search_with_int64_max_upper_bound(populated):
    result = populated.search({}, 0, 2**63 - 1, 0, 10)

    assert result.total_elements == 8
    assert len(result.content) == 8


def test_search_with_int64_max_lower_bound_matches_nothing(populated):
    result = populated.search({}, 2**63 - 1, 0, 0, 10)

    assert result.content == []
    assert result.total_elements == 0


# --------------------------------------------------
# error propagation
# --------------------------------------------------
@pytest.fixture
def corrupted(store, backend):
    store.create(make_event("ok", EventType.START_API, properties={"k": "v"}))
    backend.save(EventRecord(id="bad", type="UNKNOWN_KIND", properties={"k": "v"}, createdAt=at(9)))
    return store


def test_find_by_type_surfaces_data_corruption():
    backend = MagicMock()
    backend.find.return_value = [EventRecord(id="bad", type="UNKNOWN_KIND")]

    with pytest.raises(DataCorruptionError):
        EventStore(backend).find_by_type({EventType.START_API})


def test_find_by_property_surfaces_data_corruption(corrupted):
    with pytest.raises(DataCorruptionError) as exc:
        corrupted.find_by_property("k", "v")

    assert exc.value.record_id == "bad"


def test_search_surfaces_data_corruption(corrupted):
    with pytest.raises(DataCorruptionError):
        corrupted.search({}, 0, 0, 0, 10)


def test_find_by_id_backend_failure_is_technical_error():
    backend = MagicMock()
    backend.find_one.side_effect = ConnectionError("gone")

    with pytest.raises(TechnicalError):
        EventStore(backend).find_by_id("1")


def test_count_backend_failure_is_technical_error():
    backend = MagicMock()
    backend.find.return_value = []
    backend.count.side_effect = TimeoutError("slow")

    with pytest.raises(TechnicalError) as exc:
        EventStore(backend).search({}, 0, 0, 0, 10)

    assert isinstance(exc.value.cause, TimeoutError)


@pytest.mark.parametrize("operation", ["create", "update"])
def test_event_without_type_is_invalid(store, operation):
    store.create(make_event("1"))

    with pytest.raises(InvalidArgumentError):
        getattr(store, operation)(Event(id="1", type=None))

    assert store.find_by_id("1").type == EventType.PUBLISH_API
