from datetime import date, datetime, timezone

import pytest
from bson import ObjectId

from services.errors import NotFound, ValidationError

ALICE = "65f0c0ffee0000000000a11c"
BOB = "65f0c0ffee0000000000b0b0"


@pytest.fixture(autouse=True)
def owners(database):
    database.users.insert_many([
        {"_id": ObjectId(ALICE), "email": "alice@example.com", "first_name": "Alice", "last_name": "Smith"},
        {"_id": ObjectId(BOB), "email": "bob@example.com", "first_name": "Bob", "last_name": "Jones"},
    ])


def test_create_defaults_to_not_completed(event_service):
    event = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T00:00:00Z"})

    assert event.title == "Dentist"
    assert event.owner_id == ALICE
    assert event.is_completed is False
    assert event.date == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert event.time is None


def test_create_trims_text_fields(event_service):
    event = event_service.create(ALICE, {
        "title": "  Lunch  ",
        "date": "2024-03-01T12:00:00Z",
        "time": " 12:00 ",
        "description": " with Bob ",
    })

    assert event.title == "Lunch"
    assert event.time == "12:00"
    assert event.description == "with Bob"


@pytest.mark.parametrize("fields", [
    {"date": "2024-03-01T00:00:00Z"},
    {"title": "", "date": "2024-03-01T00:00:00Z"},
    {"title": "x" * 101, "date": "2024-03-01T00:00:00Z"},
    {"title": "Dentist"},
    {"title": "Dentist", "date": "next tuesday"},
    {"title": "Dentist", "date": "2024-03-01T00:00:00Z", "description": "x" * 501},
])
def test_create_validation(event_service, database, fields):
    with pytest.raises(ValidationError):
        event_service.create(ALICE, fields)
    assert database.events.count_documents({}) == 0


def test_create_accepts_limits(event_service):
    event = event_service.create(ALICE, {
        "title": "x" * 100,
        "date": "2024-03-01T00:00:00Z",
        "description": "y" * 500,
    })

    assert len(event.title) == 100
    assert len(event.description) == 500


def test_create_time_is_unbounded_free_text(event_service):
    when = "after the school run, or whenever the dentist can fit us in that morning"

    event = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T00:00:00Z", "time": when})

    assert event.time == when


@pytest.mark.parametrize("owner_id", ["65f0c0ffee0000000000dead", "not-an-id"])
def test_create_for_missing_owner_is_not_found(event_service, database, owner_id):
    with pytest.raises(NotFound) as exc_info:
        event_service.create(owner_id, {"title": "Ghost", "date": "2024-03-01T00:00:00Z"})

    assert exc_info.value.message == "User not found"
    assert database.events.count_documents({}) == 0


def test_list_by_owner_orders_by_date_then_time(event_service):
    event_service.create(ALICE, {"title": "Later", "date": "2024-03-02T00:00:00Z", "time": "08:00"})
    event_service.create(ALICE, {"title": "Afternoon", "date": "2024-03-01T00:00:00Z", "time": "15:00"})
    event_service.create(ALICE, {"title": "Morning", "date": "2024-03-01T00:00:00Z", "time": "09:00"})
    event_service.create(BOB, {"title": "Not mine", "date": "2024-03-01T00:00:00Z", "time": "07:00"})

    titles = [e.title for e in event_service.list_by_owner(ALICE)]

    assert titles == ["Morning", "Afternoon", "Later"]


def test_list_by_owner_range_is_inclusive(event_service):
    event_service.create(ALICE, {"title": "Before", "date": "2024-02-29T23:59:59Z", "time": "a"})
    event_service.create(ALICE, {"title": "Start", "date": "2024-03-01T00:00:00Z", "time": "b"})
    event_service.create(ALICE, {"title": "End", "date": "2024-03-31T00:00:00Z", "time": "c"})
    event_service.create(ALICE, {"title": "After", "date": "2024-04-01T00:00:00Z", "time": "d"})

    titles = [e.title for e in event_service.list_by_owner(ALICE, "2024-03-01", "2024-03-31")]

    assert titles == ["Start", "End"]


def test_list_by_owner_single_bound_is_ignored(event_service):
    event_service.create(ALICE, {"title": "Old", "date": "2020-01-01T00:00:00Z", "time": "a"})
    event_service.create(ALICE, {"title": "New", "date": "2024-03-01T00:00:00Z", "time": "b"})

    assert len(event_service.list_by_owner(ALICE, start_date="2024-01-01")) == 2


def test_list_by_owner_empty_is_not_an_error(event_service):
    assert event_service.list_by_owner(ALICE) == []
    assert event_service.list_by_owner(ALICE, "2024-03-01", "2024-03-31") == []


def test_list_by_owner_rejects_bad_bounds(event_service):
    with pytest.raises(ValidationError):
        event_service.list_by_owner(ALICE, "yesterday", "today")


def test_list_by_date_covers_whole_day_ordered_by_time(event_service):
    event_service.create(ALICE, {"title": "Late", "date": "2024-03-01T23:59:59.999Z", "time": "23:59"})
    event_service.create(ALICE, {"title": "Early", "date": "2024-03-01T00:00:00Z", "time": "00:00"})
    event_service.create(ALICE, {"title": "Noon", "date": "2024-03-01T12:00:00Z", "time": "12:00"})
    event_service.create(ALICE, {"title": "Next day", "date": "2024-03-02T00:00:00Z", "time": "00:00"})
    event_service.create(BOB, {"title": "Bob's", "date": "2024-03-01T12:00:00Z", "time": "12:00"})

    by_date = event_service.list_by_date(ALICE, "2024-03-01")
    by_range = event_service.list_by_owner(
        ALICE,
        datetime(2024, 3, 1, 0, 0, 0),
        datetime(2024, 3, 1, 23, 59, 59, 999000),
    )

    assert [e.title for e in by_date] == ["Early", "Noon", "Late"]
    assert [e.id for e in by_date] == [e.id for e in by_range]


def test_list_by_date_accepts_date_objects_and_timestamps(event_service):
    event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    assert len(event_service.list_by_date(ALICE, date(2024, 3, 1))) == 1
    assert len(event_service.list_by_date(ALICE, "2024-03-01T18:30:00")) == 1
    assert event_service.list_by_date(ALICE, "2024-03-02") == []


def test_list_by_date_rejects_garbage(event_service):
    with pytest.raises(ValidationError):
        event_service.list_by_date(ALICE, "March first")


def test_get_by_id(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    assert event_service.get_by_id(ALICE, created.id) == created


def test_other_owner_gets_not_found_everywhere(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    with pytest.raises(NotFound):
        event_service.get_by_id(BOB, created.id)
    with pytest.raises(NotFound):
        event_service.update(BOB, created.id, {"title": "Hijacked"})
    with pytest.raises(NotFound):
        event_service.toggle_completion(BOB, created.id)
    with pytest.raises(NotFound):
        event_service.delete(BOB, created.id)

    untouched = event_service.get_by_id(ALICE, created.id)
    assert untouched.title == "Dentist"
    assert untouched.is_completed is False


def test_foreign_and_missing_events_look_the_same(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    with pytest.raises(NotFound) as foreign:
        event_service.get_by_id(BOB, created.id)
    with pytest.raises(NotFound) as missing:
        event_service.get_by_id(BOB, "65f0c0ffee00000000000000")
    with pytest.raises(NotFound) as malformed:
        event_service.get_by_id(BOB, "not-an-id")

    assert foreign.value.message == missing.value.message == malformed.value.message


def test_update_changes_fields_and_touches_updated_at(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    updated = event_service.update(ALICE, created.id, {
        "title": "Orthodontist",
        "date": "2024-03-05T10:00:00+02:00",
        "description": "Bring x-rays",
    })

    assert updated.title == "Orthodontist"
    assert updated.date == datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc)
    assert updated.description == "Bring x-rays"
    assert updated.owner_id == ALICE
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at


def test_update_revalidates(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    with pytest.raises(ValidationError):
        event_service.update(ALICE, created.id, {"title": "x" * 101})
    with pytest.raises(ValidationError):
        event_service.update(ALICE, created.id, {"title": None})
    with pytest.raises(ValidationError):
        event_service.update(ALICE, created.id, {"description": "x" * 501})

    assert event_service.get_by_id(ALICE, created.id).title == "Dentist"


def test_update_cannot_move_event_to_another_owner(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    event_service.update(ALICE, created.id, {"ownerId": BOB, "title": "Still mine"})

    assert event_service.get_by_id(ALICE, created.id).title == "Still mine"
    assert event_service.list_by_owner(BOB) == []


def test_toggle_completion_flips(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    assert event_service.toggle_completion(ALICE, created.id).is_completed is True
    assert event_service.toggle_completion(ALICE, created.id).is_completed is False


def test_delete_then_get_is_not_found(event_service):
    created = event_service.create(ALICE, {"title": "Dentist", "date": "2024-03-01T10:00:00Z"})

    event_service.delete(ALICE, created.id)

    with pytest.raises(NotFound):
        event_service.get_by_id(ALICE, created.id)
    with pytest.raises(NotFound):
        event_service.delete(ALICE, created.id)
