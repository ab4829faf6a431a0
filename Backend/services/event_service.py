"""
Owner-scoped CRUD and date queries over the events collection.

Every query carries the caller's ``owner_id``. An event that does not exist
and an event owned by somebody else are reported identically.
"""
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Mapping

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pydantic import ValidationError as PydanticValidationError

from db.database import DatabaseClient
from models.event import EventCreate, EventUpdate, EventResponse, as_utc
from services.errors import (
    ValidationError,
    NotFound,
    format_validation_error,
    handle_store_errors,
)

logger = logging.getLogger(__name__)

EVENT_NOT_FOUND_MESSAGE = "Event not found"
USER_NOT_FOUND_MESSAGE = "User not found"
END_OF_DAY = time(23, 59, 59, 999000)


def _to_store(value: datetime) -> datetime:
    """MongoDB keeps UTC; queries and documents use naive UTC datetimes."""
    return as_utc(value).replace(tzinfo=None)


def _now() -> datetime:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def parse_datetime(value: datetime | date | str, field: str = "date") -> datetime:
    """
    Accepts datetimes, dates and ISO 8601 strings ('2024-03-01' or
    '2024-03-01T09:00:00Z'). Dates become midnight UTC.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            pass
    raise ValidationError(f"{field}: invalid date '{value}'")


def _calendar_day(value: datetime | date | str) -> date:
    """The calendar date as written by the caller, before any UTC conversion."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            pass
    raise ValidationError(f"date: invalid date '{value}'")


def _event_out(doc: Mapping[str, Any]) -> EventResponse:
    return EventResponse(
        id=str(doc["_id"]),
        owner_id=doc["owner_id"],
        title=doc["title"],
        date=as_utc(doc["date"]),
        time=doc.get("time"),
        description=doc.get("description"),
        is_completed=doc.get("is_completed", False),
        created_at=as_utc(doc["created_at"]),
        updated_at=as_utc(doc["updated_at"]),
    )


class EventService:

    def __init__(self, database: DatabaseClient):
        self.database = database

    @property
    def events(self):
        return self.database.events

    def _scoped(self, owner_id: str, event_id: str) -> Dict[str, Any]:
        """Filter matching one event of one owner; malformed ids never match."""
        if not ObjectId.is_valid(event_id):
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return {"_id": ObjectId(event_id), "owner_id": str(owner_id)}

    def _owner_exists(self, owner_id: str) -> bool:
        if not ObjectId.is_valid(owner_id):
            return False
        return self.database.users.count_documents({"_id": ObjectId(owner_id)}, limit=1) > 0

    @handle_store_errors
    def create(self, owner_id: str, fields: EventCreate | Mapping[str, Any]) -> EventResponse:
        """
        Create an event owned by ``owner_id``.

        Raises:
            ValidationError: title missing or over 100 chars, date missing,
                description over 500 chars
            NotFound: the owner no longer exists (account deleted while a
                token is still valid)
        """
        try:
            event = EventCreate.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_error(e))

        if not self._owner_exists(owner_id):
            raise NotFound(USER_NOT_FOUND_MESSAGE)

        now = _now()
        doc = {
            "title": event.title,
            "time": event.time or None,
            "date": _to_store(event.date),
            "owner_id": str(owner_id),
            "description": event.description or None,
            "is_completed": False,
            "created_at": now,
            "updated_at": now,
        }
        result = self.events.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Created event {result.inserted_id} for owner {owner_id}")
        return _event_out(doc)

    @handle_store_errors
    def list_by_owner(self, owner_id: str,
                      start_date: datetime | date | str | None = None,
                      end_date: datetime | date | str | None = None) -> List[EventResponse]:
        """
        All of the owner's events ordered by date, then time.

        The inclusive range filter only applies when both bounds are given.
        """
        query: Dict[str, Any] = {"owner_id": str(owner_id)}
        if start_date and end_date:
            query["date"] = {
                "$gte": _to_store(parse_datetime(start_date, "startDate")),
                "$lte": _to_store(parse_datetime(end_date, "endDate")),
            }
        cursor = self.events.find(query).sort([("date", ASCENDING), ("time", ASCENDING)])
        return [_event_out(doc) for doc in cursor]

    @handle_store_errors
    def list_by_date(self, owner_id: str, day: datetime | date | str) -> List[EventResponse]:
        """
        Events falling on one calendar day (UTC), ordered by time.
        """
        calendar_day = _calendar_day(day)
        start_of_day = datetime.combine(calendar_day, time.min)
        end_of_day = datetime.combine(calendar_day, END_OF_DAY)
        cursor = self.events.find({
            "owner_id": str(owner_id),
            "date": {"$gte": start_of_day, "$lte": end_of_day},
        }).sort([("time", ASCENDING), ("date", ASCENDING)])
        return [_event_out(doc) for doc in cursor]

    @handle_store_errors
    def get_by_id(self, owner_id: str, event_id: str) -> EventResponse:
        doc = self.events.find_one(self._scoped(owner_id, event_id))
        if not doc:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return _event_out(doc)

    @handle_store_errors
    def update(self, owner_id: str, event_id: str,
               fields: EventUpdate | Mapping[str, Any]) -> EventResponse:
        """
        Partially update an event. Owner, id and timestamps are not writable.
        """
        scope = self._scoped(owner_id, event_id)
        try:
            update = EventUpdate.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_error(e))

        changes = update.model_dump(exclude_unset=True)
        for required in ("title", "date", "is_completed"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be empty")
        if "date" in changes:
            changes["date"] = _to_store(changes["date"])
        for optional in ("time", "description"):
            if optional in changes and not changes[optional]:
                changes[optional] = None
        changes["updated_at"] = _now()

        doc = self.events.find_one_and_update(
            scope,
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return _event_out(doc)

    @handle_store_errors
    def delete(self, owner_id: str, event_id: str) -> None:
        result = self.events.delete_one(self._scoped(owner_id, event_id))
        if result.deleted_count == 0:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)

    @handle_store_errors
    def toggle_completion(self, owner_id: str, event_id: str) -> EventResponse:
        scope = self._scoped(owner_id, event_id)
        doc = self.events.find_one(scope)
        if not doc:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        # Last writer wins if two toggles race
        doc = self.events.find_one_and_update(
            scope,
            {"$set": {"is_completed": not doc.get("is_completed", False), "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound(EVENT_NOT_FOUND_MESSAGE)
        return _event_out(doc)

    @handle_store_errors
    def delete_all_for_owner(self, owner_id: str) -> int:
        result = self.events.delete_many({"owner_id": str(owner_id)})
        return result.deleted_count
