from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from models.event import EventCreate, EventUpdate, EventEnvelope, EventListResponse
from models.user import TokenData, MessageResponse
from routes.auth import get_current_user, get_event_service
from services.event_service import EventService

# Create a router for event-related endpoints
event_router = APIRouter(
    prefix="/events",
    tags=["Events"]
)


@event_router.post(
    "",
    response_model=EventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event for the authenticated user"
)
def create_event(payload: EventCreate,
                 current_user: TokenData = Depends(get_current_user),
                 event_service: EventService = Depends(get_event_service)):
    return EventEnvelope(event=event_service.create(current_user.owner_id, payload))


@event_router.get(
    "",
    response_model=EventListResponse,
    summary="List the authenticated user's events, optionally within a date range"
)
def list_events(
    start_date: Optional[str] = Query(None, alias="startDate", examples=["2024-03-01"]),
    end_date: Optional[str] = Query(None, alias="endDate", examples=["2024-03-31T23:59:59Z"]),
    current_user: TokenData = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    """
    Events are ordered by date, then time. The range is inclusive and is only
    applied when both startDate and endDate are given.
    """
    events = event_service.list_by_owner(current_user.owner_id, start_date, end_date)
    return EventListResponse(events=events)


@event_router.get(
    "/date/{date}",
    response_model=EventListResponse,
    summary="List the authenticated user's events on one calendar day"
)
def list_events_by_date(date: str,
                        current_user: TokenData = Depends(get_current_user),
                        event_service: EventService = Depends(get_event_service)):
    return EventListResponse(events=event_service.list_by_date(current_user.owner_id, date))


@event_router.get("/{event_id}", response_model=EventEnvelope)
def get_event(event_id: str,
              current_user: TokenData = Depends(get_current_user),
              event_service: EventService = Depends(get_event_service)):
    return EventEnvelope(event=event_service.get_by_id(current_user.owner_id, event_id))


@event_router.put("/{event_id}", response_model=EventEnvelope)
def update_event(event_id: str,
                 payload: EventUpdate,
                 current_user: TokenData = Depends(get_current_user),
                 event_service: EventService = Depends(get_event_service)):
    event = event_service.update(
        current_user.owner_id, event_id, payload.model_dump(exclude_unset=True)
    )
    return EventEnvelope(event=event)


@event_router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(event_id: str,
                 current_user: TokenData = Depends(get_current_user),
                 event_service: EventService = Depends(get_event_service)):
    event_service.delete(current_user.owner_id, event_id)
    return MessageResponse(message="Event deleted successfully")


@event_router.patch("/{event_id}/toggle", response_model=EventEnvelope)
def toggle_event_completion(event_id: str,
                            current_user: TokenData = Depends(get_current_user),
                            event_service: EventService = Depends(get_event_service)):
    return EventEnvelope(event=event_service.toggle_completion(current_user.owner_id, event_id))
