from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime, timezone

from models.user import ApiModel


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=100, examples=["Dentist"])
    date: datetime = Field(..., examples=["2024-03-01T09:00:00Z"])
    time: Optional[str] = Field(None, examples=["09:30"])
    description: Optional[str] = Field(None, max_length=500, examples=["Annual check-up"])

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return as_utc(v)


class EventUpdate(ApiModel):
    """All fields optional; title and date may be changed but not cleared."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[datetime] = None
    time: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    is_completed: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else v


class EventResponse(ApiModel):
    id: str
    owner_id: str
    title: str
    date: datetime
    time: Optional[str] = None
    description: Optional[str] = None
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime


class EventEnvelope(ApiModel):
    success: bool = True
    event: EventResponse


class EventListResponse(ApiModel):
    success: bool = True
    events: List[EventResponse]
