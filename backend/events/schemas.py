"""Pydantic request / response models for the event endpoints."""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel

from submissions.schemas import LeaderboardEntry

EventStatus = Literal["draft", "active", "archived"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


# -- Requests --------------------------------------------------------------


class EventCreate(BaseModel):
    name: str
    description: str = ""
    banner_url: Optional[str] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    status: EventStatus = "active"


class EventUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    banner_url: Optional[str] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    status: Optional[EventStatus] = None


# -- Responses -------------------------------------------------------------


class EventResponse(BaseModel):
    id: int
    name: str
    description: str
    banner_url: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: List[EventResponse]


class EventDetailResponse(BaseModel):
    event: Optional[EventResponse]


class EventScoreboardResponse(BaseModel):
    event_id: int
    leaderboard: List[LeaderboardEntry]
