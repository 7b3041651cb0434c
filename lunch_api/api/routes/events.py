"""Lunch event endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lunch_api.core.database import get_db
from lunch_api.core.dependencies import CurrentSession
from lunch_api.schemas.auth import MessageResponse
from lunch_api.schemas.lunch import EventCreate, EventDetail, EventOut, EventUpdate, UserEventStats
from lunch_api.services.events import LunchEventService

router = APIRouter()


def get_event_service(db: Annotated[Session, Depends(get_db)]) -> LunchEventService:
    return LunchEventService(db)


Events = Annotated[LunchEventService, Depends(get_event_service)]


@router.get("", response_model=list[EventOut])
def list_events(
    _session: CurrentSession,
    events: Events,
    is_active: bool | None = None,
    owner_id: str | None = None,
    shop_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[EventOut]:
    return events.list_events(
        is_active=is_active,
        owner_id=owner_id,
        shop_id=shop_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/participated", response_model=list[EventOut])
def list_participated_events(session: CurrentSession, events: Events) -> list[EventOut]:
    """Events the caller has placed an order in."""
    return events.list_participated(session.user_id)


@router.get("/stats", response_model=UserEventStats)
def my_event_stats(
    session: CurrentSession,
    events: Events,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> UserEventStats:
    """Order totals across the events the caller owns or has ordered in."""
    return events.user_statistics(session.user_id, date_from=date_from, date_to=date_to)


@router.post("", response_model=EventOut, status_code=201)
def create_event(body: EventCreate, session: CurrentSession, events: Events) -> EventOut:
    """Any signed-in user can create an event; the caller becomes its owner."""
    return events.create_event(session, body)


@router.get("/{event_id}", response_model=EventDetail)
def get_event(event_id: str, _session: CurrentSession, events: Events) -> EventDetail:
    return events.get_event_detail(event_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, body: EventUpdate, session: CurrentSession, events: Events) -> EventOut:
    return events.update_event(session, event_id, body)


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(event_id: str, session: CurrentSession, events: Events) -> MessageResponse:
    events.delete_event(session, event_id)
    return MessageResponse(message="Event deleted")
