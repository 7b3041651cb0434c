"""Lunch events: the group orders that participants place their orders against."""

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lunch_api.core.errors import Forbidden, NotFound, ValidationError
from lunch_api.core.security import TokenClaims
from lunch_api.models import ELEVATED_ROLES, LunchEvent, Order, Shop
from lunch_api.models.base import as_utc
from lunch_api.schemas.lunch import (
    DishSummary,
    EventAttendee,
    EventCreate,
    EventDetail,
    EventOut,
    EventStatistics,
    EventUpdate,
    ItemSummary,
    UserEventStats,
)

logger = logging.getLogger(__name__)


def can_manage_event(event: LunchEvent, actor: TokenClaims) -> bool:
    return event.owner_id == actor.user_id or actor.role in ELEVATED_ROLES


def event_attendees(event: LunchEvent) -> list[EventAttendee]:
    """One entry per ordering user, in order of their first order."""
    attendees: dict[str, EventAttendee] = {}
    for order in event.orders:
        if order.user_id in attendees:
            continue
        user = order.user
        attendees[order.user_id] = EventAttendee(
            id=order.user_id,
            name=user.name if user else "",
            email=user.email if user else "",
        )
    return list(attendees.values())


def event_statistics(event: LunchEvent) -> EventStatistics:
    """Totals, payment counts and dishes grouped by (name, unit price)."""
    stats = EventStatistics(attendee_count=len({order.user_id for order in event.orders}))
    grouped: dict[tuple[str, float], ItemSummary] = {}
    total = 0.0
    for order in event.orders:
        total += order.total
        if order.is_paid:
            stats.paid_orders += 1
        else:
            stats.unpaid_orders += 1
        for item in order.items:
            summary = grouped.get((item.name, item.price))
            if summary is None:
                summary = grouped[(item.name, item.price)] = ItemSummary(
                    name=item.name, price=item.price, quantity=0, total=0.0
                )
            summary.quantity += item.quantity
            summary.total = round(summary.total + item.price * item.quantity, 2)
    stats.total_amount = round(total, 2)
    stats.items = list(grouped.values())
    return stats


def _filter_dates(query, date_from: datetime | None, date_to: datetime | None):
    if date_from is not None:
        query = query.filter(LunchEvent.event_date >= as_utc(date_from))
    if date_to is not None:
        query = query.filter(LunchEvent.event_date <= as_utc(date_to))
    return query


class LunchEventService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_events(
        self,
        *,
        is_active: bool | None = None,
        owner_id: str | None = None,
        shop_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[LunchEvent]:
        query = self.db.query(LunchEvent)
        if is_active is not None:
            query = query.filter(LunchEvent.is_active == is_active)
        if owner_id:
            query = query.filter(LunchEvent.owner_id == owner_id)
        if shop_id:
            query = query.filter(LunchEvent.shop_id == shop_id)
        query = _filter_dates(query, date_from, date_to)
        return query.order_by(LunchEvent.event_date.desc()).all()

    def list_participated(self, user_id: str) -> list[LunchEvent]:
        """Events the user has placed an order in."""
        return (
            self.db.query(LunchEvent)
            .join(Order, Order.event_id == LunchEvent.id)
            .filter(Order.user_id == user_id)
            .order_by(LunchEvent.event_date.desc())
            .all()
        )

    def get_event(self, event_id: str) -> LunchEvent:
        event = self.db.get(LunchEvent, event_id)
        if event is None:
            raise NotFound("Event not found")
        return event

    def get_event_detail(self, event_id: str) -> EventDetail:
        event = self.get_event(event_id)
        return EventDetail(
            **EventOut.model_validate(event).model_dump(),
            attendees=event_attendees(event),
            statistics=event_statistics(event),
        )

    def user_statistics(
        self,
        user_id: str,
        *,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> UserEventStats:
        """Aggregate the events the user owns or has ordered in.

        Dishes are grouped by name only, so the same dish at different prices
        across shops is summed together.
        """
        query = self.db.query(LunchEvent).filter(
            or_(LunchEvent.owner_id == user_id, LunchEvent.orders.any(Order.user_id == user_id))
        )
        events = _filter_dates(query, date_from, date_to).all()

        stats = UserEventStats(total_events=len(events))
        dishes: dict[str, DishSummary] = {}
        participants: set[str] = set()
        total = 0.0
        for event in events:
            for order in event.orders:
                stats.total_orders += 1
                total += order.total
                participants.add(order.user_id)
                user_name = order.user.name if order.user else ""
                for item in order.items:
                    dish = dishes.get(item.name)
                    if dish is None:
                        dish = dishes[item.name] = DishSummary(
                            name=item.name, quantity=0, total_price=0.0, orders=0
                        )
                    dish.quantity += item.quantity
                    dish.total_price = round(dish.total_price + item.price * item.quantity, 2)
                    dish.orders += 1
                    if user_name not in dish.order_users:
                        dish.order_users.append(user_name)
        stats.total_amount = round(total, 2)
        stats.participant_count = len(participants)
        stats.item_summary = list(dishes.values())
        return stats

    def _check_shop(self, shop_id: str | None) -> None:
        if shop_id is not None and self.db.get(Shop, shop_id) is None:
            raise ValidationError(errors=["shop_id: shop does not exist"])

    @staticmethod
    def _check_dates(event_date, order_deadline) -> None:
        if as_utc(order_deadline) > as_utc(event_date):
            raise ValidationError(errors=["order_deadline: must not be after event_date"])

    def create_event(self, actor: TokenClaims, data: EventCreate) -> LunchEvent:
        """Create an event owned by the caller."""
        self._check_dates(data.event_date, data.order_deadline)
        self._check_shop(data.shop_id)
        values = data.model_dump()
        values["event_date"] = as_utc(data.event_date)
        values["order_deadline"] = as_utc(data.order_deadline)
        event = LunchEvent(owner_id=actor.user_id, **values)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        logger.info("Event created", extra={"event_id": event.id, "user_id": actor.user_id})
        return event

    def update_event(self, actor: TokenClaims, event_id: str, data: EventUpdate) -> LunchEvent:
        event = self.get_event(event_id)
        if not can_manage_event(event, actor):
            raise Forbidden("Only the event owner or a moderator can change this event")
        changes = data.model_dump(exclude_unset=True)
        for field in ("title", "event_date", "order_deadline", "is_active", "allow_custom_items"):
            if field in changes and changes[field] is None:
                del changes[field]
        for field in ("event_date", "order_deadline"):
            if field in changes:
                changes[field] = as_utc(changes[field])
        self._check_dates(
            changes.get("event_date", event.event_date),
            changes.get("order_deadline", event.order_deadline),
        )
        if "shop_id" in changes:
            self._check_shop(changes["shop_id"])
        for field, value in changes.items():
            setattr(event, field, value)
        self.db.commit()
        self.db.refresh(event)
        return event

    def delete_event(self, actor: TokenClaims, event_id: str) -> None:
        event = self.get_event(event_id)
        if not can_manage_event(event, actor):
            raise Forbidden("Only the event owner or a moderator can delete this event")
        self.db.delete(event)
        self.db.commit()
        logger.info("Event deleted", extra={"event_id": event_id, "user_id": actor.user_id})
