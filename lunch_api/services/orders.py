"""Orders: one per participant per event, priced server-side from the menu."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lunch_api.core.errors import Conflict, Forbidden, NotFound, ValidationError
from lunch_api.core.security import TokenClaims
from lunch_api.models import ELEVATED_ROLES, LunchEvent, MenuItem, Order, OrderItem
from lunch_api.models.base import as_utc, utcnow
from lunch_api.schemas.lunch import OrderCreate, OrderItemIn, OrderUpdate, PaymentUpdate

logger = logging.getLogger(__name__)

DUPLICATE_ORDER_MESSAGE = "You already have an order for this event"


def _is_elevated(actor: TokenClaims) -> bool:
    return actor.role in ELEVATED_ROLES


def ordering_open(event: LunchEvent) -> bool:
    """Orders may be placed or changed while the event is active and before its deadline."""
    return bool(event.is_active) and utcnow() < as_utc(event.order_deadline)


class OrderService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _get_event(self, event_id: str) -> LunchEvent:
        event = self.db.get(LunchEvent, event_id)
        if event is None:
            raise NotFound("Event not found")
        return event

    def _get_order(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    def _require_open(self, event: LunchEvent) -> None:
        if not ordering_open(event):
            raise ValidationError("Ordering is closed for this event")

    def _build_items(self, event: LunchEvent, items: list[OrderItemIn]) -> list[OrderItem]:
        built: list[OrderItem] = []
        errors: list[str] = []
        for index, entry in enumerate(items):
            field = f"items.{index}"
            if entry.menu_item_id:
                menu_item = self.db.get(MenuItem, entry.menu_item_id)
                if menu_item is None or not menu_item.is_available:
                    errors.append(f"{field}.menu_item_id: item is not available")
                    continue
                if event.shop_id is not None and menu_item.menu.shop_id != event.shop_id:
                    errors.append(f"{field}.menu_item_id: item is not on this event's shop menu")
                    continue
                built.append(
                    OrderItem(
                        menu_item_id=menu_item.id,
                        name=menu_item.name,
                        price=menu_item.price,
                        quantity=entry.quantity,
                        note=entry.note,
                    )
                )
                continue
            if not event.allow_custom_items:
                errors.append(f"{field}: custom items are not allowed for this event")
                continue
            if not entry.name or entry.price is None:
                errors.append(f"{field}: custom items need a name and a price")
                continue
            built.append(
                OrderItem(name=entry.name, price=entry.price, quantity=entry.quantity, note=entry.note)
            )
        if errors:
            raise ValidationError(errors=errors)
        return built

    @staticmethod
    def _total(items: list[OrderItem]) -> float:
        return round(sum(item.price * item.quantity for item in items), 2)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise Conflict(DUPLICATE_ORDER_MESSAGE) from exc

    def _can_view(self, order: Order, actor: TokenClaims) -> bool:
        return (
            order.user_id == actor.user_id
            or order.event.owner_id == actor.user_id
            or _is_elevated(actor)
        )

    def create_order(self, actor: TokenClaims, data: OrderCreate) -> Order:
        event = self._get_event(data.event_id)
        self._require_open(event)
        existing = (
            self.db.query(Order.id)
            .filter(Order.user_id == actor.user_id, Order.event_id == event.id)
            .first()
        )
        if existing is not None:
            raise Conflict(DUPLICATE_ORDER_MESSAGE)

        items = self._build_items(event, data.items)
        order = Order(
            user_id=actor.user_id,
            event_id=event.id,
            note=data.note,
            items=items,
            total=self._total(items),
        )
        self.db.add(order)
        self._commit()
        self.db.refresh(order)
        logger.info("Order placed", extra={"order_id": order.id, "event_id": event.id})
        return order

    def list_orders(
        self,
        actor: TokenClaims,
        *,
        event_id: str | None = None,
        user_id: str | None = None,
    ) -> list[Order]:
        """
        List orders. Without user_id a caller sees their own orders, except that the
        event owner (or a moderator) filtering by event_id sees every order of that event.
        """
        if user_id is not None and user_id != actor.user_id and not _is_elevated(actor):
            raise Forbidden()
        query = self.db.query(Order)
        if event_id:
            query = query.filter(Order.event_id == event_id)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        elif not event_id or not self._manages_event(actor, event_id):
            query = query.filter(Order.user_id == actor.user_id)
        return query.order_by(Order.created_at).all()

    def _manages_event(self, actor: TokenClaims, event_id: str) -> bool:
        if _is_elevated(actor):
            return True
        event = self.db.get(LunchEvent, event_id)
        return event is not None and event.owner_id == actor.user_id

    def get_order(self, actor: TokenClaims, order_id: str) -> Order:
        order = self._get_order(order_id)
        if not self._can_view(order, actor):
            raise Forbidden()
        return order

    def get_user_event_order(self, actor: TokenClaims, user_id: str, event_id: str) -> Order:
        if user_id != actor.user_id and not _is_elevated(actor):
            raise Forbidden()
        order = (
            self.db.query(Order)
            .filter(Order.user_id == user_id, Order.event_id == event_id)
            .first()
        )
        if order is None:
            raise NotFound("Order not found")
        return order

    def update_order(self, actor: TokenClaims, order_id: str, data: OrderUpdate) -> Order:
        order = self._get_order(order_id)
        if order.user_id != actor.user_id:
            raise Forbidden("Only the order owner can change this order")
        self._require_open(order.event)
        if data.items is not None:
            items = self._build_items(order.event, data.items)
            order.items = items
            order.total = self._total(items)
        if "note" in data.model_fields_set:
            order.note = data.note
        self._commit()
        self.db.refresh(order)
        return order

    def delete_order(self, actor: TokenClaims, order_id: str) -> None:
        order = self._get_order(order_id)
        if order.user_id != actor.user_id and not _is_elevated(actor):
            raise Forbidden()
        self.db.delete(order)
        self.db.commit()
        logger.info("Order deleted", extra={"order_id": order_id, "user_id": actor.user_id})

    def update_payment(self, actor: TokenClaims, order_id: str, data: PaymentUpdate) -> Order:
        """Mark an order paid or unpaid. Only the event owner or a moderator may do this."""
        order = self._get_order(order_id)
        if order.event.owner_id != actor.user_id and not _is_elevated(actor):
            raise Forbidden("Only the event owner or a moderator can update payment status")
        order.is_paid = data.is_paid
        order.paid_at = utcnow() if data.is_paid else None
        order.paid_method = data.paid_method if data.is_paid else None
        order.paid_note = data.paid_note
        self.db.commit()
        self.db.refresh(order)
        return order
