"""Order endpoints: one order per user per event."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lunch_api.core.database import get_db
from lunch_api.core.dependencies import CurrentSession
from lunch_api.schemas.auth import MessageResponse
from lunch_api.schemas.lunch import OrderCreate, OrderOut, OrderUpdate, PaymentUpdate
from lunch_api.services.orders import OrderService

router = APIRouter()


def get_order_service(db: Annotated[Session, Depends(get_db)]) -> OrderService:
    return OrderService(db)


Orders = Annotated[OrderService, Depends(get_order_service)]


@router.get("", response_model=list[OrderOut])
def list_orders(
    session: CurrentSession,
    orders: Orders,
    event_id: str | None = None,
    user_id: str | None = None,
) -> list[OrderOut]:
    """
    The caller's own orders by default. Filtering by another user_id needs ADMIN or
    MODERATOR; the event owner filtering by event_id sees every order of the event.
    """
    return orders.list_orders(session, event_id=event_id, user_id=user_id)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(body: OrderCreate, session: CurrentSession, orders: Orders) -> OrderOut:
    """Place the caller's order. A second order for the same event answers 409."""
    return orders.create_order(session, body)


@router.get("/user/{user_id}/event/{event_id}", response_model=OrderOut)
def get_user_event_order(
    user_id: str, event_id: str, session: CurrentSession, orders: Orders
) -> OrderOut:
    """A user's order for an event: self, or ADMIN and MODERATOR."""
    return orders.get_user_event_order(session, user_id, event_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, session: CurrentSession, orders: Orders) -> OrderOut:
    return orders.get_order(session, order_id)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(order_id: str, body: OrderUpdate, session: CurrentSession, orders: Orders) -> OrderOut:
    return orders.update_order(session, order_id, body)


@router.delete("/{order_id}", response_model=MessageResponse)
def delete_order(order_id: str, session: CurrentSession, orders: Orders) -> MessageResponse:
    orders.delete_order(session, order_id)
    return MessageResponse(message="Order deleted")


@router.patch("/{order_id}/payment", response_model=OrderOut)
def update_payment(
    order_id: str, body: PaymentUpdate, session: CurrentSession, orders: Orders
) -> OrderOut:
    """Event owner, ADMIN or MODERATOR marks the order paid or unpaid."""
    return orders.update_payment(session, order_id, body)
