"""Pydantic schemas for shops, menus, lunch events and orders."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

NAME_MAX_LENGTH = 255
TEXT_MAX_LENGTH = 2_000
# Upper bound for one batch of menu items.
BATCH_MAX_ITEMS = 200


# --- Shops and menus ---


class ShopCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    address: str | None = Field(default=None, max_length=512)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=512)
    is_active: bool = True


class ShopUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    address: str | None = Field(default=None, max_length=512)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=512)
    is_active: bool | None = None


class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    is_available: bool = True
    is_default: bool = False


class MenuUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    is_available: bool | None = None
    is_default: bool | None = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    sort_order: int | None = None
    is_active: bool | None = None


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    price: float = Field(..., ge=0)
    category_id: str | None = None
    is_available: bool = True
    sort_order: int = 0


class MenuItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    price: float | None = Field(default=None, ge=0)
    category_id: str | None = None
    is_available: bool | None = None
    sort_order: int | None = None


class MenuItemBatchCreate(BaseModel):
    items: list[MenuItemCreate] = Field(..., min_length=1, max_length=BATCH_MAX_ITEMS)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    menu_id: str
    name: str
    description: str | None = None
    sort_order: int
    is_active: bool


class MenuItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    menu_id: str
    category_id: str | None = None
    name: str
    description: str | None = None
    price: float
    is_available: bool
    sort_order: int


class MenuOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    shop_id: str
    name: str
    description: str | None = None
    is_available: bool
    is_default: bool
    categories: list[CategoryOut] = Field(default_factory=list)
    items: list[MenuItemOut] = Field(default_factory=list)


class ShopOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    is_active: bool
    created_at: datetime | None = None


class ShopDetail(ShopOut):
    menus: list[MenuOut] = Field(default_factory=list)


# --- Events ---


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    event_date: datetime
    order_deadline: datetime
    location: str | None = Field(default=None, max_length=512)
    is_active: bool = True
    allow_custom_items: bool = False
    shop_id: str | None = None


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    event_date: datetime | None = None
    order_deadline: datetime | None = None
    location: str | None = Field(default=None, max_length=512)
    is_active: bool | None = None
    allow_custom_items: bool | None = None
    shop_id: str | None = None


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    event_date: datetime
    order_deadline: datetime
    location: str | None = None
    is_active: bool
    allow_custom_items: bool
    owner_id: str
    shop_id: str | None = None
    created_at: datetime | None = None


class EventAttendee(BaseModel):
    id: str
    name: str
    email: str


class ItemSummary(BaseModel):
    """Ordered quantity of one dish, keyed by name and unit price."""

    name: str
    price: float
    quantity: int
    total: float


class EventStatistics(BaseModel):
    total_amount: float = 0.0
    paid_orders: int = 0
    unpaid_orders: int = 0
    attendee_count: int = 0
    items: list[ItemSummary] = Field(default_factory=list)


class EventDetail(EventOut):
    """Single-event view with attendees and order statistics."""

    attendees: list[EventAttendee] = Field(default_factory=list)
    statistics: EventStatistics = Field(default_factory=EventStatistics)


class DishSummary(BaseModel):
    """One dish across several events: who ordered it and how much was spent."""

    name: str
    quantity: int
    total_price: float
    orders: int
    order_users: list[str] = Field(default_factory=list)


class UserEventStats(BaseModel):
    """Totals over the events a user owns or has ordered in."""

    total_events: int = 0
    total_orders: int = 0
    total_amount: float = 0.0
    participant_count: int = 0
    item_summary: list[DishSummary] = Field(default_factory=list)


# --- Orders ---


class OrderItemIn(BaseModel):
    """Either a menu item reference or, when the event allows it, a custom name and price."""

    menu_item_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    price: float | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1, le=100)
    note: str | None = Field(default=None, max_length=500)


class OrderCreate(BaseModel):
    event_id: str = Field(..., min_length=1)
    items: list[OrderItemIn] = Field(..., min_length=1)
    note: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)


class OrderUpdate(BaseModel):
    items: list[OrderItemIn] | None = Field(default=None, min_length=1)
    note: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)


class PaymentUpdate(BaseModel):
    is_paid: bool
    paid_method: str | None = Field(default=None, max_length=64)
    paid_note: str | None = Field(default=None, max_length=500)


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    menu_item_id: str | None = None
    name: str
    price: float
    quantity: int
    note: str | None = None


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    event_id: str
    total: float
    note: str | None = None
    is_paid: bool
    paid_at: datetime | None = None
    paid_method: str | None = None
    paid_note: str | None = None
    items: list[OrderItemOut] = Field(default_factory=list)
    created_at: datetime | None = None
