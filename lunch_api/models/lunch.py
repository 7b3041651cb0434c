"""ORM models for shops, menus, lunch events and orders."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from lunch_api.models.base import Base, new_id, utcnow


def _created_at() -> Column:
    return Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


def _updated_at() -> Column:
    return Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )


class Shop(Base):
    """Restaurant or vendor that lunch events order from."""

    __tablename__ = "shops"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    address = Column(String(512), nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = _created_at()
    updated_at = _updated_at()

    menus = relationship(
        "Menu",
        back_populates="shop",
        cascade="all, delete-orphan",
        order_by="Menu.created_at",
    )


class Menu(Base):
    __tablename__ = "menus"

    id = Column(String(36), primary_key=True, default=new_id)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = _created_at()
    updated_at = _updated_at()

    shop = relationship("Shop", back_populates="menus")
    categories = relationship(
        "MenuCategory",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuCategory.sort_order",
    )
    items = relationship(
        "MenuItem",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuItem.sort_order",
    )


class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    menu_id = Column(String(36), ForeignKey("menus.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    menu = relationship("Menu", back_populates="categories")
    items = relationship("MenuItem", back_populates="category")


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_id)
    menu_id = Column(String(36), ForeignKey("menus.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(
        String(36),
        ForeignKey("menu_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    menu = relationship("Menu", back_populates="items")
    category = relationship("MenuCategory", back_populates="items")


class LunchEvent(Base):
    """A group order: one owner, one optional shop, one order per participant."""

    __tablename__ = "lunch_events"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    order_deadline = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    allow_custom_items = Column(Boolean, nullable=False, default=False)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = _created_at()
    updated_at = _updated_at()

    owner = relationship("User")
    shop = relationship("Shop")
    orders = relationship(
        "Order",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Order.created_at",
    )


class Order(Base):
    """A participant's order for one event; (user_id, event_id) is unique."""

    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_orders_user_event"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("lunch_events.id", ondelete="CASCADE"), nullable=False, index=True)
    total = Column(Float, nullable=False, default=0.0)
    note = Column(Text, nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_method = Column(String(64), nullable=True)
    paid_note = Column(Text, nullable=True)
    created_at = _created_at()
    updated_at = _updated_at()

    user = relationship("User")
    event = relationship("LunchEvent", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(
        String(36),
        ForeignKey("menu_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    note = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")
