"""SQLAlchemy ORM models."""

from lunch_api.models.base import Base
from lunch_api.models.lunch import LunchEvent, Menu, MenuCategory, MenuItem, Order, OrderItem, Shop
from lunch_api.models.user import ELEVATED_ROLES, User, UserRole

__all__ = [
    "Base",
    "ELEVATED_ROLES",
    "LunchEvent",
    "Menu",
    "MenuCategory",
    "MenuItem",
    "Order",
    "OrderItem",
    "Shop",
    "User",
    "UserRole",
]
