"""Pydantic request/response schemas."""

from lunch_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from lunch_api.schemas.health import HealthResponse
from lunch_api.schemas.lunch import EventOut, MenuOut, OrderOut, ShopDetail, ShopOut
from lunch_api.schemas.user import AdminUserView, PublicUser

__all__ = [
    "AdminUserView",
    "EventOut",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MenuOut",
    "MessageResponse",
    "OrderOut",
    "PublicUser",
    "RegisterRequest",
    "RegisterResponse",
    "ShopDetail",
    "ShopOut",
]
