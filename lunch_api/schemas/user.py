"""Request/response schemas for user accounts and user administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lunch_api.models.user import UserRole


class PublicUser(BaseModel):
    """Sanitized user view returned to clients; never carries password or reset fields."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    is_active: bool
    last_login: datetime | None = None


class AdminUserView(PublicUser):
    """Full user record for administrators (still without secrets)."""

    note: str | None = None
    login_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreateRequest(BaseModel):
    """Admin-created account. Without a password the user must go through password reset."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8, max_length=100)
    role: UserRole = UserRole.USER
    note: str | None = Field(default=None, max_length=2000)


class UserUpdateRequest(BaseModel):
    """Admin update. Email is deliberately absent: it changes only through the profile endpoint."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    note: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None
    role: UserRole | None = None


class UsersListResponse(BaseModel):
    users: list[AdminUserView]
    total: int


class UserResponse(BaseModel):
    success: bool = True
    user: AdminUserView
    message: str | None = None
