"""User management endpoints (/users) and the admin-only hard delete (/admin/users)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from lunch_api.core.dependencies import (
    AdminSession,
    CurrentSession,
    ElevatedSession,
    ensure_self_or_roles,
    get_password_service,
    get_user_service,
)
from lunch_api.core.security import PasswordService
from lunch_api.models import UserRole
from lunch_api.schemas.auth import MessageResponse
from lunch_api.schemas.user import (
    AdminUserView,
    UserCreateRequest,
    UserResponse,
    UsersListResponse,
    UserUpdateRequest,
)
from lunch_api.services.users import UserService, to_admin_view

router = APIRouter()
admin_router = APIRouter()

Users = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=UsersListResponse)
def list_users(
    _session: ElevatedSession,
    users: Users,
    role: UserRole | None = None,
    is_active: bool | None = None,
    search: Annotated[str | None, Query(max_length=255)] = None,
) -> UsersListResponse:
    """List users (ADMIN, MODERATOR) with optional role, active and name/email filters."""
    found = users.list_users(role=role, is_active=is_active, search=search)
    return UsersListResponse(users=[to_admin_view(u) for u in found], total=len(found))


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    body: UserCreateRequest,
    _admin: AdminSession,
    users: Users,
    passwords: Annotated[PasswordService, Depends(get_password_service)],
) -> UserResponse:
    user = users.hash_and_create(
        passwords,
        email=body.email,
        name=body.name,
        password=body.password,
        role=body.role,
        note=body.note,
    )
    return UserResponse(user=to_admin_view(user), message="User created")


@router.get("/{user_id}", response_model=AdminUserView)
def get_user(user_id: str, session: CurrentSession, users: Users) -> AdminUserView:
    """Self, or any user for ADMIN and MODERATOR."""
    ensure_self_or_roles(session, user_id, UserRole.ADMIN, UserRole.MODERATOR)
    return to_admin_view(users.get_or_404(user_id))


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    body: UserUpdateRequest,
    admin: AdminSession,
    users: Users,
) -> UserResponse:
    user = users.admin_update(
        admin.user_id,
        user_id,
        name=body.name,
        note=body.note,
        is_active=body.is_active,
        role=body.role,
    )
    return UserResponse(user=to_admin_view(user), message="User updated")


@router.delete("/{user_id}", response_model=UserResponse)
def deactivate_user(user_id: str, admin: AdminSession, users: Users) -> UserResponse:
    """Soft delete: the account is deactivated and can be restored."""
    user = users.deactivate(admin.user_id, user_id)
    return UserResponse(user=to_admin_view(user), message="User deactivated")


@router.post("/{user_id}/restore", response_model=UserResponse)
def restore_user(user_id: str, _admin: AdminSession, users: Users) -> UserResponse:
    user = users.restore(user_id)
    return UserResponse(user=to_admin_view(user), message="User restored")


@admin_router.get("/users/{user_id}", response_model=AdminUserView)
def admin_get_user(user_id: str, _admin: AdminSession, users: Users) -> AdminUserView:
    return to_admin_view(users.get_or_404(user_id))


@admin_router.delete("/users/{user_id}", response_model=MessageResponse)
def admin_delete_user(user_id: str, admin: AdminSession, users: Users) -> MessageResponse:
    """Permanently remove a user, their orders and the events they own."""
    users.hard_delete(admin.user_id, user_id)
    return MessageResponse(message="User permanently deleted")
