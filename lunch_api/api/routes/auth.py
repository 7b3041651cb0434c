"""Auth endpoints: login, register, refresh, logout and password management."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from lunch_api.core.config import Settings, get_settings
from lunch_api.core.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    AdminSession,
    CurrentUser,
    get_auth_service,
)
from lunch_api.core.errors import Unauthorized
from lunch_api.schemas.auth import (
    ChangePasswordRequest,
    ForcePasswordReset,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdateRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from lunch_api.services.auth import RESET_REQUEST_MESSAGE, AuthService
from lunch_api.services.users import to_public

router = APIRouter()

Auth = Annotated[AuthService, Depends(get_auth_service)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def _set_cookie(response: Response, settings: Settings, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, response: Response, auth: Auth, settings: AppSettings) -> LoginResponse:
    """
    Authenticate with email and password.

    Sets the access_token and refresh_token httpOnly cookies. The access token is
    also returned in the body for clients that send it as a Bearer header.
    """
    result = auth.login(body.email, body.password)
    _set_cookie(response, settings, ACCESS_COOKIE, result.token, settings.access_token_max_age)
    _set_cookie(response, settings, REFRESH_COOKIE, result.refresh_token, settings.refresh_token_max_age)
    return LoginResponse(user=result.user, token=result.token, message=result.message)


@router.post("/register", response_model=RegisterResponse)
def register(body: RegisterRequest, auth: Auth) -> RegisterResponse:
    """Create a USER account. The caller still has to log in afterwards."""
    user = auth.register(
        name=body.name,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        role=body.role,
    )
    return RegisterResponse(user=user)


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request, response: Response, auth: Auth, settings: AppSettings) -> RefreshResponse:
    """Issue a new access token from the refresh_token cookie (a header is not accepted)."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise Unauthorized("No refresh token provided")
    user, access_token = auth.refresh(token)
    _set_cookie(response, settings, ACCESS_COOKIE, access_token, settings.access_token_max_age)
    return RefreshResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, settings: AppSettings) -> MessageResponse:
    """Clear both session cookies. Tokens are not revoked server-side."""
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key, path="/", httponly=True, secure=settings.cookie_secure, samesite="lax"
        )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
def me(user: CurrentUser) -> MeResponse:
    return MeResponse(user=to_public(user))


@router.patch("/profile", response_model=MeResponse)
def update_profile(body: ProfileUpdateRequest, user: CurrentUser, auth: Auth) -> MeResponse:
    updated = auth.update_profile(user.id, name=body.name, email=body.email)
    return MeResponse(user=updated)


@router.post("/change-password", response_model=MessageResponse)
def change_password(body: ChangePasswordRequest, user: CurrentUser, auth: Auth) -> MessageResponse:
    auth.change_password(
        user.id,
        current_password=body.current_password,
        new_password=body.new_password,
        confirm_password=body.confirm_password,
    )
    return MessageResponse(message="Password changed")


@router.post("/reset-password", response_model=MessageResponse)
def request_password_reset(body: PasswordResetRequest, auth: Auth) -> MessageResponse:
    """Always answers 200 with the same message, registered email or not."""
    auth.request_password_reset(body.email)
    return MessageResponse(message=RESET_REQUEST_MESSAGE)


@router.post("/reset-password/confirm", response_model=MessageResponse)
def confirm_password_reset(body: PasswordResetConfirm, auth: Auth) -> MessageResponse:
    auth.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password has been reset")


@router.post("/reset-password/force", response_model=MessageResponse)
def force_password_reset(body: ForcePasswordReset, admin: AdminSession, auth: Auth) -> MessageResponse:
    """Admin only: set the password of the account given by ``id``."""
    auth.force_reset_password(admin.user_id, body.id, body.new_password)
    return MessageResponse(message="Password has been reset")
