"""Request/response schemas for auth endpoints.

Credential and registration fields are plain strings here; AuthService does the
field validation so that failures carry the same messages whether they come
through HTTP or a direct service call.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from lunch_api.schemas.user import PublicUser


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(default="", description="Account email")
    password: str = Field(default="", description="Password")


class RegisterRequest(BaseModel):
    """Self-service registration. A supplied role is accepted but ignored."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = Field(default="", alias="confirmPassword")
    role: str | None = None


class PasswordResetRequest(BaseModel):
    email: str = ""


class PasswordResetConfirm(BaseModel):
    token: str = ""
    new_password: str = Field(
        default="",
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class ForcePasswordReset(BaseModel):
    """Admin-only reset of another account's password; the target id is required."""

    id: str = Field(..., min_length=1)
    new_password: str = Field(
        default="",
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(
        default="",
        validation_alias=AliasChoices("current_password", "currentPassword"),
    )
    new_password: str = Field(
        default="",
        validation_alias=AliasChoices("new_password", "newPassword"),
    )
    confirm_password: str = Field(
        default="",
        validation_alias=AliasChoices("confirm_password", "confirmPassword"),
    )


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None


class LoginResponse(BaseModel):
    """Login result. The refresh token travels only in its httpOnly cookie."""

    success: bool = True
    user: PublicUser
    token: str = Field(..., description="Access token (also set as the access_token cookie)")
    message: str = "Login successful"


class RegisterResponse(BaseModel):
    success: bool = True
    user: PublicUser
    message: str = "Registration successful"


class RefreshResponse(BaseModel):
    user: PublicUser
    message: str = "Token refreshed"


class MeResponse(BaseModel):
    success: bool = True
    user: PublicUser


class MessageResponse(BaseModel):
    success: bool = True
    message: str
