"""
Authentication use cases: login, registration, token refresh and password management.

AuthService composes PasswordService, SessionService, UserService and a reset
notifier; it never touches HTTP. Failures are raised as typed AppErrors and
rendered by the exception handlers in lunch_api.core.errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta

from lunch_api.core.errors import (
    InvalidCredentials,
    InvalidOrExpiredToken,
    UserInactiveOrMissing,
    ValidationError,
)
from lunch_api.core.security import (
    PasswordService,
    SessionService,
    generate_reset_token,
    hash_reset_token,
)
from lunch_api.models.base import as_utc, utcnow
from lunch_api.models.user import UserRole
from lunch_api.schemas.user import PublicUser
from lunch_api.services.notifications import ResetNotifier
from lunch_api.services.users import UserService, normalize_email, to_public

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_MAX_LEN = 100
EMAIL_MAX_LEN = 255

RESET_REQUEST_MESSAGE = "If the email exists, a password reset link has been sent"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login."""

    success: bool
    user: PublicUser
    token: str
    refresh_token: str
    message: str


def _validate_name(name: str | None) -> list[str]:
    value = (name or "").strip()
    if not value:
        return ["name: is required"]
    if len(value) > NAME_MAX_LEN:
        return [f"name: must be at most {NAME_MAX_LEN} characters"]
    return []


def _validate_email(email: str | None) -> list[str]:
    value = (email or "").strip()
    if not value:
        return ["email: is required"]
    if len(value) > EMAIL_MAX_LEN:
        return [f"email: must be at most {EMAIL_MAX_LEN} characters"]
    if not EMAIL_RE.match(value):
        return ["email: must be a valid email address"]
    return []


class AuthService:
    def __init__(
        self,
        users: UserService,
        passwords: PasswordService,
        sessions: SessionService,
        notifier: ResetNotifier,
        reset_token_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self.users = users
        self.passwords = passwords
        self.sessions = sessions
        self.notifier = notifier
        self.reset_token_ttl = reset_token_ttl

    def login(self, email: str, password: str) -> AuthResult:
        """
        Verify credentials and issue an access/refresh token pair.

        Unknown email, inactive account, missing password hash and wrong
        password all raise the same InvalidCredentials.
        """
        field_errors = []
        if not (email or "").strip():
            field_errors.append("email: is required")
        if not password:
            field_errors.append("password: is required")
        if field_errors:
            raise InvalidCredentials(errors=field_errors)

        user = self.users.get_by_email(email)
        if user is None or not user.is_active or not user.password_hash:
            # Same bcrypt cost as a wrong password.
            self.passwords.verify(password, self.passwords.dummy_hash)
            logger.warning("Login failed", extra={"reason": "unknown_or_inactive"})
            raise InvalidCredentials()
        if not self.passwords.verify(password, user.password_hash):
            logger.warning("Login failed", extra={"reason": "bad_password", "user_id": user.id})
            raise InvalidCredentials()

        self.users.record_login(user)
        public = to_public(user)
        pair = self.sessions.generate_token_pair(public)
        logger.info("Login succeeded", extra={"user_id": user.id})
        return AuthResult(
            success=True,
            user=public,
            token=pair.access_token,
            refresh_token=pair.refresh_token,
            message="Login successful",
        )

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        role: str | None = None,
    ) -> PublicUser:
        """Create a USER account. A requested role is ignored; no session is issued."""
        errors = _validate_name(name) + _validate_email(email)
        errors += self.passwords.validate_strength(password)
        if password != confirm_password:
            errors.append("confirmPassword: passwords do not match")
        if errors:
            raise ValidationError(errors=errors)

        if role and role != UserRole.USER.value:
            logger.info("Ignoring role requested at registration", extra={"requested_role": role})

        user = self.users.create(
            email=email,
            name=name,
            password_hash=self.passwords.hash(password),
            role=UserRole.USER,
        )
        return to_public(user)

    def refresh(self, refresh_token: str | None) -> tuple[PublicUser, str]:
        """Exchange a refresh token for a new access token after re-checking the user."""
        claims = self.sessions.verify_refresh_token(refresh_token)
        if claims is None:
            raise InvalidOrExpiredToken("Invalid or expired refresh token")
        user = self.users.get_active(claims.user_id)
        if user is None:
            logger.warning("Refresh rejected", extra={"user_id": claims.user_id})
            raise UserInactiveOrMissing()
        public = to_public(user)
        return public, self.sessions.generate_access_token(public)

    def request_password_reset(self, email: str) -> bool:
        """Always True: the response must not reveal whether the email is registered."""
        user = self.users.get_by_email(email) if (email or "").strip() else None
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return True

        token = generate_reset_token()
        self.users.set_reset_token(user, hash_reset_token(token), utcnow() + self.reset_token_ttl)
        try:
            self.notifier.send_password_reset(user.email, user.name, token)
        except Exception:
            logger.exception("Password reset notification failed", extra={"user_id": user.id})
        return True

    def reset_password(self, token: str, new_password: str) -> None:
        """Consume a single-use reset token and set the new password."""
        invalid = InvalidOrExpiredToken("Invalid or expired reset token", status_code=400)
        if not token:
            raise invalid
        user = self.users.get_by_reset_token_hash(hash_reset_token(token))
        if user is None or not user.is_active:
            raise invalid
        expires = as_utc(user.reset_token_expires)
        if expires is None or expires <= utcnow():
            raise invalid

        errors = self.passwords.validate_strength(new_password)
        if errors:
            raise ValidationError(errors=errors)
        self.users.set_password(user, self.passwords.hash(new_password))
        logger.info("Password reset completed", extra={"user_id": user.id})

    def change_password(
        self,
        user_id: str,
        *,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        user = self.users.get_active(user_id)
        if user is None:
            raise UserInactiveOrMissing()
        if not self.passwords.verify(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect", status_code=400)

        errors = self.passwords.validate_strength(new_password)
        if new_password != confirm_password:
            errors.append("confirmPassword: passwords do not match")
        if new_password and new_password == current_password:
            errors.append("new_password: must differ from the current password")
        if errors:
            raise ValidationError(errors=errors)
        self.users.set_password(user, self.passwords.hash(new_password))
        logger.info("Password changed", extra={"user_id": user.id})

    def update_profile(self, user_id: str, *, name: str | None, email: str | None) -> PublicUser:
        user = self.users.get_active(user_id)
        if user is None:
            raise UserInactiveOrMissing()
        errors = []
        if name is not None:
            errors += _validate_name(name)
        if email is not None:
            errors += _validate_email(email)
        if errors:
            raise ValidationError(errors=errors)
        user = self.users.update_profile(
            user,
            name=name,
            email=normalize_email(email) if email is not None else None,
        )
        return to_public(user)

    def force_reset_password(self, actor_id: str, target_user_id: str, new_password: str) -> PublicUser:
        """Admin override: set another account's password without the old one."""
        errors = self.passwords.validate_strength(new_password)
        if errors:
            raise ValidationError(errors=errors)
        user = self.users.get_or_404(target_user_id)
        self.users.set_password(user, self.passwords.hash(new_password))
        logger.warning(
            "Password force-reset by administrator",
            extra={"user_id": user.id, "actor_id": actor_id},
        )
        return to_public(user)
