"""
FastAPI dependencies: service providers and the auth guard.

The guard reads the access_token cookie first, then an Authorization: Bearer
header. Authentication (401) is always settled before authorization (403), and
both happen before the route body runs.
"""

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lunch_api.core.config import Settings, get_settings
from lunch_api.core.database import get_db
from lunch_api.core.errors import Forbidden, Unauthorized, UserInactiveOrMissing
from lunch_api.core.security import PasswordService, SessionService, TokenClaims
from lunch_api.models import User, UserRole
from lunch_api.services.auth import AuthService
from lunch_api.services.notifications import LoggingResetNotifier
from lunch_api.services.users import UserService

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def get_password_service(settings: Annotated[Settings, Depends(get_settings)]) -> PasswordService:
    return PasswordService(rounds=settings.BCRYPT_ROUNDS)


def get_session_service(settings: Annotated[Settings, Depends(get_settings)]) -> SessionService:
    return SessionService.from_settings(settings)


def get_user_service(db: Annotated[Session, Depends(get_db)]) -> UserService:
    return UserService(db)


def get_auth_service(
    users: Annotated[UserService, Depends(get_user_service)],
    passwords: Annotated[PasswordService, Depends(get_password_service)],
    sessions: Annotated[SessionService, Depends(get_session_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    return AuthService(
        users,
        passwords,
        sessions,
        LoggingResetNotifier(settings.PASSWORD_RESET_URL),
        reset_token_ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
    )


def get_current_session(
    request: Request,
    sessions: Annotated[SessionService, Depends(get_session_service)],
) -> TokenClaims:
    """Dependency: verified access-token claims. Raises 401 when missing or invalid. No DB access."""
    token = request.cookies.get(ACCESS_COOKIE) or sessions.extract_bearer_token(
        request.headers.get("Authorization")
    )
    if not token:
        raise Unauthorized()
    claims = sessions.verify_access_token(token)
    if claims is None:
        raise Unauthorized("Invalid or expired token")
    return claims


def get_current_user(
    claims: Annotated[TokenClaims, Depends(get_current_session)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Dependency: the live user record behind the session; 401 if it was removed or deactivated."""
    user = users.get_active(claims.user_id)
    if user is None:
        raise UserInactiveOrMissing()
    return user


def require_roles(*roles: UserRole) -> Callable[..., TokenClaims]:
    """Dependency factory: authenticated session whose role is one of ``roles`` (403 otherwise)."""
    allowed = frozenset(roles)

    def dependency(
        request: Request,
        claims: Annotated[TokenClaims, Depends(get_current_session)],
    ) -> TokenClaims:
        if claims.role not in allowed:
            logger.warning(
                "Forbidden",
                extra={"user_id": claims.user_id, "role": claims.role.value, "path": request.url.path},
            )
            raise Forbidden()
        return claims

    return dependency


def ensure_self_or_roles(claims: TokenClaims, user_id: str, *roles: UserRole) -> None:
    """Allow the call when the session belongs to ``user_id`` or holds one of ``roles``."""
    if claims.user_id == user_id or claims.role in roles:
        return
    logger.warning("Forbidden", extra={"user_id": claims.user_id, "target_user_id": user_id})
    raise Forbidden()


CurrentSession = Annotated[TokenClaims, Depends(get_current_session)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminSession = Annotated[TokenClaims, Depends(require_roles(UserRole.ADMIN))]
ElevatedSession = Annotated[
    TokenClaims, Depends(require_roles(UserRole.ADMIN, UserRole.MODERATOR))
]
DbSession = Annotated[Session, Depends(get_db)]
