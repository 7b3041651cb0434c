"""ORM model for application users (auth and RBAC)."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from lunch_api.models.base import Base, new_id, utcnow


class UserRole(str, Enum):
    """Roles carried in access tokens and checked by the route guards."""

    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    USER = "USER"


ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.MODERATOR})


class User(Base):
    """
    User account for cookie/JWT sessions and role-based access control.

    Soft delete clears is_active; the row is only removed by the admin hard-delete path.
    password_hash is null for accounts created by an admin without a password.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    note = Column(Text, nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    login_count = Column(Integer, nullable=False, default=0)
    # SHA-256 of the outstanding single-use reset token, never the token itself.
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )
