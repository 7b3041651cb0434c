"""User persistence: lookup, create, update, soft/hard delete and the sanitized public view."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lunch_api.core.errors import DuplicateEmail, Forbidden, NotFound, ValidationError
from lunch_api.models import LunchEvent, Order, User, UserRole
from lunch_api.models.base import utcnow
from lunch_api.schemas.user import AdminUserView, PublicUser

if TYPE_CHECKING:
    from lunch_api.core.security import PasswordService

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def to_public(user: User) -> PublicUser:
    return PublicUser.model_validate(user)


def to_admin_view(user: User) -> AdminUserView:
    return AdminUserView.model_validate(user)


class UserService:
    """Database operations on users. Callers commit through this service only."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def get_or_404(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_active(self, user_id: str) -> User | None:
        """Return the user only if it exists and is active."""
        user = self.get(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def email_taken(self, email: str, exclude_user_id: str | None = None) -> bool:
        query = self.db.query(User.id).filter(User.email == normalize_email(email))
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    def list_users(
        self,
        *,
        role: UserRole | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[User]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role.value)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
            )
        return query.order_by(User.created_at.desc(), User.email).all()

    def create(
        self,
        *,
        email: str,
        name: str,
        password_hash: str | None,
        role: UserRole = UserRole.USER,
        note: str | None = None,
    ) -> User:
        """Insert a user. Raises DuplicateEmail if the (normalized) email exists."""
        email = normalize_email(email)
        if self.email_taken(email):
            raise DuplicateEmail()
        user = User(
            email=email,
            name=name.strip(),
            password_hash=password_hash,
            role=role.value,
            note=note,
            is_active=True,
        )
        self.db.add(user)
        self._commit_unique_email()
        self.db.refresh(user)
        logger.info("User created", extra={"user_id": user.id, "role": user.role})
        return user

    def _commit_unique_email(self) -> None:
        """Commit; a concurrent insert of the same email surfaces as DuplicateEmail."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEmail() from exc

    def record_login(self, user: User) -> None:
        user.last_login = utcnow()
        user.login_count = (user.login_count or 0) + 1
        self.db.commit()

    def set_password(self, user: User, password_hash: str) -> None:
        """Store a new hash and drop any outstanding reset token."""
        user.password_hash = password_hash
        user.reset_token_hash = None
        user.reset_token_expires = None
        self.db.commit()

    def set_reset_token(self, user: User, token_hash: str, expires: datetime) -> None:
        user.reset_token_hash = token_hash
        user.reset_token_expires = expires
        self.db.commit()

    def get_by_reset_token_hash(self, token_hash: str) -> User | None:
        return self.db.query(User).filter(User.reset_token_hash == token_hash).first()

    def update_profile(self, user: User, *, name: str | None, email: str | None) -> User:
        if email is not None and normalize_email(email) != user.email:
            if self.email_taken(email, exclude_user_id=user.id):
                raise DuplicateEmail()
            user.email = normalize_email(email)
        if name is not None:
            user.name = name.strip()
        self._commit_unique_email()
        self.db.refresh(user)
        return user

    def admin_update(
        self,
        actor_id: str,
        user_id: str,
        *,
        name: str | None = None,
        note: str | None = None,
        is_active: bool | None = None,
        role: UserRole | None = None,
    ) -> User:
        """Admin edit of name, note, active flag and role. Admins cannot lock themselves out."""
        user = self.get_or_404(user_id)
        if user.id == actor_id:
            if is_active is False:
                raise Forbidden("You cannot deactivate your own account")
            if role is not None and role != UserRole.ADMIN:
                raise Forbidden("You cannot change your own role")
        if name is not None:
            if not name.strip():
                raise ValidationError(errors=["name: must not be blank"])
            user.name = name.strip()
        if note is not None:
            user.note = note
        if is_active is not None:
            user.is_active = is_active
        if role is not None and role.value != user.role:
            logger.info(
                "User role changed",
                extra={"user_id": user.id, "actor_id": actor_id, "role": role.value},
            )
            user.role = role.value
        self.db.commit()
        self.db.refresh(user)
        return user

    def deactivate(self, actor_id: str, user_id: str) -> User:
        """Soft delete: the row stays, the account can no longer sign in or refresh."""
        user = self.get_or_404(user_id)
        if user.id == actor_id:
            raise Forbidden("You cannot deactivate your own account")
        user.is_active = False
        self.db.commit()
        self.db.refresh(user)
        logger.info("User deactivated", extra={"user_id": user.id, "actor_id": actor_id})
        return user

    def restore(self, user_id: str) -> User:
        user = self.get_or_404(user_id)
        user.is_active = True
        self.db.commit()
        self.db.refresh(user)
        logger.info("User restored", extra={"user_id": user.id})
        return user

    def hard_delete(self, actor_id: str, user_id: str) -> None:
        """Remove the user row together with their orders and the events they own."""
        user = self.get_or_404(user_id)
        if user.id == actor_id:
            raise Forbidden("You cannot delete your own account")
        for order in self.db.query(Order).filter(Order.user_id == user.id).all():
            self.db.delete(order)
        for event in self.db.query(LunchEvent).filter(LunchEvent.owner_id == user.id).all():
            self.db.delete(event)
        self.db.delete(user)
        self.db.commit()
        logger.warning("User hard-deleted", extra={"user_id": user_id, "actor_id": actor_id})

    def hash_and_create(
        self,
        passwords: PasswordService,
        *,
        email: str,
        name: str,
        password: str | None,
        role: UserRole = UserRole.USER,
        note: str | None = None,
    ) -> User:
        password_hash = passwords.hash(password) if password else None
        return self.create(
            email=email, name=name, password_hash=password_hash, role=role, note=note
        )
