"""Password hashing and signed session tokens (access + refresh) for authentication."""

import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from functools import lru_cache
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

import bcrypt
import jwt

from lunch_api.core.errors import InvalidInputError
from lunch_api.models.user import UserRole

if TYPE_CHECKING:
    from lunch_api.core.config import Settings

logger = logging.getLogger(__name__)

# Min/max lengths for password validation.
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 100

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72

TOKEN_KIND_ACCESS = "access"
TOKEN_KIND_REFRESH = "refresh"

_BEARER_RE = re.compile(r"^Bearer\s+(\S+)\s*$", re.IGNORECASE)


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return bcrypt.hashpw(secrets.token_bytes(32), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class PasswordService:
    """Hash and verify user passwords with bcrypt."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    @staticmethod
    def _encode(plain_password: str) -> bytes:
        return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Raises InvalidInputError when empty."""
        if not plain_password:
            raise InvalidInputError("Password must not be empty")
        return bcrypt.hashpw(
            self._encode(plain_password), bcrypt.gensalt(rounds=self._rounds)
        ).decode("utf-8")

    @property
    def dummy_hash(self) -> str:
        """A hash of a random secret at the configured cost; verifying against it always fails."""
        return _dummy_hash(self._rounds)

    def verify(self, plain_password: str, hashed: str | None) -> bool:
        """Verify a plain password against a stored hash. Returns False instead of raising."""
        if not plain_password or not hashed:
            return False
        try:
            return bcrypt.checkpw(self._encode(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @staticmethod
    def validate_strength(plain_password: str) -> list[str]:
        """Return the problems with a candidate password (empty when acceptable)."""
        errors: list[str] = []
        if len(plain_password or "") < PASSWORD_MIN_LEN:
            errors.append(f"password: must be at least {PASSWORD_MIN_LEN} characters")
        if len(plain_password or "") > PASSWORD_MAX_LEN:
            errors.append(f"password: must be at most {PASSWORD_MAX_LEN} characters")
        return errors


def generate_reset_token() -> str:
    """Random URL-safe token for password reset links."""
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as SHA-256 digests so a DB read cannot replay them."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionUser(Protocol):
    id: Any
    email: str
    role: Any


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of an access token."""

    user_id: str
    email: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime
    kind: str = TOKEN_KIND_ACCESS


@dataclass(frozen=True)
class RefreshClaims:
    """Verified claims of a refresh token."""

    user_id: str
    issued_at: datetime
    expires_at: datetime
    kind: str = TOKEN_KIND_REFRESH


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


class TokenSigner:
    """
    Keyed HMAC signature capability: one secret, one algorithm.

    The signature covers the header and every claim byte; decode() rejects any
    mismatch, an expired exp, or a wrong issuer/audience.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise InvalidInputError("Signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def sign(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str, *, issuer: str, audience: str) -> dict[str, Any]:
        """Raises jwt.PyJWTError on any verification failure."""
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            issuer=issuer,
            audience=audience,
            options={"require": ["exp", "iat", "sub", "iss", "aud"]},
        )


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


class SessionService:
    """
    Issue and verify kind-tagged access and refresh tokens.

    Stateless: verification needs only the injected signers, never the database.
    verify_* methods fail closed and return None rather than raising.
    """

    def __init__(
        self,
        access_signer: TokenSigner,
        refresh_signer: TokenSigner,
        *,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        issuer: str,
        audience: str,
    ) -> None:
        self._access_signer = access_signer
        self._refresh_signer = refresh_signer
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._issuer = issuer
        self._audience = audience

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SessionService":
        access_secret = settings.JWT_SECRET.get_secret_value()
        refresh_secret = (
            settings.JWT_REFRESH_SECRET.get_secret_value()
            if settings.JWT_REFRESH_SECRET is not None
            else access_secret
        )
        return cls(
            TokenSigner(access_secret, settings.JWT_ALGORITHM),
            TokenSigner(refresh_secret, settings.JWT_ALGORITHM),
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    def _base_claims(self, user_id: str, kind: str, ttl: timedelta) -> dict[str, Any]:
        now = datetime.now(UTC)
        return {
            "sub": str(user_id),
            "kind": kind,
            "iat": now,
            "exp": now + ttl,
            "iss": self._issuer,
            "aud": self._audience,
        }

    def generate_access_token(self, user: SessionUser) -> str:
        """Create an access token carrying the user's id, email and role."""
        claims = self._base_claims(user.id, TOKEN_KIND_ACCESS, self._access_ttl)
        claims["email"] = user.email
        claims["role"] = _role_value(user.role)
        return self._access_signer.sign(claims)

    def generate_refresh_token(self, user_id: str) -> str:
        """Create a refresh token; it carries identity only, never a role."""
        claims = self._base_claims(user_id, TOKEN_KIND_REFRESH, self._refresh_ttl)
        return self._refresh_signer.sign(claims)

    def generate_token_pair(self, user: SessionUser) -> TokenPair:
        return TokenPair(
            access_token=self.generate_access_token(user),
            refresh_token=self.generate_refresh_token(str(user.id)),
            expires_in=int(self._access_ttl.total_seconds()),
        )

    def verify_access_token(self, token: str | None) -> TokenClaims | None:
        """Return claims for a valid, unexpired access token; None otherwise."""
        if not token:
            return None
        try:
            payload = self._access_signer.decode(
                token, issuer=self._issuer, audience=self._audience
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Access token expired")
            return None
        except jwt.PyJWTError as exc:
            logger.info("Access token rejected", extra={"reason": type(exc).__name__})
            return None

        if payload.get("kind") != TOKEN_KIND_ACCESS:
            logger.info("Access token rejected", extra={"reason": "kind_mismatch"})
            return None
        sub, email, role = payload.get("sub"), payload.get("email"), payload.get("role")
        if not sub or not email or role not in {r.value for r in UserRole}:
            logger.info("Access token rejected", extra={"reason": "invalid_payload"})
            return None
        return TokenClaims(
            user_id=str(sub),
            email=str(email),
            role=UserRole(role),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )

    def verify_refresh_token(self, token: str | None) -> RefreshClaims | None:
        """Return claims for a valid, unexpired refresh token; None otherwise."""
        if not token:
            return None
        try:
            payload = self._refresh_signer.decode(
                token, issuer=self._issuer, audience=self._audience
            )
        except jwt.PyJWTError as exc:
            logger.info("Refresh token rejected", extra={"reason": type(exc).__name__})
            return None

        if payload.get("kind") != TOKEN_KIND_REFRESH or not payload.get("sub"):
            logger.info("Refresh token rejected", extra={"reason": "kind_mismatch"})
            return None
        return RefreshClaims(
            user_id=str(payload["sub"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )

    @staticmethod
    def extract_bearer_token(authorization: str | None) -> str | None:
        """Pull the token out of an 'Authorization: Bearer <token>' header value."""
        if not authorization:
            return None
        match = _BEARER_RE.match(authorization.strip())
        return match.group(1) if match else None
