"""
HTTP client for the Lunch Orders API.

Keeps the session cookies in the httpx cookie jar, caches GET responses for a
short TTL, drops the cache on any mutation, and on a 401 tries one
/auth/refresh before retrying the original request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 10.0

# Calls that must never trigger a refresh-and-retry.
NO_REFRESH_PATHS = frozenset({"/auth/login", "/auth/refresh", "/auth/logout"})


class ApiRequestError(Exception):
    """Raised when the API answers with status >= 400 or a body with success=false."""

    def __init__(self, status_code: int, message: str, errors: list[str] | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")


@dataclass
class CacheEntry:
    value: Any
    created_at: float = field(default_factory=time.monotonic)


class ResponseCache:
    """Thread-safe in-memory TTL cache for decoded GET bodies."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl_seconds = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at > self._ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        if self._ttl_seconds <= 0:
            return
        with self._lock:
            if len(self._entries) >= self._max_size and key not in self._entries:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
            self._entries[key] = CacheEntry(value=value, created_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _cache_key(path: str, params: dict[str, Any] | None) -> str:
    if not params:
        return path
    query = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] is not None)
    return f"{path}?{query}"


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class LunchApiClient:
    """
    Session-aware API client.

    Pass ``base_url`` to have the client own an httpx.Client, or an existing
    ``client`` (for example FastAPI's TestClient) to reuse its transport and cookie jar.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        api_prefix: str = "/api",
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if client is None and base_url is None:
            raise ValueError("Either base_url or client is required")
        self._owns_client = client is None
        self._http = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self._prefix = api_prefix.rstrip("/")
        self.cache = ResponseCache(ttl_seconds=cache_ttl)

    def __enter__(self) -> LunchApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        allow_refresh: bool = True,
    ) -> Any:
        response = self._http.request(method, f"{self._prefix}{path}", json=json, params=params)
        if (
            response.status_code == 401
            and allow_refresh
            and path not in NO_REFRESH_PATHS
            and self._try_refresh()
        ):
            logger.debug("Retrying after token refresh", extra={"path": path})
            response = self._http.request(method, f"{self._prefix}{path}", json=json, params=params)
        return self._handle(response)

    @staticmethod
    def _handle(response: httpx.Response) -> Any:
        body = _decode(response)
        failed = isinstance(body, dict) and body.get("success") is False
        if response.status_code >= 400 or failed:
            message = response.reason_phrase or "Request failed"
            errors = None
            if isinstance(body, dict):
                message = body.get("error") or body.get("message") or message
                errors = body.get("errors")
            raise ApiRequestError(response.status_code, message, errors)
        return body

    def _try_refresh(self) -> bool:
        try:
            self.refresh()
        except ApiRequestError as exc:
            logger.info("Session refresh failed", extra={"status_code": exc.status_code})
            return False
        return True

    # --- Generic verbs ---

    def get(self, path: str, params: dict[str, Any] | None = None, *, use_cache: bool = True) -> Any:
        key = _cache_key(path, params)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        body = self._request("GET", path, params=params)
        if use_cache and body is not None:
            self.cache.set(key, body)
        return body

    def post(self, path: str, json: Any = None) -> Any:
        self.cache.clear()
        return self._request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        self.cache.clear()
        return self._request("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        self.cache.clear()
        return self._request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        self.cache.clear()
        return self._request("DELETE", path)

    # --- Auth ---

    def login(self, email: str, password: str) -> dict[str, Any]:
        self.cache.clear()
        return self._request(
            "POST", "/auth/login", json={"email": email, "password": password}, allow_refresh=False
        )

    def register(self, name: str, email: str, password: str, confirm_password: str | None = None) -> dict[str, Any]:
        return self.post(
            "/auth/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "confirmPassword": password if confirm_password is None else confirm_password,
            },
        )

    def refresh(self) -> dict[str, Any]:
        return self._request("POST", "/auth/refresh", allow_refresh=False)

    def logout(self) -> dict[str, Any]:
        self.cache.clear()
        try:
            return self._request("POST", "/auth/logout", allow_refresh=False)
        finally:
            self._http.cookies.clear()

    def me(self) -> dict[str, Any]:
        body = self.get("/auth/me", use_cache=False)
        return body["user"]
