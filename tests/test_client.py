"""LunchApiClient: error mapping, GET cache, and refresh-and-retry on 401."""

import json
import unittest

import httpx
from support import ApiTestCase, create_user

from lunch_api.client import ApiRequestError, LunchApiClient, ResponseCache
from lunch_api.models import UserRole


class RecordingTransport:
    """httpx.MockTransport handler that replays queued responses and records requests."""

    def __init__(self, responses: list[httpx.Response]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


def make_client(handler: RecordingTransport, cache_ttl: float = 30.0) -> LunchApiClient:
    http = httpx.Client(base_url="http://lunch.test", transport=httpx.MockTransport(handler))
    return LunchApiClient(client=http, cache_ttl=cache_ttl)


class TestErrorMapping(unittest.TestCase):
    def test_error_body_becomes_api_request_error(self) -> None:
        handler = RecordingTransport(
            [httpx.Response(400, json={"success": False, "error": "Validation failed", "errors": ["email: bad"]})]
        )
        with self.assertRaises(ApiRequestError) as ctx:
            make_client(handler).post("/auth/register", json={})
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Validation failed")
        self.assertEqual(ctx.exception.errors, ["email: bad"])

    def test_success_false_with_200_is_an_error(self) -> None:
        handler = RecordingTransport([httpx.Response(200, json={"success": False, "error": "Nope"})])
        with self.assertRaises(ApiRequestError) as ctx:
            make_client(handler).get("/things")
        self.assertEqual(ctx.exception.message, "Nope")


class TestCaching(unittest.TestCase):
    def test_get_is_cached_until_a_mutation(self) -> None:
        handler = RecordingTransport(
            [
                httpx.Response(200, json=[{"id": "1"}]),
                httpx.Response(201, json={"id": "2"}),
                httpx.Response(200, json=[{"id": "1"}, {"id": "2"}]),
            ]
        )
        client = make_client(handler)
        self.assertEqual(client.get("/shops"), [{"id": "1"}])
        self.assertEqual(client.get("/shops"), [{"id": "1"}])
        client.post("/shops", json={"name": "New"})
        self.assertEqual(len(client.get("/shops")), 2)
        self.assertEqual(handler.paths, ["GET /api/shops", "POST /api/shops", "GET /api/shops"])

    def test_every_write_verb_clears_the_cache(self) -> None:
        responses = []
        for _ in range(4):
            responses += [httpx.Response(200, json={"n": 1}), httpx.Response(200, json={"ok": True})]
        handler = RecordingTransport(responses)
        client = make_client(handler)
        for write in (
            lambda: client.post("/shops/1", json={}),
            lambda: client.put("/shops/1", json={"name": "Replaced"}),
            lambda: client.patch("/shops/1", json={}),
            lambda: client.delete("/shops/1"),
        ):
            client.get("/shops/1")
            write()
        self.assertEqual(
            [p for p in handler.paths if not p.startswith("GET")],
            ["POST /api/shops/1", "PUT /api/shops/1", "PATCH /api/shops/1", "DELETE /api/shops/1"],
        )
        self.assertEqual(sum(p.startswith("GET") for p in handler.paths), 4)
        self.assertEqual(json.loads(handler.requests[3].content), {"name": "Replaced"})

    def test_cache_entries_expire(self) -> None:
        now = [100.0]
        cache = ResponseCache(ttl_seconds=5, clock=lambda: now[0])
        cache.set("/shops", ["a"])
        self.assertEqual(cache.get("/shops"), ["a"])
        now[0] += 6
        self.assertIsNone(cache.get("/shops"))
        self.assertEqual(len(cache), 0)


class TestRefreshRetry(unittest.TestCase):
    def test_401_refreshes_once_and_retries(self) -> None:
        handler = RecordingTransport(
            [
                httpx.Response(401, json={"success": False, "error": "Invalid or expired token"}),
                httpx.Response(200, json={"user": {"id": "u1"}, "message": "Token refreshed"}),
                httpx.Response(200, json={"success": True, "user": {"id": "u1"}}),
            ]
        )
        user = make_client(handler).me()
        self.assertEqual(user["id"], "u1")
        self.assertEqual(
            handler.paths, ["GET /api/auth/me", "POST /api/auth/refresh", "GET /api/auth/me"]
        )

    def test_failed_refresh_surfaces_original_401(self) -> None:
        handler = RecordingTransport(
            [
                httpx.Response(401, json={"success": False, "error": "Not authenticated"}),
                httpx.Response(401, json={"success": False, "error": "No refresh token provided"}),
            ]
        )
        with self.assertRaises(ApiRequestError) as ctx:
            make_client(handler).get("/orders")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Not authenticated")
        self.assertEqual(len(handler.requests), 2)

    def test_login_failure_does_not_refresh(self) -> None:
        handler = RecordingTransport(
            [httpx.Response(401, json={"success": False, "error": "Invalid email or password"})]
        )
        with self.assertRaises(ApiRequestError):
            make_client(handler).login("a@example.com", "wrong-password")
        self.assertEqual(handler.paths, ["POST /api/auth/login"])


class TestClientAgainstApp(ApiTestCase):
    def test_login_me_and_logout(self) -> None:
        create_user(self.db, email="ada@example.com", role=UserRole.MODERATOR)
        api = LunchApiClient(client=self.client)
        body = api.login("ada@example.com", "correct-horse-battery")
        self.assertEqual(body["user"]["email"], "ada@example.com")
        self.assertEqual(api.me()["role"], "MODERATOR")

        api.post("/shops", json={"name": "Deli"})
        self.assertEqual([s["name"] for s in api.get("/shops")], ["Deli"])

        api.logout()
        with self.assertRaises(ApiRequestError) as ctx:
            api.me()
        self.assertEqual(ctx.exception.status_code, 401)

    def test_expired_access_cookie_is_refreshed_transparently(self) -> None:
        create_user(self.db, email="ada@example.com")
        api = LunchApiClient(client=self.client)
        api.login("ada@example.com", "correct-horse-battery")
        self.client.cookies.delete("access_token")
        self.assertEqual(api.me()["email"], "ada@example.com")
