# =============================================================================
# tests/test_sessions.py - Session Store Tests
# =============================================================================
# Tests for:
# - RedisSessionStore key layout, TTL and JSON encoding
# - Session persistence across requests from the same client
# - Save rules (no empty sessions, touch when unchanged, delete when emptied)
# - Degraded mode when Redis is unreachable
#
# Redis is replaced by the FakeRedis double from conftest.py.
# =============================================================================

import asyncio
import base64
import json
import logging

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from itsdangerous import TimestampSigner

from lungo.sessions import (
    SESSION_COOKIE_NAME,
    SESSION_ID_KEY,
    SESSION_KEY_PREFIX,
    SESSION_MAX_AGE,
    RedisSessionStore,
    redact_url,
)

from tests.conftest import FakeRedis

SESSION_OPTIONS = {
    "session_redis_url": "redis://localhost:6379/0",
    "session_secret": "test-session-secret",
}


def register_session_routes(controller):
    @controller.post("/set/{value}")
    async def set_value(value: str, request: Request):
        request.session["value"] = value
        return {"stored": value}

    @controller.get("/get")
    async def get_value(request: Request):
        session = request.scope.get("session")
        return {"value": session.get("value") if session is not None else None}

    @controller.post("/clear")
    async def clear(request: Request):
        request.session.clear()
        return {"cleared": True}


@pytest.fixture
def session_app(make_lungo):
    lungo = make_lungo(**SESSION_OPTIONS)
    lungo.add_route("/session", register_session_routes)
    lungo.add_default_handlers()
    return lungo


# =============================================================================
# RedisSessionStore Tests
# =============================================================================

class TestRedisSessionStore:
    """Test the store against the Redis double."""

    def test_set_and_get(self, fake_redis):
        store = RedisSessionStore(fake_redis)

        asyncio.run(store.set("abc", {"user": 7}))

        assert fake_redis.data[f"{SESSION_KEY_PREFIX}abc"] == json.dumps({"user": 7})
        assert fake_redis.ttl[f"{SESSION_KEY_PREFIX}abc"] == SESSION_MAX_AGE
        assert asyncio.run(store.get("abc")) == {"user": 7}

    def test_get_missing(self, fake_redis):
        assert asyncio.run(RedisSessionStore(fake_redis).get("nope")) is None

    def test_get_unreadable(self, fake_redis):
        fake_redis.data[f"{SESSION_KEY_PREFIX}bad"] = "{not json"
        assert asyncio.run(RedisSessionStore(fake_redis).get("bad")) is None

    def test_touch_and_destroy(self, fake_redis):
        store = RedisSessionStore(fake_redis, prefix="custom:", ttl=60)
        asyncio.run(store.set("abc", {"a": 1}))
        fake_redis.ttl["custom:abc"] = 5

        asyncio.run(store.touch("abc"))
        assert fake_redis.ttl["custom:abc"] == 60

        asyncio.run(store.destroy("abc"))
        assert "custom:abc" not in fake_redis.data


# =============================================================================
# Middleware Tests
# =============================================================================

class TestSessionPersistence:
    """Test sessions across requests."""

    def test_value_persists_for_same_client(self, session_app, fake_redis):
        client = TestClient(session_app.app)

        client.post("/session/set/espresso")
        response = client.get("/session/get")

        assert response.json() == {"value": "espresso"}
        keys = list(fake_redis.data)
        assert len(keys) == 1
        assert keys[0].startswith(SESSION_KEY_PREFIX)

    def test_value_not_shared_between_clients(self, session_app):
        TestClient(session_app.app).post("/session/set/espresso")

        response = TestClient(session_app.app).get("/session/get")

        assert response.json() == {"value": None}

    def test_cookie_is_signed_and_http_only(self, session_app):
        response = TestClient(session_app.app).post("/session/set/espresso")
        cookie = response.headers["set-cookie"]

        assert cookie.startswith(f"{SESSION_COOKIE_NAME}=")
        assert "httponly" in cookie
        assert "samesite=lax" in cookie

        signed = response.cookies[SESSION_COOKIE_NAME]
        payload = TimestampSigner("test-session-secret").unsign(signed)
        session_id = json.loads(base64.b64decode(payload))[SESSION_ID_KEY]
        assert f"{SESSION_KEY_PREFIX}{session_id}" in session_app.session_client.data
        assert "espresso" not in base64.b64decode(payload).decode()

    def test_tampered_cookie_starts_new_session(self, session_app):
        signed = TestClient(session_app.app).post("/session/set/espresso").cookies[SESSION_COOKIE_NAME]
        _, signature = signed.split(".", 1)

        genuine = TestClient(session_app.app).get(
            "/session/get", headers={"cookie": f"{SESSION_COOKIE_NAME}={signed}"}
        )
        forged = TestClient(session_app.app).get(
            "/session/get", headers={"cookie": f"{SESSION_COOKIE_NAME}=forged-id.{signature}"}
        )

        assert genuine.json() == {"value": "espresso"}
        assert forged.json() == {"value": None}

    def test_without_session_options_nothing_persists(self, make_lungo, fake_redis):
        lungo = make_lungo(session_secret="only-a-secret")
        lungo.add_route("/session", register_session_routes)
        client = TestClient(lungo.app)

        client.get("/session/get")
        response = client.get("/session/get")

        assert response.json() == {"value": None}
        assert "set-cookie" not in response.headers
        assert fake_redis.calls == []


class TestSaveRules:
    """Test when sessions are written."""

    def test_empty_session_not_saved(self, session_app, fake_redis):
        response = TestClient(session_app.app).get("/session/get")

        assert "set-cookie" not in response.headers
        assert fake_redis.data == {}
        assert "set" not in fake_redis.calls

    def test_unchanged_session_is_touched_not_rewritten(self, session_app, fake_redis):
        client = TestClient(session_app.app)
        client.post("/session/set/espresso")
        fake_redis.calls.clear()

        client.get("/session/get")

        assert "set" not in fake_redis.calls
        assert "expire" in fake_redis.calls

    def test_changed_session_is_rewritten(self, session_app, fake_redis):
        client = TestClient(session_app.app)
        client.post("/session/set/espresso")
        fake_redis.calls.clear()

        client.post("/session/set/lungo")

        assert fake_redis.calls.count("set") == 1
        assert client.get("/session/get").json() == {"value": "lungo"}
        assert len(fake_redis.data) == 1

    def test_cleared_session_is_deleted(self, session_app, fake_redis):
        client = TestClient(session_app.app)
        client.post("/session/set/espresso")

        response = client.post("/session/clear")

        assert fake_redis.data == {}
        assert "expires=Thu, 01 Jan 1970" in response.headers["set-cookie"]


class TestRedactUrl:
    """Test credential masking in logged Redis URLs."""

    def test_credentials_masked_scheme_kept(self):
        assert redact_url("redis://user:pw@cache.internal:6379/0") == "redis://***@cache.internal:6379/0"

    def test_tls_scheme_kept(self):
        assert redact_url("rediss://:pw@cache.internal:6380") == "rediss://***@cache.internal:6380"

    def test_url_without_credentials_unchanged(self):
        assert redact_url("redis://localhost:6379/0") == "redis://localhost:6379/0"


class TestRedisUnavailable:
    """Test degraded mode."""

    def test_configure_logs_and_continues(self, make_lungo, caplog):
        broken = FakeRedis(fail=True)

        with caplog.at_level(logging.ERROR, logger="lungo.sessions"):
            lungo = make_lungo(redis_client=broken, **SESSION_OPTIONS)

        assert lungo.session_client is broken
        assert "Redis client error" in caplog.text

    def test_requests_succeed_without_persistence(self, make_lungo):
        lungo = make_lungo(redis_client=FakeRedis(fail=True), **SESSION_OPTIONS)
        lungo.add_route("/session", register_session_routes)
        client = TestClient(lungo.app)

        assert client.post("/session/set/espresso").status_code == 200
        assert client.get("/session/get").json() == {"value": None}

    def test_lifespan_closes_client(self, session_app, fake_redis):
        with TestClient(session_app.app) as client:
            client.get("/session/get")
            assert not fake_redis.closed

        assert fake_redis.closed
