# =============================================================================
# lungo/sessions.py - Redis-Backed Sessions
# =============================================================================
# Server-side sessions built from two middlewares:
# - starlette.middleware.sessions.SessionMiddleware owns the cookie: it signs
#   {"sid": "<session id>"} with the session secret and sets or clears it
# - RedisSessionMiddleware swaps that cookie payload for the session data
#   stored in Redis as JSON under a fixed key prefix
#
# Save rules:
# - a new session is stored only once it holds data
# - an unchanged session is not rewritten, only its TTL is refreshed
# - a session emptied by the handler is deleted and its cookie cleared
#
# Redis failures never fail a request: they are logged and the request
# continues with an empty (unsaved) session.
#
# Usage:
#   client = await connect_redis("redis://localhost:6379/0")
#   for middleware in session_middleware(client, secret="..."):
#       ...
# =============================================================================

from __future__ import annotations

import json
import logging
import secrets
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "lungo-session:"
SESSION_COOKIE_NAME = "lungo.sid"
SESSION_MAX_AGE = 14 * 24 * 60 * 60  # 14 days, in seconds

# Key of the session id inside the signed cookie payload
SESSION_ID_KEY = "sid"


def redact_url(url: str) -> str:
    """Mask the credentials of a Redis URL before logging it."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        scheme, rest = "", url
    if "@" in rest:
        rest = "***@" + rest.rsplit("@", 1)[1]
    return f"{scheme}{sep}{rest}"


def create_redis_client(url: str) -> aioredis.Redis:
    """Create the asyncio Redis client (no connection is opened yet)."""
    return aioredis.from_url(url, decode_responses=True)


async def connect_redis(url: str) -> aioredis.Redis:
    """
    Create a Redis client and check the connection.

    A failed connection is logged, not raised: the client is returned
    anyway and will reconnect on its next command.
    """
    client = create_redis_client(url)
    try:
        await client.ping()
        logger.info(f"Session store connected: {redact_url(url)}")
    except RedisError as e:
        logger.error(f"Redis client error ({redact_url(url)}): {e}")
    return client


def session_middleware(
    client: aioredis.Redis,
    secret: str,
    https_only: bool = False,
) -> list[Middleware]:
    """The cookie middleware followed by the Redis loader, in run order."""
    return [
        Middleware(
            SessionMiddleware,
            secret_key=secret,
            session_cookie=SESSION_COOKIE_NAME,
            max_age=SESSION_MAX_AGE,
            same_site="lax",
            https_only=https_only,
        ),
        Middleware(RedisSessionMiddleware, store=RedisSessionStore(client)),
    ]


class RedisSessionStore:
    """JSON session documents in Redis, keyed by session id."""

    def __init__(
        self,
        client: aioredis.Redis,
        prefix: str = SESSION_KEY_PREFIX,
        ttl: int = SESSION_MAX_AGE,
    ):
        self.client = client
        self.prefix = prefix
        self.ttl = ttl

    def key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self.client.get(self.key(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable session {session_id}")
            return None
        return data if isinstance(data, dict) else None

    async def set(self, session_id: str, data: dict[str, Any]) -> None:
        await self.client.set(self.key(session_id), json.dumps(data), ex=self.ttl)

    async def touch(self, session_id: str) -> None:
        await self.client.expire(self.key(session_id), self.ttl)

    async def destroy(self, session_id: str) -> None:
        await self.client.delete(self.key(session_id))


def _snapshot(data: dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, default=str)


class RedisSessionMiddleware:
    """
    Replace the signed cookie payload with the session stored in Redis.

    Must run inside Starlette's SessionMiddleware. Handlers see the stored
    data as `request.session`, a plain dict.
    """

    def __init__(self, app: ASGIApp, store: RedisSessionStore) -> None:
        self.app = app
        self.store = store

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        session_id = scope.get("session", {}).get(SESSION_ID_KEY)
        stored = await self._load(session_id) if session_id else None
        if stored is None:
            # Unknown or expired ids are never reused
            session_id = None

        scope["session"] = stored if stored is not None else {}
        initial = _snapshot(scope["session"])

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                # SessionMiddleware writes the cookie from this payload
                scope["session"] = await self._commit(scope["session"], session_id, initial)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _load(self, session_id: str) -> dict[str, Any] | None:
        try:
            return await self.store.get(session_id)
        except RedisError as e:
            logger.error(f"Failed to load session: {e}")
            return None

    async def _commit(
        self,
        session: dict[str, Any],
        session_id: str | None,
        initial: str,
    ) -> dict[str, str]:
        """Save the session and return the cookie payload ({} clears the cookie)."""
        try:
            if not session:
                if session_id is not None:
                    await self.store.destroy(session_id)
                return {}

            if session_id is None or _snapshot(session) != initial:
                new_id = session_id or secrets.token_urlsafe(32)
                await self.store.set(new_id, session)
                return {SESSION_ID_KEY: new_id}

            await self.store.touch(session_id)
        except RedisError as e:
            logger.error(f"Failed to save session: {e}")
            if session_id is None:
                return {}

        return {SESSION_ID_KEY: session_id}
