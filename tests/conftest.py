# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up the test environment before any imports
# - In-memory Redis stand-in so session tests need no server
# - A temporary application root following the folder layout
# - A factory building configured Lungo applications
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================

os.environ.setdefault("ENVIRONMENT", "development")

import asyncio
from unittest.mock import patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from lungo import Lungo, Settings


# =============================================================================
# Redis Test Double
# =============================================================================

class FakeRedis:
    """Implements the redis.asyncio.Redis commands used by the session store."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, str] = {}
        self.ttl: dict[str, int | None] = {}
        self.calls: list[str] = []
        self.fail = fail
        self.closed = False

    def _command(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def ping(self):
        self._command("ping")
        return True

    async def get(self, key):
        self._command("get")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._command("set")
        self.data[key] = value
        self.ttl[key] = ex
        return True

    async def expire(self, key, seconds):
        self._command("expire")
        if key not in self.data:
            return False
        self.ttl[key] = seconds
        return True

    async def delete(self, *keys):
        self._command("delete")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.ttl.pop(key, None)
                removed += 1
        return removed

    async def aclose(self):
        self.closed = True


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_redis():
    """Empty in-memory Redis."""
    return FakeRedis()


@pytest.fixture
def app_root(tmp_path):
    """Application root with the standard folders, a static file and a template."""
    for name in ("public", "views", "controllers", "models", "adapters"):
        (tmp_path / "application" / name).mkdir(parents=True)

    (tmp_path / "application" / "public" / "hello.txt").write_text("static hello")
    (tmp_path / "application" / "views" / "greeting.html").write_text(
        "<p>Hello, {{ name }}!</p>"
    )
    return tmp_path


@pytest.fixture
def make_lungo(app_root, fake_redis):
    """
    Factory for configured applications.

    Usage:
        lungo = make_lungo(view_engine="jinja2")
        lungo = make_lungo(environment="production", redirect_secure=True)
    """

    def _make(environment: str = "development", redis_client=None, **options):
        lungo = Lungo(Settings(ENVIRONMENT=environment, _env_file=None))
        options.setdefault("listen_port", 8000)
        options.setdefault("application_root", app_root)

        client = redis_client if redis_client is not None else fake_redis
        with patch("lungo.sessions.create_redis_client", return_value=client):
            asyncio.run(lungo.configure(options))
        return lungo

    return _make
