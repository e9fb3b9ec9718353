"""Tests for the active-session stores."""

import pytest

from gamelogin.auth.sessions import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
    create_session_store,
    session_key,
)


class FakeRedis:
    """Minimal async stand-in for redis.asyncio.Redis."""

    def __init__(self):
        self.data = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value
        return True

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


def test_session_key_format():
    assert session_key("a@example.com") == "user-token:a@example.com"


@pytest.mark.asyncio
async def test_memory_store_last_write_wins():
    """A second set replaces the first token outright."""
    store = MemorySessionStore()
    assert await store.get("a@example.com") is None

    await store.set("a@example.com", "token-1")
    await store.set("a@example.com", "token-2")

    assert await store.get("a@example.com") == "token-2"
    assert await store.get("b@example.com") is None


@pytest.mark.asyncio
async def test_redis_store_uses_user_token_keys():
    client = FakeRedis()
    store = RedisSessionStore(client)

    await store.set("a@example.com", "token-1")
    await store.set("a@example.com", "token-2")

    assert client.data == {"user-token:a@example.com": "token-2"}
    assert await store.get("a@example.com") == "token-2"
    assert await store.ping() is True

    await store.close()
    assert client.closed is True


def test_create_session_store_defaults_to_memory():
    assert isinstance(create_session_store(None), MemorySessionStore)
    assert isinstance(create_session_store(""), MemorySessionStore)


def test_create_session_store_with_redis_url():
    store = create_session_store("redis://localhost:6379/0")
    assert isinstance(store, RedisSessionStore)


def test_incomplete_store_cannot_be_created():
    """A store missing ``set`` fails at construction, not on first use."""
    class ReadOnlyStore(SessionStore):
        async def get(self, email):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStore()
