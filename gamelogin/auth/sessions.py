"""Active session storage.

The store holds exactly one token per account email. ``set`` overwrites
whatever was there without any compare-and-swap: when two logins for the same
account race, the last write wins and the other token stops working at once,
even if it was already handed to a client.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "user-token:"


def session_key(email: str) -> str:
    return f"{KEY_PREFIX}{email}"


class SessionStore(ABC):
    """Interface for the email -> current token mapping."""

    @abstractmethod
    async def get(self, email: str) -> Optional[str]:
        """Return the current token for ``email``, if any."""

    @abstractmethod
    async def set(self, email: str, token: str) -> None:
        """Replace the current token for ``email``."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemorySessionStore(SessionStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._tokens: dict[str, str] = {}

    async def get(self, email: str) -> Optional[str]:
        return self._tokens.get(session_key(email))

    async def set(self, email: str, token: str) -> None:
        self._tokens[session_key(email)] = token


class RedisSessionStore(SessionStore):
    """Redis-backed store shared by every server instance."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def get(self, email: str) -> Optional[str]:
        return await self.client.get(session_key(email))

    async def set(self, email: str, token: str) -> None:
        # No TTL: the token's own expiry bounds its lifetime.
        await self.client.set(session_key(email), token)

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Session store connection closed")


def create_session_store(redis_url: Optional[str]) -> SessionStore:
    """Build the configured session store."""
    if redis_url:
        logger.info("Using Redis session store")
        return RedisSessionStore.from_url(redis_url)
    logger.warning("REDIS_URL not set, sessions are kept in process memory")
    return MemorySessionStore()
