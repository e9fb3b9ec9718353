"""Authentication module."""

from gamelogin.auth.login import LoginService, LoginState
from gamelogin.auth.sessions import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
    create_session_store,
)
from gamelogin.auth.tokens import SessionPayload, TokenCodec

__all__ = [
    "LoginService",
    "LoginState",
    "MemorySessionStore",
    "RedisSessionStore",
    "SessionStore",
    "create_session_store",
    "SessionPayload",
    "TokenCodec",
]
