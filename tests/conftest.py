"""Pytest configuration and fixtures."""

import os
from typing import Optional

import pytest
import pytest_asyncio

# Set test environment variables before imports
os.environ["DATABASE_PATH"] = ":memory:"
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOGIN_RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ.pop("REDIS_URL", None)

from tests.helpers import TEST_SECRET


@pytest_asyncio.fixture
async def test_db():
    """Create a test database."""
    from gamelogin.database import close_database, get_database, init_schema
    import gamelogin.database as db_module

    # Reset the global connection
    db_module._db_connection = None

    # Create in-memory database
    db = await get_database()
    await init_schema(db)

    yield db

    await close_database()
    db_module._db_connection = None


@pytest.fixture
def session_store():
    from gamelogin.auth.sessions import MemorySessionStore

    return MemorySessionStore()


@pytest.fixture
def codec():
    from gamelogin.auth.tokens import TokenCodec

    return TokenCodec(TEST_SECRET)


@pytest.fixture
def create_account(test_db):
    """Insert an account and return it as stored."""
    from gamelogin.auth.passwords import hash_password
    from gamelogin.database import AccountRepository

    async def _create(
        email: str = "player@example.com",
        password: str = "hunter22",
        username: str = "player",
        banned: bool = False,
        password_hash: Optional[str] = None,
    ):
        await test_db.execute(
            """INSERT INTO accounts (username, last_name, pic_square, email, password, banned)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                username,
                "Smith",
                "https://cdn.example.com/pic.png",
                email,
                password_hash or hash_password(password),
                banned,
            ),
        )
        await test_db.commit()
        return await AccountRepository(test_db).get_by_email(email)

    return _create


@pytest.fixture
def link_discord(test_db):
    """Link a Discord id to an email."""

    async def _link(email: str, discord_id: int):
        await test_db.execute(
            "INSERT INTO discord_users (email, discord_id) VALUES (?, ?)",
            (email, str(discord_id)),
        )
        await test_db.commit()

    return _link


@pytest.fixture
def make_service(test_db, session_store, codec):
    """Build a LoginService wired to the test database and memory store."""
    from gamelogin.auth.identity import ExternalIdentityVerifier, IdentityPolicy
    from gamelogin.auth.login import LoginService
    from gamelogin.database import AccountRepository

    def _make(production: bool = False, sessions=None) -> LoginService:
        return LoginService(
            accounts=AccountRepository(test_db),
            sessions=sessions or session_store,
            codec=codec,
            verifier=ExternalIdentityVerifier(test_db),
            policy=IdentityPolicy(requires_identity_verification=production),
        )

    return _make
