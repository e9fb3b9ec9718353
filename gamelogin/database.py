"""Database connection, schema and account persistence."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

import aiosqlite
from pydantic import BaseModel

from gamelogin.config import get_settings

logger = logging.getLogger(__name__)

# Global database connection
_db_connection: Optional[aiosqlite.Connection] = None
_db_lock = asyncio.Lock()


SCHEMA = """
-- Player accounts
CREATE TABLE IF NOT EXISTS accounts (
    userid INTEGER PRIMARY KEY,
    username TEXT NOT NULL,
    last_name TEXT DEFAULT '',
    pic_square TEXT DEFAULT '',
    email TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    banned BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    last_login_at TIMESTAMP
);

-- Discord accounts linked by the verification bot
CREATE TABLE IF NOT EXISTS discord_users (
    id INTEGER PRIMARY KEY,
    email TEXT NOT NULL,
    discord_id TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_discord_users_email ON discord_users(email);
"""

# Account fields the game client is allowed to see.
FRONTEND_KEYS = ("userid", "username", "last_name", "pic_square", "email")


class Account(BaseModel):
    """A player account row."""
    userid: int
    username: str
    last_name: str = ""
    pic_square: str = ""
    email: str
    password: str
    banned: bool = False
    last_login_at: Optional[datetime] = None

    def public_fields(self) -> dict[str, Any]:
        """Fields safe to send to the client (no password hash, no ban flag)."""
        return {key: getattr(self, key) for key in FRONTEND_KEYS}


def _row_to_account(row: aiosqlite.Row) -> Account:
    return Account(
        userid=row["userid"],
        username=row["username"],
        last_name=row["last_name"] or "",
        pic_square=row["pic_square"] or "",
        email=row["email"],
        password=row["password"],
        banned=bool(row["banned"]),
        last_login_at=row["last_login_at"],
    )


class AccountRepository:
    """Reads and rewrites player accounts."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[Account]:
        cursor = await self.db.execute(
            "SELECT * FROM accounts WHERE email = ?", (email,)
        )
        row = await cursor.fetchone()
        if row:
            return _row_to_account(row)
        return None

    async def save(self, account: Account) -> None:
        """Persist the mutable parts of an account."""
        await self.db.execute(
            """UPDATE accounts SET
               username = ?, last_name = ?, pic_square = ?, password = ?,
               banned = ?, last_login_at = ?
               WHERE userid = ?""",
            (
                account.username,
                account.last_name,
                account.pic_square,
                account.password,
                account.banned,
                account.last_login_at.isoformat() if account.last_login_at else None,
                account.userid,
            ),
        )
        await self.db.commit()


async def get_database() -> aiosqlite.Connection:
    """Get the database connection, creating it if necessary."""
    global _db_connection

    async with _db_lock:
        if _db_connection is None:
            settings = get_settings()
            _db_connection = await aiosqlite.connect(settings.database_path)
            _db_connection.row_factory = aiosqlite.Row
            await _db_connection.execute("PRAGMA journal_mode = WAL")
            await init_schema(_db_connection)
        return _db_connection


async def init_schema(db: aiosqlite.Connection) -> None:
    """Initialize database schema."""
    await db.executescript(SCHEMA)
    await db.commit()
    logger.info("Database schema initialized")


async def close_database() -> None:
    """Close the database connection."""
    global _db_connection

    async with _db_lock:
        if _db_connection is not None:
            await _db_connection.close()
            _db_connection = None
            logger.info("Database connection closed")
