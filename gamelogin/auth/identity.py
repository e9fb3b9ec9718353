"""Discord account linking and the account-age gate."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import aiosqlite

from gamelogin.config import Settings
from gamelogin.errors import IdentityVerificationFailure

logger = logging.getLogger(__name__)

# Discord's epoch starts at 2015-01-01T00:00:00 UTC
DISCORD_EPOCH_MS = 1420070400000
SNOWFLAKE_TIMESTAMP_SHIFT = 22
MINIMUM_ACCOUNT_AGE = timedelta(days=7)
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class IdentityPolicy:
    """Whether logins must be backed by a linked Discord account.

    Decided once from settings at startup.
    """
    requires_identity_verification: bool

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityPolicy":
        return cls(requires_identity_verification=settings.is_production)


def snowflake_created_at(
    snowflake_id: Union[int, str], epoch_ms: int = DISCORD_EPOCH_MS
) -> datetime:
    """Decode the creation time embedded in a snowflake id (top 42 bits)."""
    timestamp_ms = (int(snowflake_id) >> SNOWFLAKE_TIMESTAMP_SHIFT) + epoch_ms
    return UNIX_EPOCH + timedelta(milliseconds=timestamp_ms)


def is_older_than_one_week(
    snowflake_id: Union[int, str],
    now: Optional[datetime] = None,
    epoch_ms: int = DISCORD_EPOCH_MS,
) -> bool:
    now = now or datetime.now(timezone.utc)
    return snowflake_created_at(snowflake_id, epoch_ms) < now - MINIMUM_ACCOUNT_AGE


def meets_age_gate(
    policy: IdentityPolicy,
    external_identity_id: Optional[str],
    now: Optional[datetime] = None,
) -> bool:
    """Age-gate flag for the session token.

    Always satisfied when verification is not required.
    """
    if not policy.requires_identity_verification:
        return True
    if external_identity_id is None:
        return False
    return is_older_than_one_week(external_identity_id, now=now)


class ExternalIdentityVerifier:
    """Looks up the Discord account linked to an email."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def find_linked_id(self, email: str) -> Optional[str]:
        cursor = await self.db.execute(
            "SELECT discord_id FROM discord_users WHERE email = ? ORDER BY id",
            (email,),
        )
        row = await cursor.fetchone()
        if row:
            return str(row["discord_id"])
        return None

    async def verify(self, email: str) -> str:
        """Return the linked Discord id or raise ``IdentityVerificationFailure``."""
        discord_id = await self.find_linked_id(email)
        if discord_id is None:
            logger.info(f"Login rejected, no linked Discord account for {email}")
            raise IdentityVerificationFailure()
        return discord_id
