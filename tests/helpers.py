"""Shared test helpers."""

from datetime import datetime, timedelta, timezone

TEST_SECRET = "test-secret-key"
DISCORD_EPOCH_MS = 1420070400000


def snowflake_for(created_at: datetime) -> int:
    """Build a Discord-style snowflake id created at ``created_at``."""
    ms = int(created_at.timestamp() * 1000) - DISCORD_EPOCH_MS
    return ms << 22


def snowflake_days_ago(days: float) -> int:
    return snowflake_for(datetime.now(timezone.utc) - timedelta(days=days))
