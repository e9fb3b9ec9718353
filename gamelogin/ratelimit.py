"""Rate limiter shared by the app and its routes."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from gamelogin.config import get_settings


def login_rate_limit() -> str:
    return f"{get_settings().login_rate_limit_per_minute}/minute"


limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)
