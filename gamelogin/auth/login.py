"""Login flow: authenticate, gate, issue and store the session token."""

import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from gamelogin.auth.identity import (
    ExternalIdentityVerifier,
    IdentityPolicy,
    meets_age_gate,
)
from gamelogin.auth.sessions import SessionStore
from gamelogin.auth.strategy import AuthenticationStrategyResolver
from gamelogin.auth.tokens import SessionPayload, TokenCodec
from gamelogin.database import AccountRepository
from gamelogin.errors import LoginError, PermanentBan

logger = logging.getLogger(__name__)

# Echoed to the game client unchanged.
CLIENT_CONSTANTS: dict[str, Any] = {
    "mapversion": 2,
    "mailversion": 1,
    "soundversion": 1,
    "languageversion": 8,
    "app_id": "",
    "tpid": "",
    "currency_url": "",
    "language": "en",
}
CLIENT_VERSION = 128


class LoginState(str, enum.Enum):
    START = "start"
    STRATEGY_RESOLVED = "strategy_resolved"
    BAN_CHECKED = "ban_checked"
    IDENTITY_VERIFIED = "identity_verified"
    TOKEN_ISSUED = "token_issued"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    FAILED = "failed"


class LoginService:
    """Runs one login request from credentials to response body.

    Steps run strictly in order and the first failure aborts the rest, so a
    response is only produced once the new token is stored.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionStore,
        codec: TokenCodec,
        verifier: ExternalIdentityVerifier,
        policy: IdentityPolicy,
        session_lifetime: Optional[timedelta] = None,
    ):
        self.accounts = accounts
        self.sessions = sessions
        self.codec = codec
        self.verifier = verifier
        self.policy = policy
        self.session_lifetime = session_lifetime
        self.resolver = AuthenticationStrategyResolver(accounts, sessions, codec)

    async def login(
        self,
        email: str,
        password: Optional[str],
        token: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> dict[str, Any]:
        state = LoginState.START
        try:
            resolved = await self.resolver.resolve(email, password, token)
            account = resolved.account
            state = LoginState.STRATEGY_RESOLVED

            if account.banned:
                logger.info(f"Login rejected for banned account {account.userid}")
                raise PermanentBan()
            state = LoginState.BAN_CHECKED

            discord_id = None
            if self.policy.requires_identity_verification:
                discord_id = await self.verifier.verify(account.email)
                state = LoginState.IDENTITY_VERIFIED

            new_token = self.codec.sign(
                SessionPayload(
                    email=account.email,
                    external_identity_id=discord_id,
                    age_gate_satisfied=meets_age_gate(self.policy, discord_id),
                ),
                lifetime=self.session_lifetime,
            )
            state = LoginState.TOKEN_ISSUED

            # Last write wins: this invalidates every earlier token for the account.
            await self.sessions.set(account.email, new_token)
            account.last_login_at = datetime.now(timezone.utc)
            await self.accounts.save(account)
            state = LoginState.PERSISTED

            public = account.public_fields()
            logger.info(
                f"User {public['username']} successful login | ID: {public['userid']} | "
                f"Email: {public['email']} | IP Address: {ip_address} | via {resolved.method}"
            )

            user_token = await self.sessions.get(account.email)
            state = LoginState.RESPONDED
            return build_login_response(public, user_token)
        except LoginError as e:
            logger.info(
                f"Login for {email} {state.value} -> {LoginState.FAILED.value}: {e.message}"
            )
            raise


def build_login_response(public: dict[str, Any], token: Optional[str]) -> dict[str, Any]:
    """Assemble the body the game client expects after a login."""
    return {
        "error": 0,
        "userId": public["userid"],
        **public,
        "version": CLIENT_VERSION,
        "token": token,
        **CLIENT_CONSTANTS,
        "settings": {},
    }
