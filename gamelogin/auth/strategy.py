"""Token-or-password authentication."""

import logging
from dataclasses import dataclass
from typing import Optional

from gamelogin.auth.passwords import verify_password_async
from gamelogin.auth.sessions import SessionStore
from gamelogin.auth.tokens import InvalidToken, TokenCodec
from gamelogin.database import Account, AccountRepository
from gamelogin.errors import InvalidCredentials, TokenAuthFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenAttempt:
    """Outcome of trying a session token: an account, or why it was refused."""
    account: Optional[Account] = None
    failure: Optional[TokenAuthFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.account is not None


@dataclass(frozen=True)
class ResolvedAccount:
    """The authenticated account and how it was authenticated."""
    account: Account
    method: str
    token_attempt: Optional[TokenAttempt] = None


class AuthenticationStrategyResolver:
    """Authenticates with a session token if one works, else with a password."""

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionStore,
        codec: TokenCodec,
    ):
        self.accounts = accounts
        self.sessions = sessions
        self.codec = codec

    async def authenticate_with_token(self, token: str) -> Account:
        """Authenticate with a previously issued token.

        The token must still be the one stored for its account; any newer
        login replaces it.
        """
        try:
            payload = self.codec.verify(token)
        except InvalidToken as e:
            raise TokenAuthFailure(f"token_unverifiable: {e}") from e

        stored_token = await self.sessions.get(payload.email)
        if stored_token != token:
            raise TokenAuthFailure("token_superseded")

        account = await self.accounts.get_by_email(payload.email)
        if account is None:
            raise TokenAuthFailure("account_not_found")
        return account

    async def try_token(self, token: str) -> TokenAttempt:
        try:
            return TokenAttempt(account=await self.authenticate_with_token(token))
        except TokenAuthFailure as failure:
            return TokenAttempt(failure=failure)

    async def authenticate_with_password(
        self, email: str, password: Optional[str]
    ) -> Account:
        if not password:
            raise InvalidCredentials()

        account = await self.accounts.get_by_email(email)
        if account is None:
            raise InvalidCredentials()

        if not await verify_password_async(password, account.password):
            raise InvalidCredentials()
        return account

    async def resolve(
        self, email: str, password: Optional[str], token: Optional[str] = None
    ) -> ResolvedAccount:
        attempt = None
        if token:
            attempt = await self.try_token(token)
            if attempt.succeeded:
                return ResolvedAccount(attempt.account, "token", attempt)
            logger.debug(
                f"Token login for {email} refused ({attempt.failure}), "
                "falling back to password"
            )

        account = await self.authenticate_with_password(email, password)
        return ResolvedAccount(account, "password", attempt)
