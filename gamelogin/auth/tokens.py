"""Session token signing and verification using JWT."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(days=30)


class InvalidToken(Exception):
    """Token could not be verified."""


class TokenExpired(InvalidToken):
    """Token signature is fine but its lifetime has elapsed."""


class TokenInvalid(InvalidToken):
    """Token is malformed, tampered with or signed with another key."""


class SessionPayload(BaseModel):
    """Session data carried in the token.

    ``issued_at``, ``expires_at`` and ``token_id`` are filled in when the token
    is signed; ``token_id`` is unique per token.
    """
    email: str
    external_identity_id: Optional[str] = None
    age_gate_satisfied: bool = True
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    token_id: Optional[str] = None


class TokenCodec:
    """Signs and verifies session tokens with a shared secret."""

    def __init__(self, secret: str, lifetime: timedelta = DEFAULT_LIFETIME):
        if not secret:
            raise ValueError("secret_blank")
        self.secret = secret
        self.lifetime = lifetime

    def sign(
        self,
        payload: SessionPayload,
        lifetime: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed token for ``payload`` valid for ``lifetime``."""
        issued = now or datetime.now(timezone.utc)
        expires = issued + (lifetime if lifetime is not None else self.lifetime)

        # Claim names are shared with the game server's other services.
        claims = {
            "user": {
                "email": payload.email,
                "discordId": payload.external_identity_id,
                "meetsDiscordAgeCheck": payload.age_gate_satisfied,
            },
            "iat": int(issued.timestamp()),
            "exp": int(expires.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionPayload:
        """Decode a token, raising ``TokenExpired`` or ``TokenInvalid``."""
        if not token:
            raise TokenInvalid("token_blank")

        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as e:
            raise TokenExpired(str(e)) from e
        except JWTError as e:
            logger.debug(f"Invalid session token: {e}")
            raise TokenInvalid(str(e)) from e

        user = claims.get("user")
        if not isinstance(user, dict) or "exp" not in claims:
            raise TokenInvalid("token_missing_claims")

        try:
            return SessionPayload(
                email=user.get("email"),
                external_identity_id=user.get("discordId"),
                age_gate_satisfied=user.get("meetsDiscordAgeCheck", True),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc) if "iat" in claims else None,
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                token_id=claims.get("jti"),
            )
        except (PydanticValidationError, OverflowError, OSError, ValueError) as e:
            # Includes iat/exp values outside the datetime range
            raise TokenInvalid("token_bad_claims") from e
