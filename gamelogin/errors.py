"""Error types raised by the login flow.

Every error carries the HTTP status and the client-facing message; the
exception handlers in ``gamelogin.main`` turn them into JSON responses.
"""

from typing import Optional

from fastapi import status


class LoginError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Login failed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(LoginError):
    """Malformed request body."""

    message = "Invalid request body"


class InvalidCredentials(LoginError):
    """Unknown email, missing password or wrong password.

    The message is deliberately the same in every case.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password"


class TokenAuthFailure(LoginError):
    """A presented session token could not be used.

    Only raised inside token authentication, which turns it into a fallback
    to password authentication.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token authentication failed"


class PermanentBan(LoginError):
    """The account is banned."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Your account has been permanently banned"


class IdentityVerificationFailure(LoginError):
    """No Discord account is linked to this email."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Your account is not linked to Discord"
