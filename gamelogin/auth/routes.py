"""Authentication routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from gamelogin.auth.login import LoginService
from gamelogin.ratelimit import limiter, login_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


class LoginRequest(BaseModel):
    """Login body sent by the game client.

    ``password`` may be omitted when a still-valid ``token`` is presented.
    """
    email: str = Field(min_length=1)
    password: Optional[str] = None
    token: Optional[str] = None


def get_login_service(request: Request) -> LoginService:
    service = getattr(request.app.state, "login_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="login_service_missing",
        )
    return service


@router.post("/login")
@limiter.limit(login_rate_limit)
async def login(
    body: LoginRequest,
    request: Request,
    service: LoginService = Depends(get_login_service),
):
    """Log in with a session token or email/password and issue a new token."""
    ip_address = request.client.host if request.client else None
    return await service.login(
        email=body.email,
        password=body.password,
        token=body.token,
        ip_address=ip_address,
    )
