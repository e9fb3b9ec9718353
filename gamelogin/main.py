"""Main FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from gamelogin.auth.identity import ExternalIdentityVerifier, IdentityPolicy
from gamelogin.auth.login import LoginService
from gamelogin.auth.sessions import create_session_store
from gamelogin.auth.tokens import TokenCodec
from gamelogin.config import get_secret_key, get_session_lifetime, get_settings
from gamelogin.database import AccountRepository, close_database, get_database
from gamelogin.errors import LoginError, ValidationError
from gamelogin.ratelimit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting login server...")
    logger.info(f"Environment: {settings.env}")
    logger.info(f"Database: {settings.database_path}")

    db = await get_database()
    logger.info("Database initialized")

    sessions = create_session_store(settings.redis_url)
    policy = IdentityPolicy.from_settings(settings)
    if policy.requires_identity_verification:
        logger.info("Discord verification enabled")

    lifetime = get_session_lifetime()
    app.state.session_store = sessions
    app.state.login_service = LoginService(
        accounts=AccountRepository(db),
        sessions=sessions,
        codec=TokenCodec(get_secret_key(), lifetime),
        verifier=ExternalIdentityVerifier(db),
        policy=policy,
        session_lifetime=lifetime,
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    await sessions.close()
    await close_database()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Game Login Server",
    description="Session issuance for the game client",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.public_url],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    try:
        db = await get_database()
        await db.execute("SELECT 1")
        sessions = getattr(request.app.state, "session_store", None)
        if sessions is not None:
            await sessions.ping()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": str(e)},
        )


# Include routers
from gamelogin.auth.routes import router as auth_router

app.include_router(auth_router)


@app.exception_handler(LoginError)
async def login_error_handler(request: Request, exc: LoginError):
    """Render login failures in the shape the game client reads."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Reject malformed request bodies."""
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"error": ValidationError.message, "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    log_level = settings.log_level.lower()

    uvicorn.run(
        "gamelogin.main:app",
        host="0.0.0.0",
        port=3000,
        log_level=log_level,
        reload=False,
    )
