#  Secret Board - FastAPI Application
#
#  Main app setup: lifespan, CORS, exception handlers, router includes.
#  Creates the DI container and manages store lifecycle. Legacy flat-string
#  secrets are upgraded once during startup, before any request is served.
#
#  Depends on: config.py, container.py, routes/*.py, logging_config.py
#  Used by:    run.py

import logging
import uuid
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from secretboard.config import CORS_ORIGINS, DB_PATH, SESSION_DB_PATH, validate_config
from secretboard.container import Container
from secretboard.exceptions import (
    AccountLinkError,
    AuthenticationError,
    DuplicateEmailError,
    NotFoundError,
    OAuthError,
    SecretBoardError,
)
from secretboard.logging_config import set_request_id, set_user_id
from secretboard.routes.auth import router as auth_router
from secretboard.routes.auth_oauth import router as auth_oauth_router
from secretboard.routes.health import health_router
from secretboard.routes.secrets import router as secrets_router

logger = logging.getLogger("secretboard.app")

# Create and wire the DI container
container = Container()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle.

    Uses AsyncExitStack so that if any startup step fails, all previously
    opened stores are closed in reverse order.
    """
    logger.info("Secret Board starting...")

    validate_config()

    db = container.db()
    session_db = container.session_db()
    secret_service = container.secrets()

    async with AsyncExitStack() as stack:
        await db.init(DB_PATH, run_migrations=True)
        stack.push_async_callback(db.close)

        await session_db.init(SESSION_DB_PATH)
        stack.push_async_callback(session_db.close)

        migrated = await secret_service.migrate_legacy_secrets()
        if migrated:
            logger.info("Legacy secret upgrade touched %d user(s)", migrated)

        yield

    logger.info("Secret Board shutting down")


app = FastAPI(
    title="Secret Board",
    version="0.1.0",
    lifespan=lifespan,
)


# Global exception handlers — safety net for uncaught business errors
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DuplicateEmailError)
async def duplicate_email_handler(request: Request, exc: DuplicateEmailError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(OAuthError)
async def oauth_error_handler(request: Request, exc: OAuthError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(AccountLinkError)
async def account_link_handler(request: Request, exc: AccountLinkError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SecretBoardError)
async def secretboard_handler(request: Request, exc: SecretBoardError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Request ID tracing
class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = uuid.uuid4().hex[:12]
        set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            set_request_id(None)
            set_user_id(None)

app.add_middleware(RequestIDMiddleware)

# CORS (credentials on: the session travels in a cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Health check (public, unauthenticated)
app.include_router(health_router, prefix="/api")

# Auth routes: register/login are public, /me requires a session
app.include_router(auth_router, prefix="/api")
app.include_router(auth_oauth_router, prefix="/api")

# Board: listing is public, mutations check the session per endpoint
app.include_router(secrets_router, prefix="/api")
