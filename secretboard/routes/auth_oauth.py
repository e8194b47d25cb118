#  Secret Board - OAuth Auth Routes
#
#  Provider listing, login redirect and callback for OAuth/OIDC sign-in.
#  The callback resolves the provider account to a local user and starts a
#  session exactly like password login does.
#
#  Depends on: container.py, services/oauth.py, services/session.py, middleware/auth.py
#  Used by:    app.py

import logging
from datetime import datetime, timedelta, timezone

import httpx
import jwt
from authlib.common.errors import AuthlibBaseError
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Cookie, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from secretboard.config import (
    AUTH_ALGORITHM,
    AUTH_OAUTH_STATE_TTL_SECONDS,
    AUTH_SECRET_KEY,
    POST_LOGIN_REDIRECT,
    SESSION_COOKIE_SECURE,
)
from secretboard.container import Container
from secretboard.exceptions import AccountLinkError, NotFoundError, OAuthError
from secretboard.middleware.auth import set_session_cookie
from secretboard.models.schemas import OAuthProviderInfo
from secretboard.services.oauth import OAuthService
from secretboard.services.session import SessionManager

logger = logging.getLogger("secretboard.routes.oauth")

router = APIRouter(prefix="/auth/oauth", tags=["auth-oauth"])

_STATE_COOKIE = "oauth_state"


# ------------------------------------------------------------------
# State token helpers (stateless CSRF protection via JWT)
# ------------------------------------------------------------------

def _create_state_token(state: str, provider: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=AUTH_OAUTH_STATE_TTL_SECONDS)
    payload = {
        "type": "oauth_state",
        "state": state,
        "provider": provider,
        "exp": expire,
    }
    return jwt.encode(payload, AUTH_SECRET_KEY, algorithm=AUTH_ALGORITHM)


def _validate_state_token(
    state_token: str | None, expected_state: str, expected_provider: str
) -> None:
    """Check the signed state cookie against the state echoed by the provider."""
    if not state_token:
        raise HTTPException(400, "Missing state token")
    try:
        payload = jwt.decode(state_token, AUTH_SECRET_KEY, algorithms=[AUTH_ALGORITHM])
    except jwt.PyJWTError:
        raise HTTPException(400, "Invalid or expired state token")

    if payload.get("type") != "oauth_state":
        raise HTTPException(400, "Invalid state token type")
    if payload.get("state") != expected_state:
        raise HTTPException(400, "State mismatch, possible CSRF")
    if payload.get("provider") != expected_provider:
        raise HTTPException(400, "Provider mismatch in state token")


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/providers", response_model=list[OAuthProviderInfo])
@inject
async def list_providers(
    oauth: OAuthService = Depends(Provide[Container.oauth]),
):
    """Return configured OAuth providers (public, no auth required)."""
    return oauth.get_available_providers()


@router.get("/{provider}/login")
@inject
async def oauth_login_redirect(
    provider: str,
    oauth: OAuthService = Depends(Provide[Container.oauth]),
):
    """Send the browser to the provider's consent page."""
    try:
        url, state, _nonce = await oauth.get_authorization_url(provider)
    except NotFoundError:
        raise HTTPException(404, f"OAuth provider '{provider}' is not configured")
    except (httpx.HTTPError, AuthlibBaseError) as e:
        logger.error("OAuth login redirect failed for '%s': %s", provider, e)
        raise HTTPException(502, "Failed to connect to OAuth provider")

    response = RedirectResponse(url, status_code=302)
    response.set_cookie(
        _STATE_COOKIE,
        _create_state_token(state, provider),
        max_age=AUTH_OAUTH_STATE_TTL_SECONDS,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/{provider}/callback")
@inject
async def oauth_callback(
    provider: str,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    state_token: str | None = Cookie(default=None, alias=_STATE_COOKIE),
    oauth: OAuthService = Depends(Provide[Container.oauth]),
    sessions: SessionManager = Depends(Provide[Container.sessions]),
):
    """Handle the provider redirect: resolve the account, start a session."""
    _validate_state_token(state_token, state, provider)

    try:
        user = await oauth.oauth_login(provider, code)
    except NotFoundError:
        raise HTTPException(404, f"OAuth provider '{provider}' is not configured")
    except (OAuthError, AccountLinkError) as e:
        raise HTTPException(400, str(e))
    except (httpx.HTTPError, AuthlibBaseError) as e:
        logger.error("OAuth callback failed for '%s': %s", provider, e)
        raise HTTPException(502, "OAuth authentication failed")

    token = await sessions.serialize(user)
    response = RedirectResponse(POST_LOGIN_REDIRECT, status_code=302)
    set_session_cookie(response, token)
    response.delete_cookie(_STATE_COOKIE)
    return response
