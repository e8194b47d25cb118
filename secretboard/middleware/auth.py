#  Secret Board - Auth Middleware
#
#  FastAPI dependencies for session-cookie authentication.
#  get_current_user: resolves the session cookie, 401 when not logged in.
#  get_optional_user: same lookup for public pages, None when not logged in.
#  set_session_cookie / clear_session_cookie: cookie helpers for login/logout.
#
#  Depends on: services/session.py, container.py, config.py
#  Used by:    app.py, routes/*

import logging

from dependency_injector.wiring import inject, Provide
from fastapi import Cookie, Depends, HTTPException, Response, status

from secretboard.config import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE, SESSION_TTL_DAYS
from secretboard.container import Container
from secretboard.logging_config import set_user_id
from secretboard.models.records import User
from secretboard.services.session import SessionManager

logger = logging.getLogger("secretboard.auth")


@inject
async def get_optional_user(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    sessions: SessionManager = Depends(Provide[Container.sessions]),
) -> User | None:
    """Return the logged-in user, or None for anonymous visitors."""
    user = await sessions.deserialize(session_token)
    if user:
        set_user_id(user.id)
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """Require a logged-in user. Raises 401 otherwise."""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=int(SESSION_TTL_DAYS * 86400),
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
