#  Secret Board - Auth Routes
#
#  Registration, password login, logout, and current-user profile.
#
#  Depends on: container.py, services/auth.py, services/session.py, middleware/auth.py
#  Used by:    app.py

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Cookie, Depends, HTTPException, Response

from secretboard.config import SESSION_COOKIE_NAME
from secretboard.container import Container
from secretboard.exceptions import AuthenticationError, DuplicateEmailError
from secretboard.middleware.auth import clear_session_cookie, get_current_user, set_session_cookie
from secretboard.models.records import User
from secretboard.models.schemas import LoginRequest, RegisterRequest, UserOut
from secretboard.services.auth import AuthService
from secretboard.services.session import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])

_LOGIN_FAILED = "Incorrect email or password. Please try again."


@router.post("/register", status_code=201)
@inject
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(Provide[Container.auth]),
) -> UserOut:
    """Register a password account. Log in separately afterwards."""
    try:
        user = await auth.register(body.email, body.password)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserOut.from_user(user)


@router.post("/login")
@inject
async def login(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(Provide[Container.auth]),
    sessions: SessionManager = Depends(Provide[Container.sessions]),
) -> UserOut:
    """Check email/password and start a session cookie."""
    try:
        user = await auth.authenticate(body.email, body.password)
    except AuthenticationError:
        raise HTTPException(status_code=401, detail=_LOGIN_FAILED)

    token = await sessions.serialize(user)
    set_session_cookie(response, token)
    return UserOut.from_user(user)


@router.post("/logout", status_code=204)
@inject
async def logout(
    response: Response,
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    sessions: SessionManager = Depends(Provide[Container.sessions]),
):
    """End the current session. Safe to call when not logged in."""
    await sessions.invalidate(session_token)
    clear_session_cookie(response)


@router.get("/me")
async def get_me(
    user: User = Depends(get_current_user),
) -> UserOut:
    """Get the current authenticated user's profile."""
    return UserOut.from_user(user)
