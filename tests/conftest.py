#  Secret Board - Test Fixtures
#
#  Shared fixtures for the test suite.
#  Uses DI container overrides instead of monkey-patching singletons.
#
#  Depends on: secretboard/db/*, secretboard/services/*, secretboard/app.py
#  Used by:    all test files

from http.cookies import SimpleCookie
from unittest.mock import patch

import pytest
from dependency_injector import providers

from secretboard.config import SESSION_COOKIE_NAME

TEST_STATE_KEY = "test-state-signing-key-0123456789abcdef"

TEST_PROVIDERS = [
    {
        "name": "google",
        "display_name": "Google",
        "issuer": "https://accounts.example.com",
        "client_id": "test-client-id",
        "client_secret": "test-secret",
        "redirect_uri": "http://test/api/auth/oauth/google/callback",
        "scopes": ["openid", "email", "profile"],
    }
]


def _cookie_value(response, name: str = SESSION_COOKIE_NAME) -> str | None:
    for header in response.headers.get_list("set-cookie"):
        jar = SimpleCookie()
        jar.load(header)
        if name in jar:
            return jar[name].value
    return None


@pytest.fixture
def cookie_value():
    """Pull a cookie value out of a response's Set-Cookie headers."""
    return _cookie_value


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def tmp_db(tmp_path):
    """Create a fresh async credential database with schema applied."""
    from secretboard.db.connection import Database

    test_db = Database()
    await test_db.init(str(tmp_path / "test.db"))

    yield test_db

    await test_db.close()


@pytest.fixture
async def session_db(tmp_path):
    """Separate session database, as in production."""
    from secretboard.db.sessions import SessionDatabase

    db = SessionDatabase()
    await db.init(str(tmp_path / "sessions.db"))

    yield db

    await db.close()


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def user_store(tmp_db):
    from secretboard.db.users import UserStore
    return UserStore(db=tmp_db)


@pytest.fixture
async def auth_service(user_store):
    """AuthService wired to the test database."""
    from secretboard.services.auth import AuthService
    return AuthService(users=user_store)


@pytest.fixture
async def session_store(session_db):
    from secretboard.db.sessions import SessionStore
    return SessionStore(db=session_db, ttl_seconds=3600)


@pytest.fixture
async def session_manager(session_store, user_store):
    from secretboard.services.session import SessionManager
    return SessionManager(sessions=session_store, users=user_store)


@pytest.fixture
async def secret_service(user_store):
    from secretboard.services.secret_service import SecretService
    return SecretService(users=user_store)


@pytest.fixture
async def oauth_service(user_store):
    """OAuthService with one test provider configured."""
    from secretboard.services.oauth import OAuthService

    with patch("secretboard.services.oauth.AUTH_OAUTH_PROVIDERS", TEST_PROVIDERS):
        svc = OAuthService(users=user_store)
    return svc


# ---------------------------------------------------------------------------
# FastAPI client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def app_client(user_store, auth_service, oauth_service, session_manager, secret_service,
                     tmp_db, session_db):
    """httpx client against the app with fresh databases. Uses DI container overrides.

    Uses explicit try/finally with reset_override() instead of context managers
    to ensure DI state is fully cleaned up between tests.
    """
    from httpx import ASGITransport, AsyncClient
    from secretboard.app import app, container

    overridden = {
        container.db: tmp_db,
        container.session_db: session_db,
        container.users: user_store,
        container.auth: auth_service,
        container.oauth: oauth_service,
        container.sessions: session_manager,
        container.secrets: secret_service,
    }
    for provider, instance in overridden.items():
        provider.override(providers.Object(instance))

    key_patcher = patch("secretboard.routes.auth_oauth.AUTH_SECRET_KEY", TEST_STATE_KEY)
    key_patcher.start()

    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        key_patcher.stop()
        for provider in overridden:
            provider.reset_override()


@pytest.fixture
def login_as(app_client):
    """Register and log in a user; returns (cookie headers, user id).

    The client's own cookie jar is cleared so every request states its
    identity explicitly through the returned headers.
    """
    async def _login(email: str, password: str = "testpass123"):
        resp = await app_client.post("/api/auth/register", json={
            "email": email,
            "password": password,
        })
        assert resp.status_code == 201

        resp = await app_client.post("/api/auth/login", json={
            "email": email,
            "password": password,
        })
        assert resp.status_code == 200
        token = _cookie_value(resp)
        assert token
        app_client.cookies.clear()
        return {"Cookie": f"{SESSION_COOKIE_NAME}={token}"}, resp.json()["id"]

    return _login


@pytest.fixture
async def authed_client(app_client, login_as):
    """app_client with a registered user and session Cookie header set."""
    headers, _user_id = await login_as("test@example.com")
    app_client.headers.update(headers)
    yield app_client
