#  Secret Board - Auth API Integration Tests
#
#  Tests for /api/auth/* endpoints through the FastAPI app with DI overrides.
#
#  Depends on: secretboard/routes/auth.py, tests/conftest.py
#  Used by:    pytest

from secretboard.config import SESSION_COOKIE_NAME


async def test_health(app_client):
    resp = await app_client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_register_returns_201(app_client):
    resp = await app_client.post("/api/auth/register", json={
        "email": "new@example.com",
        "password": "securepass123",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "new@example.com"
    assert data["has_password"] is True
    assert data["oauth_linked"] is False
    assert "password_hash" not in data


async def test_register_does_not_log_in(app_client, cookie_value):
    resp = await app_client.post("/api/auth/register", json={
        "email": "new@example.com",
        "password": "securepass123",
    })
    assert cookie_value(resp) is None


async def test_register_duplicate_returns_400(app_client):
    body = {"email": "dupe@example.com", "password": "securepass123"}
    await app_client.post("/api/auth/register", json=body)
    resp = await app_client.post("/api/auth/register", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already registered"


async def test_register_invalid_body_returns_422(app_client):
    resp = await app_client.post("/api/auth/register", json={
        "email": "not-an-email",
        "password": "securepass123",
    })
    assert resp.status_code == 422

    resp = await app_client.post("/api/auth/register", json={
        "email": "short@example.com",
        "password": "short",
    })
    assert resp.status_code == 422


async def test_login_sets_session_cookie(app_client, cookie_value):
    await app_client.post("/api/auth/register", json={
        "email": "user@example.com",
        "password": "securepass123",
    })
    resp = await app_client.post("/api/auth/login", json={
        "email": "user@example.com",
        "password": "securepass123",
    })
    assert resp.status_code == 200
    assert resp.json()["email"] == "user@example.com"
    assert cookie_value(resp)
    set_cookie = resp.headers["set-cookie"].lower()
    assert "httponly" in set_cookie


async def test_login_with_mixed_case_domain(app_client, cookie_value):
    body = {"email": "Bob@Example.COM", "password": "securepass123"}
    resp = await app_client.post("/api/auth/register", json=body)
    assert resp.status_code == 201
    assert resp.json()["email"] == "Bob@example.com"

    resp = await app_client.post("/api/auth/login", json=body)
    assert resp.status_code == 200
    assert resp.json()["email"] == "Bob@example.com"
    assert cookie_value(resp)


async def test_login_failures_look_identical(app_client):
    await app_client.post("/api/auth/register", json={
        "email": "user@example.com",
        "password": "securepass123",
    })
    wrong_pw = await app_client.post("/api/auth/login", json={
        "email": "user@example.com",
        "password": "wrongpass123",
    })
    no_user = await app_client.post("/api/auth/login", json={
        "email": "ghost@example.com",
        "password": "securepass123",
    })
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.json() == no_user.json()
    assert wrong_pw.json()["detail"] == "Incorrect email or password. Please try again."


async def test_me_requires_session(app_client):
    resp = await app_client.get("/api/auth/me")
    assert resp.status_code == 401


async def test_me_returns_current_user(authed_client):
    resp = await authed_client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "test@example.com"


async def test_bogus_session_cookie_is_anonymous(app_client):
    resp = await app_client.get(
        "/api/auth/me", headers={"Cookie": f"{SESSION_COOKIE_NAME}=forged-token"}
    )
    assert resp.status_code == 401


async def test_logout_ends_session(app_client, login_as):
    headers, _ = await login_as("bye@example.com")

    resp = await app_client.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 204

    resp = await app_client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401


async def test_logout_without_session_is_ok(app_client):
    resp = await app_client.post("/api/auth/logout")
    assert resp.status_code == 204
