"""Registration, login, token handling and admin routes."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt

from panda.api.deps import SESSION_COOKIE_NAME
from panda.core.security import create_jwt
from panda.models.user import UserRole

PASSWORD = "Str0ng!Passw0rd"


async def _register(client: AsyncClient, email: str, password: str = PASSWORD):
    return await client.post("/v1/auth/register", json={
        "email": email,
        "password": password,
        "username": email.split("@")[0],
    })


async def _login(client: AsyncClient, email: str, password: str = PASSWORD):
    return await client.post("/v1/auth/login", json={"email": email, "password": password})


@pytest.mark.asyncio
async def test_register_and_login(client: AsyncClient):
    resp = await _register(client, "user@example.com")
    assert resp.status_code == 201
    assert resp.json()["role"] == "FREE"
    assert "password_hash" not in resp.json()

    resp = await _login(client, "user@example.com")
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert "." in data["access_token"]
    assert data["user"]["email"] == "user@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    assert (await _register(client, "dup@example.com")).status_code == 201
    resp = await _register(client, "dup@example.com")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    resp = await _register(client, "weak@example.com", password="password")
    assert resp.status_code == 400
    assert "password" in resp.json()["details"]


@pytest.mark.asyncio
async def test_admin_email_is_bootstrapped(client: AsyncClient):
    resp = await _register(client, "Admin@Example.com")
    assert resp.status_code == 201
    assert resp.json()["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient):
    await _register(client, "wrong@example.com")
    resp = await _login(client, "wrong@example.com", "Not!TheRight1")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient):
    resp = await _login(client, "ghost@example.com")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_reports_quota(client: AsyncClient, make_user):
    user, headers = await make_user()
    await client.post("/v1/services", json={
        "name": "svc-A",
        "description": "a valid description here",
        "localPort": 8080,
        "subdomain": "me-quota",
        "frpType": "http",
    }, headers=headers)

    resp = await client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["id"] == str(user.id)
    assert data["tunnels"] == {"used": 1, "limit": 3}


@pytest.mark.asyncio
async def test_session_cookie_is_accepted(client: AsyncClient, make_user):
    user, _ = await make_user()
    token = create_jwt(subject=str(user.id), role=user.role, email=user.email)

    client.cookies.set(SESSION_COOKIE_NAME, token)
    resp = await client.get("/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == user.email


# ── Token rejection ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient):
    resp = await client.get("/v1/auth/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, make_user):
    user, _ = await make_user()
    token = create_jwt(
        subject=str(user.id), role=user.role, expires_delta=timedelta(seconds=-1)
    )
    resp = await client.get("/v1/services", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_bad_signature(client: AsyncClient, make_user):
    user, _ = await make_user()
    token = jwt.encode(
        {"sub": str(user.id), "role": "ADMIN"}, "not-the-server-key", algorithm="HS256"
    )
    resp = await client.get("/v1/services", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_malformed_payload(client: AsyncClient):
    token = create_jwt(subject="not-a-uuid", role="FREE")
    resp = await client.get("/v1/services", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ── Admin ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, make_user):
    _, headers = await make_user(role=UserRole.PREMIUM)
    for path in ("/v1/admin/services", "/v1/admin/users"):
        resp = await client.get(path, headers=headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_admin_lists_all_services(client: AsyncClient, make_user):
    _, first = await make_user()
    _, second = await make_user()
    _, admin = await make_user(role=UserRole.ADMIN)
    for headers, sub in ((first, "adm-one"), (second, "adm-two")):
        await client.post("/v1/services", json={
            "name": "svc-A",
            "description": "a valid description here",
            "localPort": 8080,
            "subdomain": sub,
            "frpType": "http",
        }, headers=headers)

    resp = await client.get("/v1/admin/services", headers=admin)
    assert resp.status_code == 200
    assert {s["subdomain"] for s in resp.json()} == {"adm-one", "adm-two"}


@pytest.mark.asyncio
async def test_admin_updates_role(client: AsyncClient, make_user):
    user, _ = await make_user()
    _, admin = await make_user(role=UserRole.ADMIN)

    resp = await client.put(
        f"/v1/admin/users/{user.id}/role", json={"role": "PREMIUM"}, headers=admin
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "PREMIUM"

    resp = await client.get("/v1/admin/users", headers=admin)
    roles = {u["id"]: u["role"] for u in resp.json()}
    assert roles[str(user.id)] == "PREMIUM"


@pytest.mark.asyncio
async def test_admin_cannot_demote_self(client: AsyncClient, make_user):
    admin_user, admin = await make_user(role=UserRole.ADMIN)
    resp = await client.put(
        f"/v1/admin/users/{admin_user.id}/role", json={"role": "FREE"}, headers=admin
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_role_update_unknown_user(client: AsyncClient, make_user):
    _, admin = await make_user(role=UserRole.ADMIN)
    resp = await client.put(
        "/v1/admin/users/00000000-0000-0000-0000-000000000000/role",
        json={"role": "PREMIUM"},
        headers=admin,
    )
    assert resp.status_code == 404
