# tests/test_auth_api.py
import pytest
from httpx import AsyncClient

from conftest import PASSWORD, bearer, login, register, register_and_login, unique_email

pytestmark = pytest.mark.asyncio


async def _me(client: AsyncClient, token: str):
    return await client.get("/api/v1/me", headers=bearer(token))


async def test_register_returns_public_fields_only(client: AsyncClient):
    email = unique_email("pub")
    data = await register(client, "Pub", email)
    assert data["email"] == email
    assert data["is_admin"] is False
    assert "password" not in data and "password_hash" not in data


async def test_register_does_not_issue_token(client: AsyncClient):
    data = await register(client, "NoTok", unique_email("notok"))
    assert "access_token" not in data


async def test_register_duplicate_email_is_422(client: AsyncClient):
    email = unique_email("dup")
    await register(client, "Dup", email)
    r = await client.post("/api/v1/register", json={"name": "Dup2", "email": email, "password": PASSWORD})
    assert r.status_code == 422
    body = r.json()
    assert body["kind"] == "duplicate_email"
    assert "email" in body["errors"]


async def test_register_validation_is_itemized_by_field(client: AsyncClient):
    r = await client.post("/api/v1/register", json={"name": "", "email": "nope", "password": "1"})
    assert r.status_code == 422
    body = r.json()
    assert body["kind"] == "validation_error"
    assert {"name", "email", "password"} <= set(body["errors"])


async def test_login_me_roundtrip(client: AsyncClient):
    user, token = await register_and_login(client, "Me")
    r = await _me(client, token)
    assert r.status_code == 200, r.text
    assert r.json()["id"] == user["id"]


async def test_login_is_case_insensitive_on_email(client: AsyncClient):
    email = unique_email("case")
    await register(client, "Case", email)
    token = await login(client, email.upper())
    assert (await _me(client, token)).status_code == 200


async def test_login_response_shape(client: AsyncClient):
    email = unique_email("shape")
    await register(client, "Shape", email)
    r = await client.post("/api/v1/login", json={"email": email, "password": PASSWORD, "device_name": "ipad"})
    assert r.status_code == 200
    data = r.json()
    assert data["token_type"] == "bearer"
    assert isinstance(data["access_token"], str) and len(data["access_token"]) >= 40


async def test_login_wrong_password_and_unknown_user_look_the_same(client: AsyncClient):
    email = unique_email("enum")
    await register(client, "Enum", email)

    wrong = await client.post("/api/v1/login", json={"email": email, "password": "WrongPass"})
    ghost = await client.post("/api/v1/login", json={"email": unique_email("ghost"), "password": PASSWORD})

    assert wrong.status_code == ghost.status_code == 401
    assert wrong.json() == ghost.json() == {"kind": "invalid_credentials", "detail": "Invalid credentials"}


async def test_logout_revokes_tokens_on_every_device(client: AsyncClient):
    email = unique_email("multi")
    await register(client, "Multi", email)
    phone = await login(client, email)
    laptop = await login(client, email)
    assert (await _me(client, phone)).status_code == 200
    assert (await _me(client, laptop)).status_code == 200

    r = await client.post("/api/v1/logout", headers=bearer(phone))
    assert r.status_code == 200, r.text
    assert r.json()["revoked"] == 2

    assert (await _me(client, phone)).status_code == 401
    assert (await _me(client, laptop)).status_code == 401


async def test_logout_again_with_revoked_token_is_unauthenticated(client: AsyncClient):
    _, token = await register_and_login(client, "Twice")
    assert (await client.post("/api/v1/logout", headers=bearer(token))).status_code == 200
    r = await client.post("/api/v1/logout", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["kind"] == "unauthenticated"


async def test_logout_requires_token(client: AsyncClient):
    r = await client.post("/api/v1/logout")
    assert r.status_code == 401


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "token-only"},
        {"Authorization": "Bearer "},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Authorization": "Bearer not-a-real-token"},
    ],
)
async def test_missing_or_bad_authorization_is_401(client: AsyncClient, headers):
    r = await client.get("/api/v1/me", headers=headers)
    assert r.status_code == 401
    assert r.headers.get("www-authenticate") == "Bearer"
    assert r.json()["kind"] == "unauthenticated"
