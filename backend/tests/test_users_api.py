"""Registration, login, logout and the current user."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import API, avatar_file, login, make_actor, register
from vidtube.core.config import get_settings


@pytest.mark.asyncio
async def test_healthcheck(client):
    resp = await client.get(f"{API}/healthcheck")

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "OK"
    assert body["success"] is True
    assert body["data"]["status"] == "ok"


@pytest.mark.asyncio
async def test_register_returns_user_without_password(client, s3_client):
    resp = await register(client, "Carol", coverImage=("cover.jpg", b"jpeg", "image/jpeg"))

    assert resp.status_code == 201
    user = resp.json()["data"]
    assert user["username"] == "carol"
    assert user["email"] == "carol@example.com"
    assert user["fullName"] == "Carol"
    assert user["avatar"].startswith("http")
    assert user["coverImage"].startswith("http")
    assert "password" not in resp.text.lower()
    assert len(s3_client.objects) == 2


@pytest.mark.asyncio
async def test_register_without_avatar_is_400(client):
    resp = await client.post(
        f"{API}/users/register",
        data={"fullName": "Dan", "email": "dan@example.com", "username": "dan", "password": "pw"},
    )

    assert resp.status_code == 400
    assert "avatar" in resp.json()["message"].lower()


@pytest.mark.asyncio
async def test_register_with_blank_field_is_400(client):
    resp = await client.post(
        f"{API}/users/register",
        data={"fullName": "  ", "email": "dan@example.com", "username": "dan", "password": "pw"},
        files={"avatar": avatar_file()},
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "All fields are required"


@pytest.mark.asyncio
async def test_register_duplicate_is_409(client, alice):
    resp = await register(client, "alice")

    assert resp.status_code == 409
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_register_upload_failure_is_500_and_cleans_staging(client, s3_client):
    s3_client.fail_uploads = True

    resp = await register(client, "erin")

    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert list(Path(get_settings().temp_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_login_sets_cookie_and_returns_token(client, alice):
    resp = await client.post(f"{API}/users/login", json={"email": "alice@example.com", "password": "s3cret-pass"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["username"] == "alice"
    assert data["accessToken"]
    assert "accesstoken" in resp.headers["set-cookie"].lower()
    assert "httponly" in resp.headers["set-cookie"].lower()


@pytest.mark.asyncio
async def test_login_with_wrong_password_is_401(client, alice):
    resp = await client.post(f"{API}/users/login", json={"username": "alice", "password": "nope"})

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_without_identifier_is_400(client):
    resp = await client.post(f"{API}/users/login", json={"password": "pw"})

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_current_user_requires_token(client):
    resp = await client.get(f"{API}/users/current-user")

    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_current_user_via_header_and_cookie(client, alice):
    by_header = await client.get(f"{API}/users/current-user", headers=alice.headers)
    client.cookies.set("accessToken", alice.token)
    by_cookie = await client.get(f"{API}/users/current-user")
    client.cookies.clear()

    assert by_header.status_code == 200
    assert by_header.json()["data"]["id"] == alice.id
    assert by_cookie.status_code == 200


@pytest.mark.asyncio
async def test_logout_revokes_outstanding_tokens(client):
    actor = await make_actor(client, "frank")
    second_token = await login(client, "frank")

    resp = await client.post(f"{API}/users/logout", headers=actor.headers)
    assert resp.status_code == 200

    for token in (actor.token, second_token):
        again = await client.get(f"{API}/users/current-user", headers={"Authorization": f"Bearer {token}"})
        assert again.status_code == 401

    fresh = await login(client, "frank")
    ok = await client.get(f"{API}/users/current-user", headers={"Authorization": f"Bearer {fresh}"})
    assert ok.status_code == 200


@pytest.mark.asyncio
async def test_root_is_enveloped(client):
    resp = await client.get("/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["statusCode"] == 200
    assert body["success"] is True
    assert body["data"]["name"] == "Vidtube"
