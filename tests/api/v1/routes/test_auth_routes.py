from __future__ import annotations

import pytest

pytestmark = pytest.mark.anyio

PASSWORD = "pointers4ever"


async def _register(client, email="ada@example.com", role="student"):
    return await client.post(
        "/api/v1/auth/register",
        json={"name": " Ada Lovelace ", "email": email, "password": PASSWORD, "role": role},
    )


async def _login(client, email="ada@example.com", password=PASSWORD):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def test_register_then_login(anon_client):
    resp = await _register(anon_client, email="Ada@Example.com")
    assert resp.status_code == 201, resp.text
    user = resp.json()["data"]
    assert user["name"] == "Ada Lovelace"
    assert user["email"] == "ada@example.com"
    assert user["role"] == "student"

    resp = await _login(anon_client)
    assert resp.status_code == 200
    tokens = resp.json()["data"]
    assert tokens["role"] == "student"

    me = await anon_client.get("/api/v1/auth/me", headers=_bearer(tokens["access_token"]))
    assert me.json()["data"]["id"] == user["id"]


async def test_admin_accounts_cannot_self_register(anon_client):
    resp = await _register(anon_client, role="admin")
    assert resp.status_code == 422


@pytest.mark.parametrize("password", ["short1", "onlyletters", "1234567890"])
async def test_weak_passwords_are_rejected(anon_client, password):
    resp = await anon_client.post(
        "/api/v1/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": password},
    )
    assert resp.status_code == 422


async def test_duplicate_email_is_rejected(anon_client):
    await _register(anon_client)
    resp = await _register(anon_client, email="ADA@example.com")
    assert resp.status_code == 400


async def test_bad_credentials(anon_client):
    await _register(anon_client)

    for resp in (await _login(anon_client, password="wrong-password1"), await _login(anon_client, email="nobody@example.com")):
        assert resp.status_code == 401
        assert resp.json()["data"]["error_type"] == "INVALID_CREDENTIALS"

    resp = await anon_client.get("/api/v1/auth/me", headers=_bearer("not-a-token"))
    assert resp.status_code == 401
    assert (await anon_client.get("/api/v1/auth/me")).status_code == 401


async def test_refresh_issues_new_tokens(anon_client):
    await _register(anon_client)
    tokens = (await _login(anon_client)).json()["data"]

    resp = await anon_client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"

    # An access token is signed with a different secret
    resp = await anon_client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401


async def test_logout_abandons_live_attempts(anon_client, registry, seed_exercise, clock):
    exercise = await seed_exercise(time_limit_minutes=1)
    await _register(anon_client)
    tokens = (await _login(anon_client)).json()["data"]
    headers = _bearer(tokens["access_token"])
    student_id = (await anon_client.get("/api/v1/auth/me", headers=headers)).json()["data"]["id"]

    await anon_client.post(f"/api/v1/exercises/{exercise.id}/attempt/start", headers=headers)
    resp = await anon_client.post(f"/api/v1/exercises/{exercise.id}/attempt/confirm", headers=headers)
    assert resp.json()["data"]["state"] == "running"
    assert len(registry) == 1

    resp = await anon_client.post("/api/v1/auth/logout", headers=headers)
    assert resp.status_code == 200
    assert registry.get(student_id, str(exercise.id)) is None

    await clock.advance(90)
    mine = await anon_client.get(f"/api/v1/exercises/{exercise.id}/submissions/mine", headers=headers)
    assert mine.json()["data"] == []
