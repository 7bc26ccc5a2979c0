"""Bearer authentication on the API."""

from datetime import timedelta

from taskdesk.infrastructure.security.jwt import create_access_token

BASE = "/api/v1"


async def test_missing_token_is_a_401(client, task) -> None:
    response = await client.get(f"{BASE}/tasks/task-1")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_invalid_token_is_a_401(client, task) -> None:
    response = await client.get(
        f"{BASE}/tasks/task-1", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


async def test_expired_token_is_a_401(client, task) -> None:
    token = create_access_token("admin-1", "admin", expires_delta=timedelta(minutes=-1))
    response = await client.get(
        f"{BASE}/tasks/task-1", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


async def test_valid_token_is_accepted(client, auth_headers, task, employee) -> None:
    response = await client.get(f"{BASE}/tasks/task-1", headers=auth_headers(employee))
    assert response.status_code == 200
