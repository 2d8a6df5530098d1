import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from app.models.favorite import Favorite
from conftest import API, PASSWORD, register, login, create_listing


@pytest.mark.asyncio
async def test_get_own_profile(client: AsyncClient, user_headers: dict):
    response = await client.get(f"{API}/users/me", headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "buyer@example.com"
    assert data["is_active"] is True
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_update_own_name(client: AsyncClient, user_headers: dict):
    response = await client.put(
        f"{API}/users/me",
        json={"name": "Renamed"},
        headers=user_headers
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, user_headers: dict):
    response = await client.post(
        f"{API}/users/me/change-password",
        json={
            "current_password": PASSWORD,
            "new_password": "NewPass456",
            "new_password_confirm": "NewPass456",
        },
        headers=user_headers
    )

    assert response.status_code == 200
    await login(client, "buyer@example.com", "NewPass456")


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, user_headers: dict):
    response = await client.post(
        f"{API}/users/me/change-password",
        json={
            "current_password": "NotMyPass1",
            "new_password": "NewPass456",
            "new_password_confirm": "NewPass456",
        },
        headers=user_headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INCORRECT_PASSWORD"


@pytest.mark.asyncio
async def test_list_users_requires_admin(client: AsyncClient, user_headers: dict):
    response = await client.get(f"{API}/users", headers=user_headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.asyncio
async def test_admin_lists_users_newest_first(client: AsyncClient, admin_headers: dict):
    await register(client, "first@example.com")
    await register(client, "second@example.com")

    response = await client.get(f"{API}/users", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    emails = [user["email"] for user in data["items"]]
    assert emails[:2] == ["second@example.com", "first@example.com"]


@pytest.mark.asyncio
async def test_admin_gets_user(client: AsyncClient, admin_headers: dict):
    created = await register(client, "someone@example.com")

    response = await client.get(f"{API}/users/{created['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["email"] == "someone@example.com"


@pytest.mark.asyncio
async def test_admin_get_unknown_user(client: AsyncClient, admin_headers: dict):
    response = await client.get(
        f"{API}/users/00000000-0000-0000-0000-000000000000",
        headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_admin_replaces_user(client: AsyncClient, admin_headers: dict):
    created = await register(client, "promote@example.com")

    response = await client.put(
        f"{API}/users/{created['id']}",
        json={"name": "Promoted", "email": "promoted@example.com", "role": "agent"},
        headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Promoted"
    assert data["email"] == "promoted@example.com"
    assert data["role"] == "agent"


@pytest.mark.asyncio
async def test_admin_replace_rejects_taken_email(client: AsyncClient, admin_headers: dict):
    created = await register(client, "one@example.com")
    await register(client, "two@example.com")

    response = await client.put(
        f"{API}/users/{created['id']}",
        json={"name": "One", "email": "two@example.com", "role": "user"},
        headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_admin_deletes_user_and_favorites(
        client: AsyncClient,
        admin_headers: dict,
        agent_headers: dict,
        session_factory
):
    listing = await create_listing(client, agent_headers)
    created = await register(client, "leaving@example.com")
    headers = await login(client, "leaving@example.com")
    await client.post(f"{API}/favorites", json={"property_id": listing["id"]}, headers=headers)

    response = await client.delete(f"{API}/users/{created['id']}", headers=admin_headers)
    assert response.status_code == 204

    missing = await client.get(f"{API}/users/{created['id']}", headers=admin_headers)
    assert missing.status_code == 404

    async with session_factory() as session:
        remaining = (await session.execute(select(func.count(Favorite.id)))).scalar_one()
    assert remaining == 0


@pytest.mark.asyncio
async def test_registration_stats(client: AsyncClient, admin_headers: dict):
    await register(client, "mail@example.com")
    await client.post(
        f"{API}/auth/social-login",
        json={"provider": "google", "provider_id": "g-1", "email": "g@example.com", "name": "G"}
    )

    response = await client.get(f"{API}/users/stats/registrations", headers=admin_headers)

    assert response.status_code == 200
    days = response.json()["days"]
    assert len(days) == 1
    today = days[0]
    assert today["total_users"] == 3
    assert today["email_users"] == 2
    assert today["google_users"] == 1
    assert today["facebook_users"] == 0
