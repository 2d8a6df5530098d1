import pytest
from httpx import AsyncClient

from conftest import API, create_listing


@pytest.mark.asyncio
async def test_add_favorite(client: AsyncClient, agent_headers: dict, user_headers: dict):
    listing = await create_listing(client, agent_headers)

    response = await client.post(
        f"{API}/favorites",
        json={"property_id": listing["id"]},
        headers=user_headers
    )

    assert response.status_code == 201
    assert response.json()["property_id"] == listing["id"]


@pytest.mark.asyncio
async def test_add_favorite_unknown_property(client: AsyncClient, user_headers: dict):
    response = await client.post(
        f"{API}/favorites",
        json={"property_id": "00000000-0000-0000-0000-000000000000"},
        headers=user_headers
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "PROPERTY_NOT_FOUND"


@pytest.mark.asyncio
async def test_add_duplicate_favorite(client: AsyncClient, agent_headers: dict, user_headers: dict):
    listing = await create_listing(client, agent_headers)
    await client.post(f"{API}/favorites", json={"property_id": listing["id"]}, headers=user_headers)

    response = await client.post(
        f"{API}/favorites",
        json={"property_id": listing["id"]},
        headers=user_headers
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "FAVORITE_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_favorites_require_authentication(client: AsyncClient):
    response = await client.get(f"{API}/favorites")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_favorites_with_property_details(
        client: AsyncClient,
        agent_headers: dict,
        user_headers: dict
):
    older = await create_listing(client, agent_headers, title="Older favorite")
    newer = await create_listing(client, agent_headers, title="Newer favorite")
    await create_listing(client, agent_headers, title="Not a favorite")
    await client.post(f"{API}/favorites", json={"property_id": older["id"]}, headers=user_headers)
    await client.post(f"{API}/favorites", json={"property_id": newer["id"]}, headers=user_headers)

    response = await client.get(f"{API}/favorites", headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["property"]["title"] for item in data["items"]] == ["Newer favorite", "Older favorite"]
    assert all(item["property"]["is_favorite"] for item in data["items"])


@pytest.mark.asyncio
async def test_favorites_are_per_user(client: AsyncClient, agent_headers: dict, user_headers: dict):
    listing = await create_listing(client, agent_headers)
    await client.post(f"{API}/favorites", json={"property_id": listing["id"]}, headers=user_headers)

    response = await client.get(f"{API}/favorites", headers=agent_headers)

    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_check_and_remove_favorite(client: AsyncClient, agent_headers: dict, user_headers: dict):
    listing = await create_listing(client, agent_headers)
    await client.post(f"{API}/favorites", json={"property_id": listing["id"]}, headers=user_headers)

    check = await client.get(f"{API}/favorites/check/{listing['id']}", headers=user_headers)
    assert check.json() == {"is_favorited": True}

    removed = await client.delete(f"{API}/favorites/{listing['id']}", headers=user_headers)
    assert removed.status_code == 204

    check = await client.get(f"{API}/favorites/check/{listing['id']}", headers=user_headers)
    assert check.json() == {"is_favorited": False}

    detail = await client.get(f"{API}/properties/{listing['id']}", headers=user_headers)
    assert detail.json()["is_favorite"] is False


@pytest.mark.asyncio
async def test_remove_missing_favorite(client: AsyncClient, agent_headers: dict, user_headers: dict):
    listing = await create_listing(client, agent_headers)

    response = await client.delete(f"{API}/favorites/{listing['id']}", headers=user_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "FAVORITE_NOT_FOUND"
