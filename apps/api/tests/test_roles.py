"""
Tests for role endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_role(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()

    response = await client.post(
        "/v1/roles",
        headers=admin_headers,
        json={"entity_id": organization.id, "name": "editor", "attributes": {"color": "blue"}},
    )

    assert response.status_code == 201
    attributes = response.json()["data"]["attributes"]
    assert attributes["entityId"] == organization.id
    assert attributes["attributes"] == {"color": "blue"}


@pytest.mark.asyncio
async def test_create_role_missing_required(client: AsyncClient, admin_headers: dict):
    response = await client.post("/v1/roles", headers=admin_headers, json={"name": "editor"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_role_permissions(client: AsyncClient, admin_headers: dict, factory):
    role = await factory.role()
    read = await factory.permission("docs.read")
    write = await factory.permission("docs.write")
    url = f"/v1/roles/{role.id}/permissions"

    response = await client.post(url, headers=admin_headers, json={"permissions": [write.id, read.id]})
    assert response.status_code == 204

    response = await client.get(url, headers=admin_headers)
    assert [item["attributes"]["name"] for item in response.json()["data"]] == ["docs.read", "docs.write"]

    response = await client.request("DELETE", url, headers=admin_headers, json={"permissions": [read.id]})
    assert response.status_code == 204

    response = await client.get(url, headers=admin_headers)
    assert [item["id"] for item in response.json()["data"]] == [write.id]


@pytest.mark.asyncio
async def test_role_users_filter(client: AsyncClient, admin_headers: dict, factory):
    role = await factory.role()
    users = [await factory.user(login=f"r-{n}") for n in range(3)]
    await factory.roles.grant("users", role.id, [user.id for user in users])

    response = await client.get(
        f"/v1/roles/{role.id}/users",
        headers=admin_headers,
        params={"filter[login][ne]": "r-1"},
    )

    assert [item["attributes"]["login"] for item in response.json()["data"]] == ["r-0", "r-2"]


@pytest.mark.asyncio
async def test_list_users_of_missing_role(client: AsyncClient, admin_headers: dict):
    response = await client.get("/v1/roles/missing/users", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_role(client: AsyncClient, admin_headers: dict, factory):
    role = await factory.role()

    response = await client.patch(f"/v1/roles/{role.id}", headers=admin_headers, json={"name": "renamed"})
    assert response.status_code == 200
    assert response.json()["data"]["attributes"]["name"] == "renamed"

    assert (await client.delete(f"/v1/roles/{role.id}", headers=admin_headers)).status_code == 204
    assert (await client.delete(f"/v1/roles/{role.id}", headers=admin_headers)).status_code == 404
