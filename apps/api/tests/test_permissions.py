"""
Tests for permission endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_permission_crud(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/v1/permissions",
        headers=admin_headers,
        json={"name": "reports.export", "description": "Export reports"},
    )
    assert response.status_code == 201
    permission_id = response.json()["data"]["id"]

    response = await client.patch(
        f"/v1/permissions/{permission_id}",
        headers=admin_headers,
        json={"description": "Export any report"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["attributes"] == {
        "name": "reports.export",
        "description": "Export any report",
    }

    response = await client.delete(f"/v1/permissions/{permission_id}", headers=admin_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_delete_missing_permission(client: AsyncClient, admin_headers: dict):
    response = await client.delete("/v1/permissions/missing", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_duplicate_permission_name(client: AsyncClient, admin_headers: dict, factory):
    await factory.permission("reports.view")

    response = await client.post("/v1/permissions", headers=admin_headers, json={"name": "reports.view"})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_deleted_permission_is_revoked_everywhere(client: AsyncClient, admin_headers: dict, factory):
    role = await factory.role()
    permission = await factory.permission()
    await factory.roles.grant("permissions", role.id, [permission.id])

    await client.delete(f"/v1/permissions/{permission.id}", headers=admin_headers)

    response = await client.get(f"/v1/roles/{role.id}/permissions", headers=admin_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_list_permissions_filter_by_name(client: AsyncClient, admin_headers: dict):
    response = await client.get(
        "/v1/permissions",
        headers=admin_headers,
        params={"filter[name]": "global.users.read"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["attributes"]["name"] == "global.users.read"


@pytest.mark.asyncio
async def test_list_permissions_page_number_out_of_range(client: AsyncClient, admin_headers: dict):
    response = await client.get(
        "/v1/permissions",
        headers=admin_headers,
        params={"page[number]": "9" * 30},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"
