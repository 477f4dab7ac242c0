"""
Tests for group endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_group(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()

    response = await client.post(
        "/v1/groups",
        headers=admin_headers,
        json={"organization_id": organization.id, "name": "admins"},
    )

    assert response.status_code == 201
    attributes = response.json()["data"]["attributes"]
    assert attributes["organizationId"] == organization.id
    assert attributes["name"] == "admins"


@pytest.mark.asyncio
async def test_create_group_missing_organization(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/v1/groups",
        headers=admin_headers,
        json={"organization_id": "missing", "name": "admins"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_reference"


@pytest.mark.asyncio
async def test_group_names_unique_per_organization(client: AsyncClient, admin_headers: dict, factory):
    first = await factory.organization()
    second = await factory.organization()
    await factory.group(first, name="staff")

    conflict = await client.post(
        "/v1/groups", headers=admin_headers, json={"organization_id": first.id, "name": "staff"}
    )
    elsewhere = await client.post(
        "/v1/groups", headers=admin_headers, json={"organization_id": second.id, "name": "staff"}
    )

    assert conflict.status_code == 409
    assert elsewhere.status_code == 201


@pytest.mark.asyncio
async def test_rename_into_conflict(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    await factory.group(organization, name="one")
    group = await factory.group(organization, name="two")

    response = await client.patch(
        f"/v1/groups/{group.id}", headers=admin_headers, json={"name": "one"}
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_rejects_null_name(client: AsyncClient, admin_headers: dict, factory):
    group = await factory.group()

    response = await client.patch(
        f"/v1/groups/{group.id}", headers=admin_headers, json={"name": None}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_grant_and_revoke_users(client: AsyncClient, admin_headers: dict, factory):
    group = await factory.group()
    alice = await factory.user(login="g-alice")
    bob = await factory.user(login="g-bob")
    url = f"/v1/groups/{group.id}/users"

    response = await client.post(url, headers=admin_headers, json={"users": [bob.id, alice.id]})
    assert response.status_code == 204

    listed = await client.get(url, headers=admin_headers)
    assert [user["attributes"]["login"] for user in listed.json()["data"]] == ["g-alice", "g-bob"]

    response = await client.request(
        "DELETE", url, headers=admin_headers, json={"users": [alice.id, "never-granted"]}
    )
    assert response.status_code == 204

    listed = await client.get(url, headers=admin_headers)
    assert [user["id"] for user in listed.json()["data"]] == [bob.id]


@pytest.mark.asyncio
async def test_grant_requires_non_empty_list(client: AsyncClient, admin_headers: dict, factory):
    group = await factory.group()

    response = await client.post(
        f"/v1/groups/{group.id}/users", headers=admin_headers, json={"users": []}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_group_permissions_reach_members(client: AsyncClient, factory, headers_for):
    user = await factory.user()
    group = await factory.group()
    permission = await factory.permission("global.permissions.read")
    await factory.groups.grant("permissions", group.id, [permission.id])
    await factory.groups.grant("users", group.id, [user.id])

    response = await client.get("/v1/permissions", headers=headers_for(user))

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_self_scope_can_manage_own_group_members(client: AsyncClient, factory, headers_for):
    user = await factory.user()
    await factory.grant_role_permissions(
        user, ["self.groups.users.read", "self.groups.users.grant"]
    )
    mine = await factory.group()
    other = await factory.group()
    await factory.groups.grant("users", mine.id, [user.id])
    newcomer = await factory.user()

    response = await client.post(
        f"/v1/groups/{mine.id}/users", headers=headers_for(user), json={"users": [newcomer.id]}
    )
    assert response.status_code == 204

    response = await client.post(
        f"/v1/groups/{other.id}/users", headers=headers_for(user), json={"users": [newcomer.id]}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_group(client: AsyncClient, admin_headers: dict, factory):
    group = await factory.group()

    response = await client.delete(f"/v1/groups/{group.id}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get(f"/v1/groups/{group.id}", headers=admin_headers)
    assert response.status_code == 404
