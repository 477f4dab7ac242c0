"""
Tests for user endpoints.
"""

import pytest
from httpx import AsyncClient

from gatekeeper.models import User


@pytest.mark.asyncio
async def test_create_user_hides_password(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/v1/users",
        headers=admin_headers,
        json={"login": "newbie", "password": "s3cret", "email": "newbie@example.com"},
    )

    assert response.status_code == 201
    attributes = response.json()["data"]["attributes"]
    assert attributes["login"] == "newbie"
    assert attributes["enabled"] is True
    assert "password" not in attributes


@pytest.mark.asyncio
async def test_created_user_can_log_in(client: AsyncClient, admin_headers: dict):
    await client.post(
        "/v1/users", headers=admin_headers, json={"login": "fresh", "password": "s3cret"}
    )

    response = await client.post("/v1/auth/login", json={"login": "fresh", "password": "s3cret"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_password_is_hashed(client: AsyncClient, admin_headers: dict, container):
    response = await client.post(
        "/v1/users", headers=admin_headers, json={"login": "hashed", "password": "plain"}
    )
    user_id = response.json()["data"]["id"]

    async with container.session_factory() as session:
        user = await session.get(User, user_id)
    assert user.password != "plain"
    assert container.hasher.verify("plain", user.password)


@pytest.mark.asyncio
async def test_duplicate_login(client: AsyncClient, admin_headers: dict, test_user: User):
    response = await client.post(
        "/v1/users", headers=admin_headers, json={"login": test_user.login, "password": "x"}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "login_conflict"


@pytest.mark.asyncio
async def test_invalid_email(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/v1/users", headers=admin_headers, json={"login": "mail", "password": "x", "email": "nope"}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_users_requires_permission(client: AsyncClient, auth_headers: dict):
    response = await client.get("/v1/users", headers=auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_self_scope_sees_only_self(client: AsyncClient, factory, headers_for, test_user: User):
    user = await factory.user()
    await factory.grant_role_permissions(user, ["self.users.read", "self.users.update"])
    headers = headers_for(user)

    response = await client.get("/v1/users", headers=headers)
    assert [item["id"] for item in response.json()["data"]] == [user.id]

    assert (await client.get(f"/v1/users/{test_user.id}", headers=headers)).status_code == 403

    response = await client.patch(
        f"/v1/users/{user.id}", headers=headers, json={"attributes": {"theme": "dark"}}
    )
    assert response.status_code == 200
    assert response.json()["data"]["attributes"]["attributes"] == {"theme": "dark"}

    response = await client.patch(
        f"/v1/users/{test_user.id}", headers=headers, json={"enabled": False}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_user_relations(client: AsyncClient, admin_headers: dict, factory):
    user = await factory.user()
    organization = await factory.organization(owner=user)
    group = await factory.group(organization)
    role = await factory.role(organization)
    permission = await factory.permission("reports.view")
    await factory.groups.grant("users", group.id, [user.id])
    await factory.roles.grant("users", role.id, [user.id])
    await factory.roles.grant("permissions", role.id, [permission.id])

    organizations = await client.get(f"/v1/users/{user.id}/organizations", headers=admin_headers)
    groups = await client.get(f"/v1/users/{user.id}/groups", headers=admin_headers)
    roles = await client.get(f"/v1/users/{user.id}/roles", headers=admin_headers)
    permissions = await client.get(f"/v1/users/{user.id}/permissions", headers=admin_headers)

    assert [item["id"] for item in organizations.json()["data"]] == [organization.id]
    assert [item["id"] for item in groups.json()["data"]] == [group.id]
    assert [item["id"] for item in roles.json()["data"]] == [role.id]
    assert [item["attributes"]["name"] for item in permissions.json()["data"]] == ["reports.view"]


@pytest.mark.asyncio
async def test_permissions_are_deduplicated(client: AsyncClient, admin_headers: dict, factory):
    user = await factory.user()
    group = await factory.group()
    role = await factory.role()
    permission = await factory.permission()
    for repo, parent in ((factory.groups, group), (factory.roles, role)):
        await repo.grant("permissions", parent.id, [permission.id])
        await repo.grant("users", parent.id, [user.id])

    response = await client.get(f"/v1/users/{user.id}/permissions", headers=admin_headers)

    assert response.json()["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_relations_of_missing_user(client: AsyncClient, admin_headers: dict):
    response = await client.get("/v1/users/missing/groups", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_owner_cannot_be_deleted(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()

    response = await client.delete(f"/v1/users/{organization.owner_id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "owner_constraint_violation"


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient, admin_headers: dict, factory):
    user = await factory.user()
    group = await factory.group()
    await factory.groups.grant("users", group.id, [user.id])

    assert (await client.delete(f"/v1/users/{user.id}", headers=admin_headers)).status_code == 204

    members = await client.get(f"/v1/groups/{group.id}/users", headers=admin_headers)
    assert members.json()["data"] == []
    assert (await client.delete(f"/v1/users/{user.id}", headers=admin_headers)).status_code == 404
