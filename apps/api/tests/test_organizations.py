"""
Tests for organization endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from structlog.testing import capture_logs

from gatekeeper.models import Group, Organization, Role


@pytest.mark.asyncio
async def test_create_organization_adds_owner_as_member(
    client: AsyncClient, admin_headers: dict, factory
):
    owner = await factory.user(login="owner")

    response = await client.post(
        "/v1/organizations",
        headers=admin_headers,
        json={"name": "Acme", "owner_id": owner.id},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["type"] == "organizations"
    assert data["attributes"]["name"] == "Acme"
    assert data["attributes"]["ownerId"] == owner.id
    assert data["attributes"]["active"] is True
    assert data["links"]["self"] == f"http://test/v1/organizations/{data['id']}"

    members = await client.get(f"/v1/organizations/{data['id']}/users", headers=admin_headers)
    assert [user["id"] for user in members.json()["data"]] == [owner.id]


@pytest.mark.asyncio
async def test_create_with_missing_owner_leaves_no_row(
    client: AsyncClient, container, admin_headers: dict
):
    response = await client.post(
        "/v1/organizations",
        headers=admin_headers,
        json={"name": "Ghost", "owner_id": "no-such-user"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_reference"
    async with container.session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(Organization).where(Organization.name == "Ghost")
        )
    assert count == 0


@pytest.mark.asyncio
async def test_create_duplicate_name(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization(name="Dupe")

    response = await client.post(
        "/v1/organizations",
        headers=admin_headers,
        json={"name": "Dupe", "owner_id": organization.owner_id},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "name_conflict"


@pytest.mark.asyncio
async def test_create_rejects_unknown_fields(client: AsyncClient, admin_headers: dict, factory):
    owner = await factory.user()

    response = await client.post(
        "/v1/organizations",
        headers=admin_headers,
        json={"name": "Extra", "owner_id": owner.id, "plan": "gold"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_organizations_paginated(client: AsyncClient, admin_headers: dict, factory):
    for name in ("acme-c", "acme-a", "acme-b"):
        await factory.organization(name=name)

    response = await client.get(
        "/v1/organizations",
        headers=admin_headers,
        params={"page[size]": "2", "filter[name][like]": "acme-%"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [item["attributes"]["name"] for item in body["data"]] == ["acme-a", "acme-b"]
    assert body["meta"] == {
        "count": 2,
        "total": 3,
        "pages": 2,
        "page_size": 2,
        "page_number": 1,
    }
    assert body["links"]["prev"] is None
    assert body["links"]["next"] is not None


@pytest.mark.asyncio
async def test_list_organizations_sorted_descending(client: AsyncClient, admin_headers: dict, factory):
    for name in ("sort-a", "sort-b"):
        await factory.organization(name=name)

    response = await client.get(
        "/v1/organizations",
        headers=admin_headers,
        params={"sort": "-name", "filter[name][in]": "sort-a,sort-b"},
    )

    assert [item["attributes"]["name"] for item in response.json()["data"]] == ["sort-b", "sort-a"]


@pytest.mark.asyncio
async def test_sparse_fieldset(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()

    response = await client.get(
        f"/v1/organizations/{organization.id}",
        headers=admin_headers,
        params={"fields[organizations]": "name"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["attributes"] == {"name": organization.name}


@pytest.mark.asyncio
async def test_unknown_filter_column(client: AsyncClient, admin_headers: dict):
    response = await client.get(
        "/v1/organizations", headers=admin_headers, params={"filter[plan]": "gold"}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sort_on_json_attributes_rejected(client: AsyncClient, admin_headers: dict):
    response = await client.get(
        "/v1/organizations", headers=admin_headers, params={"sort": "-attributes"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key,value",
    [
        ("filter[active][like]", "true"),
        ("filter[createdAt][like]", "2024-01-01T00:00:00Z"),
    ],
)
async def test_like_rejected_on_non_text_fields(
    client: AsyncClient, admin_headers: dict, key: str, value: str
):
    response = await client.get("/v1/organizations", headers=admin_headers, params={key: value})

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


@pytest.mark.asyncio
async def test_like_filter_on_name(client: AsyncClient, admin_headers: dict, factory):
    await factory.organization(name="acme-like-one")
    await factory.organization(name="acme-other")

    response = await client.get(
        "/v1/organizations", headers=admin_headers, params={"filter[name][like]": "acme-like-%"}
    )

    assert response.status_code == 200
    assert [item["attributes"]["name"] for item in response.json()["data"]] == ["acme-like-one"]


@pytest.mark.asyncio
async def test_get_missing_organization(client: AsyncClient, admin_headers: dict):
    response = await client.get("/v1/organizations/missing", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_organization(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()

    response = await client.patch(
        f"/v1/organizations/{organization.id}",
        headers=admin_headers,
        json={"active": False},
    )

    assert response.status_code == 200
    attributes = response.json()["data"]["attributes"]
    assert attributes["active"] is False
    assert attributes["name"] == organization.name


@pytest.mark.asyncio
async def test_change_owner_makes_new_owner_member(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    new_owner = await factory.user()

    response = await client.patch(
        f"/v1/organizations/{organization.id}",
        headers=admin_headers,
        json={"owner_id": new_owner.id},
    )

    assert response.status_code == 200
    members = await client.get(f"/v1/organizations/{organization.id}/users", headers=admin_headers)
    assert new_owner.id in [user["id"] for user in members.json()["data"]]


@pytest.mark.asyncio
async def test_owner_cannot_be_revoked(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    member = await factory.user()
    await factory.organizations.grant("users", organization.id, [member.id])

    response = await client.request(
        "DELETE",
        f"/v1/organizations/{organization.id}/users",
        headers=admin_headers,
        json={"users": [member.id, organization.owner_id]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "owner_constraint_violation"
    # Nothing was revoked
    members = await client.get(f"/v1/organizations/{organization.id}/users", headers=admin_headers)
    assert len(members.json()["data"]) == 2


@pytest.mark.asyncio
async def test_grant_permissions_is_idempotent(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    permission = await factory.permission()
    url = f"/v1/organizations/{organization.id}/permissions"

    for _ in range(2):
        response = await client.post(url, headers=admin_headers, json={"permissions": [permission.id]})
        assert response.status_code == 204

    response = await client.get(url, headers=admin_headers)
    assert [item["id"] for item in response.json()["data"]] == [permission.id]


@pytest.mark.asyncio
async def test_grant_and_revoke_log_fixed_events(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    permission = await factory.permission()
    url = f"/v1/organizations/{organization.id}/permissions"

    with capture_logs() as logs:
        await client.post(url, headers=admin_headers, json={"permissions": [permission.id]})
        await client.request("DELETE", url, headers=admin_headers, json={"permissions": [permission.id]})

    grants = [entry for entry in logs if entry["event"] in ("Grants added", "Grants revoked")]
    assert [entry["event"] for entry in grants] == ["Grants added", "Grants revoked"]
    assert all(entry["relation"] == "permissions" for entry in grants)
    assert all(entry["resource_type"] == "organization" for entry in grants)
    assert all(entry["id"] == organization.id for entry in grants)


@pytest.mark.asyncio
async def test_grant_is_all_or_nothing(client: AsyncClient, admin_headers: dict, factory):
    organization = await factory.organization()
    permission = await factory.permission()
    url = f"/v1/organizations/{organization.id}/permissions"

    response = await client.post(
        url, headers=admin_headers, json={"permissions": [permission.id, "bogus"]}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_reference"
    assert (await client.get(url, headers=admin_headers)).json()["data"] == []


@pytest.mark.asyncio
async def test_grant_to_missing_organization(client: AsyncClient, admin_headers: dict, factory):
    permission = await factory.permission()

    response = await client.post(
        "/v1/organizations/missing/permissions",
        headers=admin_headers,
        json={"permissions": [permission.id]},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_organization_removes_groups_and_roles(
    client: AsyncClient, container, admin_headers: dict, factory
):
    organization = await factory.organization()
    await factory.group(organization)
    await factory.role(organization)

    response = await client.delete(f"/v1/organizations/{organization.id}", headers=admin_headers)

    assert response.status_code == 204
    async with container.session_factory() as session:
        groups = await session.scalar(
            select(func.count()).select_from(Group).where(Group.organization_id == organization.id)
        )
        roles = await session.scalar(
            select(func.count()).select_from(Role).where(Role.entity_id == organization.id)
        )
    assert groups == 0
    assert roles == 0

    response = await client.delete(f"/v1/organizations/{organization.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_requires_permission(client: AsyncClient, auth_headers: dict):
    response = await client.get("/v1/organizations", headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


@pytest.mark.asyncio
async def test_self_scope_lists_only_own_organizations(
    client: AsyncClient, factory, headers_for
):
    user = await factory.user()
    await factory.grant_role_permissions(user, ["self.organizations.read"])
    mine = await factory.organization(owner=user)
    other = await factory.organization()

    response = await client.get("/v1/organizations", headers=headers_for(user))

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["data"]] == [mine.id]

    response = await client.get(f"/v1/organizations/{other.id}", headers=headers_for(user))
    assert response.status_code == 403
