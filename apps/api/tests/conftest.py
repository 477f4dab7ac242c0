"""
Pytest fixtures for testing.

Provides:
- An application wired to an in-memory SQLite database
- Test client with auth helpers
- Factory fixtures for creating test data
"""

import time
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import ApiSettings, AuthSettings, DatabaseSettings, Settings
from gatekeeper.core.container import Container
from gatekeeper.main import create_app
from gatekeeper.models import Organization, Permission, Role, User
from gatekeeper.models.database import init_db
from gatekeeper.repositories import (
    GroupRepository,
    OrganizationRepository,
    PermissionRepository,
    RoleRepository,
    UserRepository,
)
from gatekeeper.services.auth import AuthService


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "testpassword123"

ADMIN_PERMISSIONS = [
    f"global.{resource}.{action}"
    for resource in ("organizations", "groups", "roles", "permissions", "users")
    for action in ("read", "create", "update", "delete")
] + [
    f"global.{resource}.{relation}.{action}"
    for resource in ("organizations", "groups", "roles")
    for relation in ("permissions", "users")
    for action in ("read", "grant", "revoke")
] + [
    f"global.users.{relation}.read"
    for relation in ("groups", "roles", "organizations", "permissions")
]


@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated test application."""
    return Settings(
        environment="testing",
        log_format="console",
        database=DatabaseSettings(url=TEST_DATABASE_URL),
        auth=AuthSettings(
            secret_key="test-secret-key",
            pepper="test-pepper",
            password_hash_rounds=4,
        ),
        api=ApiSettings(rate_limit=1000),
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Application with a freshly created schema."""
    app = create_app(settings)
    container: Container = app.state.container
    await init_db(container.engine)

    yield app

    await container.shutdown()


@pytest.fixture
def container(app: FastAPI) -> Container:
    return app.state.container


@pytest_asyncio.fixture
async def db(container: Container) -> AsyncGenerator[AsyncSession, None]:
    """Session on the application's database."""
    async with container.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============ Factory Fixtures ============


class Factory:
    """Creates test data through the repositories."""

    def __init__(self, db: AsyncSession, container: Container):
        self.db = db
        self.users = UserRepository(db, hasher=container.hasher)
        self.organizations = OrganizationRepository(db)
        self.groups = GroupRepository(db)
        self.roles = RoleRepository(db)
        self.permissions = PermissionRepository(db)

    @staticmethod
    def _name(prefix: str) -> str:
        return f"{prefix}-{uuid4().hex[:8]}"

    async def user(
        self,
        login: str | None = None,
        password: str = DEFAULT_PASSWORD,
        enabled: bool = True,
        **fields,
    ) -> User:
        user_id = await self.users.create({
            "login": login or self._name("user"),
            "password": password,
            "enabled": enabled,
            **fields,
        })
        return await self.users.get(user_id)

    async def organization(self, owner: User | None = None, name: str | None = None) -> Organization:
        owner = owner or await self.user()
        organization_id = await self.organizations.create({
            "name": name or self._name("org"),
            "owner_id": owner.id,
        })
        return await self.organizations.get(organization_id)

    async def group(self, organization: Organization | None = None, name: str | None = None):
        organization = organization or await self.organization()
        group_id = await self.groups.create({
            "organization_id": organization.id,
            "name": name or self._name("group"),
        })
        return await self.groups.get(group_id)

    async def role(self, organization: Organization | None = None, name: str | None = None) -> Role:
        organization = organization or await self.organization()
        role_id = await self.roles.create({
            "entity_id": organization.id,
            "name": name or self._name("role"),
        })
        return await self.roles.get(role_id)

    async def permission(self, name: str | None = None, description: str | None = None) -> Permission:
        permission_id = await self.permissions.create({
            "name": name or self._name("perm"),
            "description": description,
        })
        return await self.permissions.get(permission_id)

    async def grant_role_permissions(self, user: User, names: list[str]) -> Role:
        """Give a user the named permissions through a fresh role."""
        role = await self.role()
        permission_ids = []
        for name in names:
            existing = await self.permissions.get_one(name=name)
            permission = existing or await self.permission(name)
            permission_ids.append(permission.id)
        await self.roles.grant("permissions", role.id, permission_ids)
        await self.roles.grant("users", role.id, [user.id])
        return role


@pytest.fixture
def factory(db: AsyncSession, container: Container) -> Factory:
    return Factory(db, container)


@pytest_asyncio.fixture
async def test_user(factory: Factory) -> User:
    """A user with no permissions."""
    return await factory.user(login="tester")


@pytest_asyncio.fixture
async def admin_user(factory: Factory) -> User:
    """A user holding every global permission."""
    user = await factory.user(login="admin")
    await factory.grant_role_permissions(user, ADMIN_PERMISSIONS)
    return user


# ============ Auth Helpers ============


def make_token(container: Container, db: AsyncSession, user: User, group_ids: list[str] | None = None) -> str:
    """Sign an access token for a user without going through login."""
    service = AuthService(
        db,
        container.settings.auth,
        container.hasher,
        container.hooks,
        rate_limit=container.settings.api.rate_limit,
    )
    return service.create_access_token(user, group_ids or [], "http://test", int(time.time()))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def auth_headers(container: Container, db: AsyncSession, test_user: User) -> dict[str, str]:
    """Get auth headers for test user."""
    return bearer(make_token(container, db, test_user))


@pytest_asyncio.fixture
async def admin_headers(container: Container, db: AsyncSession, admin_user: User) -> dict[str, str]:
    """Get auth headers for admin user."""
    return bearer(make_token(container, db, admin_user))


@pytest.fixture
def headers_for(container: Container, db: AsyncSession):
    """Build auth headers for any user."""
    def build(user: User) -> dict[str, str]:
        return bearer(make_token(container, db, user))
    return build
