"""
Tests for the rate limiter and its HTTP enforcement.
"""

import pytest
from httpx import AsyncClient

from gatekeeper.core.exceptions import RateLimitExceededError
from gatekeeper.services.maintenance import delete_expired_buckets
from gatekeeper.services.rate_limit import DatabaseBucketStore, RateLimiter


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(container, clock) -> RateLimiter:
    return RateLimiter(DatabaseBucketStore(container.session_factory), clock=clock)


@pytest.mark.asyncio
async def test_limit_boundary(limiter: RateLimiter):
    """The limit-th hit passes, the next one is rejected."""
    for expected_remaining in (2, 1, 0):
        assert await limiter.enforce("auth-10.0.0.1", 3) == expected_remaining

    with pytest.raises(RateLimitExceededError) as exc_info:
        await limiter.enforce("auth-10.0.0.1", 3)

    assert exc_info.value.limit == 3
    assert exc_info.value.retry_after == 60


@pytest.mark.asyncio
async def test_rejection_does_not_restart_window(limiter: RateLimiter, clock: FakeClock):
    await limiter.enforce("user-1", 1)
    clock.advance(30)
    with pytest.raises(RateLimitExceededError) as exc_info:
        await limiter.enforce("user-1", 1)
    assert exc_info.value.retry_after == 30

    clock.advance(31)
    assert await limiter.enforce("user-1", 1) == 0


@pytest.mark.asyncio
async def test_keys_are_independent(limiter: RateLimiter):
    await limiter.enforce("public-10.0.0.1", 1)

    assert await limiter.enforce("public-10.0.0.2", 1) == 0


@pytest.mark.asyncio
async def test_reset(limiter: RateLimiter):
    await limiter.enforce("auth-10.0.0.1", 2)
    await limiter.enforce("auth-10.0.0.1", 2)
    await limiter.reset("auth-10.0.0.1", 2)

    assert await limiter.enforce("auth-10.0.0.1", 2) == 1


@pytest.mark.asyncio
async def test_disabled_limiter_never_counts(container):
    limiter = RateLimiter(DatabaseBucketStore(container.session_factory), enabled=False)

    for _ in range(5):
        assert await limiter.enforce("auth-10.0.0.1", 1) == 1


@pytest.mark.asyncio
async def test_idle_buckets_are_swept(limiter: RateLimiter, clock: FakeClock, db):
    await limiter.enforce("old", 5)
    clock.advance(90_000)
    await limiter.enforce("fresh", 5)

    deleted = await delete_expired_buckets(db, max_age=86400, now=clock.now)

    assert deleted == 1
    # "old" starts over, "fresh" keeps counting
    assert await limiter.enforce("old", 5) == 4
    assert await limiter.enforce("fresh", 5) == 3


@pytest.mark.asyncio
async def test_failed_logins_are_limited(client: AsyncClient, test_user):
    for _ in range(5):
        response = await client.post(
            "/v1/auth/login", json={"login": "tester", "password": "wrong"}
        )
        assert response.status_code == 401

    response = await client.post("/v1/auth/login", json={"login": "tester", "password": "wrong"})

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limit_exceeded"
    assert int(response.headers["Retry-After"]) >= 1


@pytest.mark.asyncio
async def test_forwarded_for_does_not_open_new_buckets(client: AsyncClient, test_user):
    """Without trusted proxies, X-Forwarded-For never picks the bucket."""
    statuses = []
    for i in range(6):
        response = await client.post(
            "/v1/auth/login",
            json={"login": "tester", "password": "wrong"},
            headers={"X-Forwarded-For": f"198.51.100.{i}"},
        )
        statuses.append(response.status_code)

    assert statuses == [401] * 5 + [429]


@pytest.mark.asyncio
async def test_successful_login_resets_auth_bucket(client: AsyncClient, test_user):
    for _ in range(4):
        await client.post("/v1/auth/login", json={"login": "tester", "password": "wrong"})

    response = await client.post(
        "/v1/auth/login", json={"login": "tester", "password": "testpassword123"}
    )
    assert response.status_code == 200

    for _ in range(4):
        response = await client.post(
            "/v1/auth/login", json={"login": "tester", "password": "wrong"}
        )
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_authenticated_requests_limited_per_user(container, client: AsyncClient, factory, headers_for):
    container.settings.api.rate_limit = 2
    user = await factory.user()
    headers = headers_for(user)

    for _ in range(2):
        assert (await client.get("/v1/me", headers=headers)).status_code == 200

    response = await client.get("/v1/me", headers=headers)
    assert response.status_code == 429


@pytest.mark.asyncio
async def test_public_status(client: AsyncClient):
    response = await client.get("/v1/status")

    assert response.status_code == 200
    attributes = response.json()["data"]["attributes"]
    assert attributes["status"] == "OK"
