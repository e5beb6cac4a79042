"""Token bucket rate limiting, keyed per principal."""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskhub.core.security import create_access_token
from taskhub.middleware.rate_limit import RateLimitMiddleware

# One token per minute, so nothing refills while a test runs
BURST = 3


class FakeRedis:
    """In-memory stand-in for the two commands the limiter uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = str(value)


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def limited_app(redis_client):
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware, redis_client=redis_client, enabled=True, rate_limit=1, burst=BURST
    )

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


def test_burst_then_429(limited_app):
    client = TestClient(limited_app)
    statuses = [client.get("/ping").status_code for _ in range(BURST + 1)]

    assert statuses[:BURST] == [200] * BURST
    assert statuses[-1] == 429


def test_429_carries_retry_after(limited_app):
    client = TestClient(limited_app)
    for _ in range(BURST):
        client.get("/ping")

    response = client.get("/ping")
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) >= 1
    assert response.json()["retry_after"] >= 1


def test_health_is_never_limited(limited_app):
    client = TestClient(limited_app)
    for _ in range(BURST * 2):
        assert client.get("/health").status_code == 200


def test_buckets_are_per_user(limited_app, redis_client):
    client = TestClient(limited_app)
    first = {"Authorization": f"Bearer {create_access_token({'sub': '1'})}"}
    second = {"Authorization": f"Bearer {create_access_token({'sub': '2'})}"}

    for _ in range(BURST):
        client.get("/ping", headers=first)

    assert client.get("/ping", headers=first).status_code == 429
    assert client.get("/ping", headers=second).status_code == 200
    assert "rate_limit:user:1" in redis_client.store


def test_disabled_limiter_passes_everything(redis_client):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_client=redis_client, enabled=False, burst=BURST)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    client = TestClient(app)
    for _ in range(BURST * 2):
        assert client.get("/ping").status_code == 200
    assert redis_client.store == {}
