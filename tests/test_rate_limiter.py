"""Tests for the Redis-backed rate limiter middleware."""
from unittest.mock import MagicMock

import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.redis_rate_limiter import RedisRateLimiter
from storefront.security import ROLE_USER, create_access_token


def _redis_with_counts(ip_count, user_count=0):
    """A fake Redis whose pipeline reports the given in-window counts (IP first, then user)."""
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.side_effect = [[0, ip_count, 1, True], [0, user_count, 1, True]]
    client.zcount.return_value = 0
    return client


def _app(redis_client, ip_limit=5, user_limit=3):
    app = FastAPI()
    app.add_middleware(
        RedisRateLimiter,
        redis_client=redis_client,
        requests_per_minute_ip=ip_limit,
        requests_per_minute_user=user_limit,
    )

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return TestClient(app)


class TestRateLimiter:
    def test_under_limit_passes(self):
        client = _app(_redis_with_counts(ip_count=1))
        assert client.get("/ping").status_code == 200

    def test_ip_limit(self):
        client = _app(_redis_with_counts(ip_count=5))
        response = client.get("/ping")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"

    def test_user_limit_uses_token_identity(self):
        fake = _redis_with_counts(ip_count=0, user_count=3)
        client = _app(fake)
        token = create_access_token("user-42", ROLE_USER)

        response = client.get("/ping", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 429
        keys = [call.args[0] for call in fake.pipeline.return_value.zcard.call_args_list]
        assert keys[-1] == "rate:user:user-42"

    def test_invalid_token_only_ip_limited(self):
        fake = _redis_with_counts(ip_count=0)
        client = _app(fake)

        response = client.get("/ping", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert fake.pipeline.return_value.execute.call_count == 1

    def test_redis_failure_fails_open(self):
        fake = MagicMock()
        fake.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
        client = _app(fake)
        assert client.get("/ping").status_code == 200

    def test_not_found_responses_are_tracked(self):
        fake = _redis_with_counts(ip_count=0)
        client = _app(fake)

        assert client.get("/missing").status_code == 404

        keys = [call.args[0] for call in fake.zadd.call_args_list]
        assert "suspicious:404:testclient" in keys
        assert "suspicious:4xx:testclient" in keys

    def test_lowercase_scheme_still_user_limited(self):
        fake = _redis_with_counts(ip_count=0, user_count=3)
        client = _app(fake)
        token = create_access_token("user-42", ROLE_USER)

        response = client.get("/ping", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 429
        keys = [call.args[0] for call in fake.pipeline.return_value.zcard.call_args_list]
        assert keys[-1] == "rate:user:user-42"
