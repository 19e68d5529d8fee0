"""Redis-backed rate limiter middleware."""
import logging
import time
from typing import Optional, Tuple

import redis
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.auth import bearer_credentials
from storefront.errors import AuthError
from storefront.monitoring import rate_limit_exceeded_counter, suspicious_activity_counter
from storefront.security import decode_access_token

logger = logging.getLogger(__name__)

# (status predicate, redis key prefix, threshold, activity type) over a 5 minute window
SUSPICIOUS_PATTERNS = (
    (lambda status: status == 401, "suspicious:401", 5, "credential_stuffing"),
    (lambda status: status == 404, "suspicious:404", 10, "endpoint_scanning"),
    (lambda status: 400 <= status < 500, "suspicious:4xx", 20, "abuse"),
)
SUSPICIOUS_WINDOW_SECONDS = 300


class RedisRateLimiter(BaseHTTPMiddleware):
    """
    Rate limiter using Redis sorted sets as sliding windows.

    Implements dual-tier limiting:
    - Per IP: higher limit, many clients may share one address
    - Per user: lower limit, keyed by the user id in a valid bearer token

    Redis failures fail open: the request is let through.
    """

    def __init__(
        self,
        app,
        redis_client: redis.Redis,
        requests_per_minute_ip: int = 1000,
        requests_per_minute_user: int = 300,
        window_seconds: int = 60
    ):
        """
        Initialize Redis-backed rate limiter.

        Args:
            app: FastAPI application
            redis_client: Redis connection
            requests_per_minute_ip: Max requests per IP per window
            requests_per_minute_user: Max requests per user per window
            window_seconds: Sliding window size in seconds
        """
        super().__init__(app)
        self.redis = redis_client
        self.requests_per_minute_ip = requests_per_minute_ip
        self.requests_per_minute_user = requests_per_minute_user
        self.window_seconds = window_seconds

    def _check_rate_limit(
        self,
        key: str,
        limit: int,
        window: int
    ) -> Tuple[bool, int]:
        """
        Check rate limit using a Redis sorted set (sliding window).

        Algorithm:
        1. Remove timestamps older than window
        2. Count requests in window
        3. Add current request
        4. Set TTL

        Returns:
            Tuple of (is_allowed, current_count)
        """
        try:
            current_time = time.time()
            window_start = current_time - window

            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.zadd(key, {str(current_time): current_time})
            pipe.expire(key, window + 1)
            results = pipe.execute()

            # Count BEFORE adding current request
            count = results[1]
            return count < limit, count + 1

        except redis.RedisError as e:
            logger.error(f"Redis rate limit error: {e}")
            return True, 0

    @staticmethod
    def _user_id(request: Request) -> Optional[str]:
        token = bearer_credentials(request.headers.get("authorization"))
        if token is None:
            return None
        try:
            return decode_access_token(token)["user_id"]
        except AuthError:
            # Rejected later by the auth gate; only the IP limit applies
            return None

    def _too_many_requests(self, limit_type: str, limit: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"msg": f"Rate limit exceeded for {limit_type}. Maximum {limit} requests per minute."},
            headers={"Retry-After": str(self.window_seconds)}
        )

    async def dispatch(self, request: Request, call_next):
        """Apply IP and user limits, then record suspicious response patterns."""
        client_ip = request.client.host if request.client else "unknown"
        if "x-forwarded-for" in request.headers:
            client_ip = request.headers["x-forwarded-for"].split(",")[0].strip()

        ip_allowed, ip_count = self._check_rate_limit(
            f"rate:ip:{client_ip}",
            self.requests_per_minute_ip,
            self.window_seconds
        )
        if not ip_allowed:
            rate_limit_exceeded_counter.add(1, {"limit_type": "ip"})
            logger.warning("IP rate limit exceeded", extra={
                "client_ip": client_ip,
                "endpoint": request.url.path,
                "requests_in_window": ip_count,
                "limit": self.requests_per_minute_ip
            })
            return self._too_many_requests("IP", self.requests_per_minute_ip)

        user_id = self._user_id(request)
        if user_id:
            user_allowed, user_count = self._check_rate_limit(
                f"rate:user:{user_id}",
                self.requests_per_minute_user,
                self.window_seconds
            )
            if not user_allowed:
                rate_limit_exceeded_counter.add(1, {"limit_type": "user"})
                logger.warning("User rate limit exceeded", extra={
                    "user_id": user_id,
                    "client_ip": client_ip,
                    "endpoint": request.url.path,
                    "requests_in_window": user_count,
                    "limit": self.requests_per_minute_user
                })
                return self._too_many_requests("user", self.requests_per_minute_user)

        response = await call_next(request)

        self._detect_suspicious_activity(request, response.status_code, client_ip)

        return response

    def _detect_suspicious_activity(self, request: Request, status_code: int, client_ip: str) -> None:
        """
        Count error responses per IP and flag:
        - Credential stuffing: 5+ 401s in 5 minutes
        - Endpoint scanning: 10+ 404s in 5 minutes
        - Abuse: 20+ 4xx errors in 5 minutes
        """
        try:
            current_time = time.time()
            for matches, prefix, threshold, activity in SUSPICIOUS_PATTERNS:
                if not matches(status_code):
                    continue

                key = f"{prefix}:{client_ip}"
                self.redis.zadd(key, {str(current_time): current_time})
                self.redis.expire(key, SUSPICIOUS_WINDOW_SECONDS + 1)

                count = self.redis.zcount(key, current_time - SUSPICIOUS_WINDOW_SECONDS, current_time)
                if count >= threshold:
                    suspicious_activity_counter.add(1, {"type": activity})
                    logger.warning("Suspicious activity detected", extra={
                        "type": activity,
                        "client_ip": client_ip,
                        "count": count,
                        "endpoint": request.url.path
                    })

        except redis.RedisError as e:
            logger.error(f"Error detecting suspicious activity: {e}")
