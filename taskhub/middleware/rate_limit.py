"""
Rate Limiting Middleware

Per-principal rate limiting using Redis.

ARCHITECTURE: Token bucket stored in Redis. The bucket key is the
authenticated user id (JWT "sub") when a valid bearer token is present,
otherwise the client address.

NOTE: Redis being unreachable disables limiting rather than rejecting
traffic. Authorization never depends on this middleware.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import redis
import time
import logging
from taskhub.config import get_settings
from taskhub.core.exceptions import RateLimitExceeded
from taskhub.core.security import decode_access_token, user_id_from_payload

logger = logging.getLogger(__name__)
settings = get_settings()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiter per principal.

    Any argument left as None comes from Settings.
    """

    def __init__(
        self,
        app,
        redis_client=None,
        enabled: Optional[bool] = None,
        rate_limit: Optional[int] = None,
        burst: Optional[int] = None
    ):
        super().__init__(app)
        self.enabled = settings.RATE_LIMIT_ENABLED if enabled is None else enabled
        self.rate_limit = rate_limit or settings.RATE_LIMIT_PER_MINUTE
        self.burst = burst or settings.RATE_LIMIT_BURST
        self.redis_client = redis_client
        self.redis_available = redis_client is not None

        if self.enabled and self.redis_client is None:
            try:
                self.redis_client = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
                self.redis_client.ping()
                self.redis_available = True
                logger.info("Redis connection established for rate limiting")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.error(f"Redis connection failed: {e}")
                self.redis_available = False

        self.excluded_paths = [
            "/docs",
            "/redoc",
            "/openapi.json",
            "/health",
        ]

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        if not self.redis_available:
            logger.warning("Rate limiting disabled - Redis unavailable")
            return await call_next(request)

        identifier = self._get_client_identifier(request)
        allowed, retry_after = self._check_rate_limit(identifier)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {identifier}",
                extra={"request_id": getattr(request.state, "request_id", None)}
            )
            exc = RateLimitExceeded(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "detail": exc.detail,
                    "retry_after": retry_after
                },
                headers=exc.headers
            )

        return await call_next(request)

    def _check_rate_limit(self, identifier: str) -> Tuple[bool, int]:
        """
        Check if request is allowed under rate limit.

        Returns: (allowed, retry_after_seconds)

        - Bucket holds up to burst tokens
        - Tokens refill at rate_limit per minute
        - Each request consumes one token
        """
        key = f"rate_limit:{identifier}"
        key_timestamp = f"{key}:timestamp"

        try:
            current_tokens = self.redis_client.get(key)
            last_update = self.redis_client.get(key_timestamp)

            now = time.time()

            if current_tokens is None:
                # First request - initialize bucket
                self.redis_client.setex(key, 60, self.burst - 1)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            current_tokens = float(current_tokens)
            last_update = float(last_update) if last_update else now

            elapsed = now - last_update
            per_second = self.rate_limit / 60.0
            new_tokens = min(self.burst, current_tokens + elapsed * per_second)

            if new_tokens >= 1:
                self.redis_client.setex(key, 60, new_tokens - 1)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            tokens_needed = 1 - new_tokens
            return False, int(tokens_needed / per_second) + 1

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return True, 0

    def _get_client_identifier(self, request: Request) -> str:
        """User id from a valid bearer token, else the client address."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            payload = decode_access_token(auth_header[len("Bearer "):])
            user_id = user_id_from_payload(payload) if payload else None
            if user_id is not None:
                return f"user:{user_id}"

        client_host = request.client.host if request.client else "unknown"
        return f"ip:{client_host}"
