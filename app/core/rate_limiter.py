"""Rate limiting implementation using Redis with fixed window algorithm."""

import redis
from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Redis-based rate limiter using fixed window algorithm."""

    def __init__(self, redis_url: str = settings.REDIS_URL):
        self.redis_client = redis.Redis.from_url(redis_url, decode_responses=True)

    def _get_ip_key(self, request: Request, endpoint: str) -> str:
        """Get rate limit key based on IP address."""
        client_ip = request.client.host if request.client else "unknown"
        return f"rate_limit:ip:{client_ip}:{endpoint}"

    async def check_rate_limit(self, key: str, limit: int, window: int) -> bool:
        """Check if request is within rate limit using fixed window algorithm."""
        try:
            current_count = self.redis_client.incr(key)
            if current_count == 1:
                # First hit opens the window
                self.redis_client.expire(key, window)

            return bool(current_count <= limit)

        except redis.RedisError as e:
            # If Redis is down, allow request (fail open)
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return True

    async def check_ip_rate_limit(
        self, request: Request, endpoint: str, limit: int, window: int = 60
    ) -> bool:
        """Check rate limit based on IP address."""
        key = self._get_ip_key(request, endpoint)
        return await self.check_rate_limit(key, limit, window)


# Global rate limiter instance
rate_limiter = RateLimiter()


def limit_public_form(endpoint: str):
    """Build a dependency enforcing the per-IP limit for a public form endpoint."""

    async def dependency(request: Request) -> None:
        allowed = await rate_limiter.check_ip_rate_limit(
            request, endpoint, settings.PUBLIC_FORM_RATE_LIMIT_PER_MINUTE
        )
        if not allowed:
            logger.warning(f"Rate limit exceeded for {endpoint}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
            )

    return dependency
