import hashlib
from typing import Optional

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import RedisError

from assistant_backend.core.exceptions import TooManyRequests
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.core.rate_limit")


class RateLimiter:
    """
    Fixed-window request counter in Redis.
    If Redis is not configured or not reachable, every check is a no-op (graceful degradation).
    """

    def __init__(self, redis: Optional[Redis] = None):
        self.redis = redis
        self.available = redis is not None

    @classmethod
    def from_url(cls, url: Optional[str]) -> "RateLimiter":
        if not url:
            logger.info("REDIS_URL not set - rate limiting disabled")
            return cls(None)
        return cls(Redis.from_url(url, decode_responses=True, socket_connect_timeout=1))

    async def connect(self) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.ping()
            self.available = True
            logger.info("Redis connection established for rate limiting")
        except (RedisError, OSError) as e:
            self.available = False
            logger.warning(f"Redis not available - rate limiting disabled: {e}")

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()

    async def hit(self, key: str, limit: int = 100, window: int = 60) -> None:
        """Count one request for ``key``; raise TooManyRequests past ``limit`` within ``window`` seconds."""
        if not self.available:
            logger.debug("Rate limit check skipped (Redis unavailable)", extra={"key": key})
            return

        try:
            redis_key = f"rate:{key}"
            count = await self.redis.incr(redis_key)
            if count == 1:
                await self.redis.expire(redis_key, window)
        except RedisError as e:
            # Log error but don't block the request
            logger.error(f"Rate limit check failed: {e}", extra={"key": key})
            return

        if count > limit:
            logger.warning("Rate limit exceeded", extra={"key": key, "count": count, "limit": limit})
            raise TooManyRequests()


def email_key(scope: str, email: str) -> str:
    """Stable key for per-email limits; the address itself never reaches Redis."""
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()[:32]
    return f"{scope}:{digest}"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter
