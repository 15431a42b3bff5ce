import logging

import redis

from ...application.ports.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class RedisRateLimiter(RateLimiter):
    """Fixed window counters shared by every worker.

    When Redis cannot be reached the request is let through.
    """

    def __init__(self, url: str, prefix: str = "curaclinic:rl:") -> None:
        self.client = redis.Redis.from_url(url)
        self.prefix = prefix

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        rk = f"{self.prefix}{key}:{window_seconds}"
        pipe = self.client.pipeline()
        pipe.incr(rk, 1)
        pipe.expire(rk, window_seconds)
        try:
            count, _ = pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"Rate limiter unavailable, allowing {key}: {e}")
            return True
        return int(count) <= max_requests
