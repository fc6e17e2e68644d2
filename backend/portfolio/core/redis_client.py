from __future__ import annotations

from functools import lru_cache

import redis

from portfolio.core.config import settings


@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    # Short timeouts: callers treat Redis as optional and fail open.
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=1.0,
        socket_timeout=1.0,
    )
