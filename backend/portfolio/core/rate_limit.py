from __future__ import annotations

import logging
from dataclasses import dataclass

import redis
from fastapi import Depends, HTTPException, Request

from portfolio.core import redis_client
from portfolio.core.request_context import client_ip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    key: str
    limit: int
    window_seconds: int


def rate_limit(*, key_prefix: str, limit: int, window_seconds: int):
    """Fixed-window limiter keyed by route and client IP.

    Redis outages let the request through.
    """

    async def _dep(request: Request) -> RateLimit:
        ip = client_ip(request) or "unknown"
        key = f"rl:{key_prefix}:{request.method}:{request.url.path}:{ip}"
        info = RateLimit(key=key, limit=int(limit), window_seconds=int(window_seconds))

        try:
            r = redis_client.get_redis()
            current = r.incr(key)
            if current == 1:
                r.expire(key, int(window_seconds))
        except redis.RedisError as e:
            logger.warning("rate limit skipped for %s: %s", key_prefix, e)
            return info

        if int(current) > int(limit):
            try:
                ttl = r.ttl(key)
            except redis.RedisError:
                ttl = None
            retry_after = int(ttl) if ttl and ttl > 0 else int(window_seconds)
            raise HTTPException(
                status_code=429,
                detail="rate limit exceeded",
                headers={"Retry-After": str(retry_after)},
            )

        return info

    return Depends(_dep)
