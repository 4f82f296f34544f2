from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from app.core.config import settings
from app.core.redis_client import get_redis


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    key: str
    limit: int
    window_seconds: int


def client_ip(request: Request) -> str:
    if bool(getattr(settings, "trust_proxy_headers", False)):
        xri = str(request.headers.get("x-real-ip") or "").strip()
        if xri:
            return xri
        xff = request.headers.get("x-forwarded-for")
        if xff:
            ip = xff.split(",")[0].strip()
            if ip:
                return ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(*, key_prefix: str, limit: int | Callable[[], int], window_seconds: int):
    """Fixed-window limiter keyed by client IP. Fails open when Redis is down."""

    async def _dep(request: Request) -> RateLimit:
        eff_limit = int(limit() if callable(limit) else limit)
        key = f"rl:{key_prefix}:{request.method}:{request.url.path}:{client_ip(request)}"

        try:
            r = get_redis()
            current = r.incr(key)
            if current == 1:
                r.expire(key, int(window_seconds))
        except Exception:
            log.warning("rate limit skipped, redis unavailable: %s", key_prefix)
            return RateLimit(key=key, limit=eff_limit, window_seconds=int(window_seconds))

        if int(current) > eff_limit:
            ttl = r.ttl(key)
            retry_after = int(ttl) if ttl and ttl > 0 else int(window_seconds)
            raise HTTPException(
                status_code=429,
                detail="rate limit exceeded",
                headers={"Retry-After": str(retry_after)},
            )

        return RateLimit(key=key, limit=eff_limit, window_seconds=int(window_seconds))

    return Depends(_dep)
