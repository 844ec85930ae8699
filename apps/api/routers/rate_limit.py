"""Per-client attempt counters for brute-force sensitive endpoints."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings

logger = logging.getLogger(__name__)

RATE_KEY_PREFIX = "vsg:attempts"

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def _count_in_redis(key: str, window_seconds: int) -> int:
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await client.incr(key)
        if current == 1:
            await client.expire(key, window_seconds)
        return int(current)
    finally:
        await client.aclose()


async def _count_locally(key: str, window_seconds: int) -> int:
    now = time.time()
    async with _local_lock:
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count, reset_at = 0, now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
        return count


def rate_limit(scope: str, limit: int, window_seconds: int) -> Callable[[Request], object]:
    """FastAPI dependency rejecting a client after ``limit`` attempts per window."""

    async def _dependency(request: Request) -> None:
        if getattr(request.app.state, "disable_rate_limits", False):
            return

        key = f"{RATE_KEY_PREFIX}:{scope}:{client_identifier(request)}"
        try:
            attempts = await _count_in_redis(key, window_seconds)
        except Exception as exc:
            logger.warning("Redis unavailable for %s counters (%s); counting in process", scope, exc)
            attempts = await _count_locally(key, window_seconds)

        if attempts > limit:
            raise HTTPException(
                status_code=429,
                detail=f"Too many {scope} attempts. Try again later.",
            )

    return _dependency
