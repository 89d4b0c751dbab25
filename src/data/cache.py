"""Redis cache decorator for analysis service calls.

Completed analysis payloads never change, so they are cached to avoid
re-reading them from the analysis service on every scenario request.
In-flight statuses (queued/processing) are not cached.
"""

import functools
import hashlib
import json
import logging
from typing import Any, Callable

import redis.asyncio as redis

from src.config import settings

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def _cache_key(prefix: str, *args: Any, **kwargs: Any) -> str:
    """Generate a deterministic cache key from function arguments."""
    raw = json.dumps({"args": [str(a) for a in args], "kwargs": {k: str(v) for k, v in kwargs.items()}}, sort_keys=True)
    h = hashlib.sha256(raw.encode()).hexdigest()[:16]
    return f"scenarios:{prefix}:{h}"


def cached(
    prefix: str,
    ttl_seconds: int = 3600,
    should_cache: Callable[[Any], bool] | None = None,
):
    """Cache decorator for async client methods.

    Args:
        prefix: Cache key prefix (e.g., "analysis:status")
        ttl_seconds: Time-to-live in seconds
        should_cache: Predicate on the result; results failing it are not stored
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            # Key on the instance base_url in place of self
            key = _cache_key(prefix, getattr(args[0], "base_url", ""), *args[1:], **kwargs)
            try:
                r = await get_redis()
                cached_value = await r.get(key)
                if cached_value is not None:
                    logger.debug("Cache hit: %s", key)
                    return json.loads(cached_value)
            except Exception:
                logger.warning("Redis unavailable, skipping cache for %s", key)

            result = await func(*args, **kwargs)
            if should_cache is not None and not should_cache(result):
                return result

            try:
                r = await get_redis()
                await r.setex(key, ttl_seconds, json.dumps(result, default=str))
            except Exception:
                logger.warning("Failed to write cache for %s", key)

            return result
        return wrapper
    return decorator
