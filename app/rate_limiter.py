"""
Hybrid in-memory + Redis rate limiting utilities
Counts live in memory and are synced to Redis periodically when Redis is
configured; without REDIS_URL/REDIS_HOST the limiter runs memory-only.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from . import config
from .errors import AppError

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None
_redis_checked = False

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def redis_configured() -> bool:
    return bool(config.REDIS_URL or config.REDIS_HOST)


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client, or None when Redis is not configured.
    Connection failures are raised to the caller.
    """
    global redis_client, _redis_checked

    if redis_client is not None or (_redis_checked and not redis_configured()):
        return redis_client

    _redis_checked = True
    if not redis_configured():
        logger.info("ℹ️ Redis not configured - rate limiting runs in memory only")
        return None

    logger.info("🔄 Initializing Redis connection for rate limiting...")
    if config.REDIS_URL:
        masked_url = config.REDIS_URL.split("@")[-1] if "@" in config.REDIS_URL else "****"
        logger.info(f"📡 Using Redis URL connection: ****@{masked_url}")
        client = redis.from_url(
            config.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
    else:
        client = redis.Redis(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            password=config.REDIS_PASSWORD,
            db=int(os.getenv("REDIS_DB", "0")),
            ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )

    try:
        client.ping()
    except Exception as e:
        logger.error(f"❌ Failed to connect to Redis: {str(e)}")
        logger.warning("⚠️ Falling back to in-memory rate limiting")
        raise

    redis_client = client
    logger.info("✅ Redis connected successfully")
    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def reset_rate_limits():
    with cache_lock:
        memory_cache.clear()


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """Check if rate limit is exceeded

    Args:
        key: Cache/Redis key for this rate limit
        limit: Maximum number of requests allowed
        window_seconds: Time window in seconds
        client: Redis client, or None for memory-only counting

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            entry = {
                "count": 0,
                "reset_time": current_time + window_seconds,
                "last_redis_sync": current_time,
            }
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
            memory_cache[key] = entry

        cache_entry = memory_cache[key]

        if current_time >= cache_entry["reset_time"]:
            cache_entry["count"] = 0
            cache_entry["reset_time"] = current_time + window_seconds
            cache_entry["last_redis_sync"] = 0

        is_allowed = cache_entry["count"] < limit
        if is_allowed:
            cache_entry["count"] += 1

        if client is not None and current_time - cache_entry.get("last_redis_sync", 0) >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, cache_entry["count"], ex=window_seconds)
                cache_entry["last_redis_sync"] = current_time
                logger.debug(f"📡 Synced {key} to Redis: {cache_entry['count']}/{limit}")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = cache_entry["reset_time"] - current_time
        return is_allowed, cache_entry["count"], max(0, ttl)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _safe_redis_client() -> Optional[redis.Redis]:
    try:
        return get_redis_client()
    except redis.RedisError:
        return None


def enforce_rate_limit(key: str, limit: int, window_seconds: int, message: Optional[str] = None):
    """Count a hit for ``key`` and raise a 429 AppError once ``limit`` is exceeded."""
    is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, _safe_redis_client())
    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise AppError(
            429,
            message or "Too many requests, please try again later.",
            "RATE_LIMITED",
            details={"retry_after": ttl, "limit": limit, "window_seconds": window_seconds},
            headers={"Retry-After": str(ttl)},
        )


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
    message: Optional[str] = None,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for the key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"
    enforce_rate_limit(key, limit, window_seconds, message)


def create_rate_limiter(
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
    message: Optional[str] = None,
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rsvp_lookup_limit = create_rate_limiter(limit=10, window_seconds=900, key_prefix="rsvp_lookup")

        @router.get("/{code}")
        async def lookup(code: str, _: None = Depends(rsvp_lookup_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip, message)

    return rate_limiter
