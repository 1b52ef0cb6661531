"""
Redis Caching Layer

Response caching for read-only aggregation endpoints. Every Redis failure
falls through to the wrapped function.
"""
import hashlib
import json
from functools import wraps
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError

from config.settings import settings
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

# Redis client configuration
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get Redis client instance.

    Returns:
        Redis client if available, None if connection fails
    """
    global redis_client

    if redis_client is None:
        redis_url = settings.redis_url

        if not redis_url:
            logger.debug("redis_skipped", reason="redis_url not configured")
            return None

        try:
            client = redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            # Test connection
            client.ping()
            redis_client = client
        except RedisError as e:
            logger.warning("redis_connection_failed", error=str(e))
            redis_client = None

    return redis_client


def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate cache key from function arguments.

    Args:
        prefix: Cache key prefix
        *args: Positional arguments
        **kwargs: Keyword arguments

    Returns:
        Cache key string
    """
    key_data = {
        "args": [str(arg) for arg in args],
        "kwargs": {k: str(v) for k, v in sorted(kwargs.items())}
    }
    key_string = json.dumps(key_data, sort_keys=True)
    key_hash = hashlib.md5(key_string.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cache_result(prefix: str, ttl: Optional[int] = None, key_args: Optional[Callable[..., tuple]] = None):
    """
    Decorator to cache function results in Redis.

    Args:
        prefix: Cache key prefix
        ttl: Time to live in seconds (default from settings)
        key_args: Picks the arguments that identify a result; defaults to
            all of them. Use it to leave out sessions and other
            per-request objects.

    Returns:
        Decorated function with caching
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            client = get_redis_client()

            # If Redis is unavailable, call function directly
            if client is None:
                return func(*args, **kwargs)

            if key_args is not None:
                cache_key = make_cache_key(prefix, *key_args(*args, **kwargs))
            else:
                cache_key = make_cache_key(prefix, *args, **kwargs)

            try:
                cached = client.get(cache_key)
                if cached is not None:
                    logger.debug("cache_hit", key=cache_key)
                    return json.loads(cached)
            except RedisError as e:
                logger.warning("cache_read_failed", key=cache_key, error=str(e))

            result = func(*args, **kwargs)

            try:
                payload = json.dumps(result, default=str)
                client.setex(cache_key, ttl or settings.dashboard_cache_ttl_seconds, payload)
            except (RedisError, TypeError) as e:
                logger.warning("cache_write_failed", key=cache_key, error=str(e))

            return result

        return wrapper
    return decorator


def invalidate_cache(prefix: str) -> int:
    """
    Invalidate all cache keys with given prefix.

    Args:
        prefix: Cache key prefix to invalidate

    Returns:
        Number of keys deleted
    """
    client = get_redis_client()

    if client is None:
        return 0

    try:
        keys = list(client.scan_iter(match=f"{prefix}:*"))
        if keys:
            return client.delete(*keys)
        return 0
    except RedisError as e:
        logger.warning("cache_invalidation_failed", prefix=prefix, error=str(e))
        return 0


def get_cache_stats() -> dict:
    """
    Get Redis cache statistics.

    Returns:
        Dictionary with cache stats
    """
    client = get_redis_client()

    if client is None:
        return {
            "available": False,
            "error": "Redis connection unavailable"
        }

    try:
        info = client.info("stats")
        return {
            "available": True,
            "total_keys": client.dbsize(),
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "hit_rate": info.get("keyspace_hits", 0) / max(
                info.get("keyspace_hits", 0) + info.get("keyspace_misses", 0), 1
            ) * 100,
        }
    except RedisError as e:
        return {
            "available": False,
            "error": str(e)
        }
