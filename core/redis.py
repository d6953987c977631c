"""
Redis connection management.

Redis holds short-lived coordination state: generation cooldowns, the
persistent chat session placeholder and processed Stripe event ids.
"""

import logging
import time
from typing import Optional

from redis.asyncio import ConnectionPool, Redis

from .config import get_settings

logger = logging.getLogger(__name__)

# Global connection pool
_pool: Optional[ConnectionPool] = None
_client: Optional[Redis] = None


async def init_redis() -> Redis:
    """
    Initialize Redis connection pool and client.

    Should be called during application startup.
    """
    global _pool, _client

    settings = get_settings()

    _pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        decode_responses=True,
    )

    _client = Redis(connection_pool=_pool)

    try:
        await _client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise

    return _client


async def close_redis() -> None:
    """
    Close Redis connection pool.

    Should be called during application shutdown.
    """
    global _pool, _client

    if _client:
        await _client.aclose()
        _client = None
        logger.info("Redis connection closed")

    if _pool:
        await _pool.disconnect()
        _pool = None


async def get_redis() -> Redis:
    """
    Get Redis client instance.

    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _client is None:
        raise RuntimeError("Redis is not initialized. Call init_redis() first.")
    return _client


class RedisHealthCheck:
    """Redis health probe used by the readiness and status endpoints."""

    @staticmethod
    async def check() -> dict:
        """
        Ping Redis.

        Returns:
            Dictionary with status and response time in milliseconds
        """
        try:
            client = await get_redis()
            start = time.perf_counter()
            await client.ping()
            response_time_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "response_time_ms": round(response_time_ms, 2),
            }
        except RuntimeError:
            return {
                "status": "not_initialized",
                "response_time_ms": None,
            }
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": None,
            }
