from redis.asyncio import Redis

# Global Redis client instance
redis_client: Redis | None = None


async def get_redis() -> Redis:
    """
    Get the Redis client instance.

    Returns:
        Redis client instance

    Raises:
        RuntimeError: If Redis client is not initialized
    """
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized")
    return redis_client


def unread_notifications_key(user_id: object) -> str:
    return f"notifications:unread:{user_id}"
