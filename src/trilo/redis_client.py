"""Redis client construction for ledger event publishing."""

import redis.asyncio as redis


def create_redis(url: str, max_connections: int = 20) -> redis.Redis:
    """Create a Redis client backed by its own connection pool."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis(client: redis.Redis | None) -> None:
    """Close the Redis client and its pool."""
    if client is not None:
        await client.aclose()
