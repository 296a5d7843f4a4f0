import json
from typing import Any, Optional
from redis.asyncio import Redis

async def cache_hget(redis: Redis, key: str, field: str) -> Optional[Any]:
    if val := await redis.hget(key, field):
        return json.loads(val)
    return None

async def cache_hset(redis: Redis, key: str, field: str, value: Any, ex: int = 60) -> None:
    # TTL covers the whole hash: one user's derived views expire together
    await redis.hset(key, field, json.dumps(value, default=str))
    await redis.expire(key, ex)

async def cache_delete(redis: Redis, key: str) -> None:
    await redis.delete(key)

async def cache_version(redis: Redis, key: str) -> int:
    return int(await redis.get(key) or 0)

async def cache_bump(redis: Redis, key: str) -> int:
    return await redis.incr(key)
