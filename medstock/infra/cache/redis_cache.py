# medstock/infra/cache/redis_cache.py
import os
import json
from typing import Any, Optional
import redis.asyncio as aioredis

from medstock.domain.ports import CachePort


DEFAULT_TTL = int(os.getenv("IMPORT_TTL_SECONDS", "3600"))  # 1h default

class RedisCache(CachePort):
    """
    JSON cache tipis di atas redis.asyncio.

    Dipakai untuk staging import (lihat SessionStateService):
        get_json/set_json/delete, ping()
        from_env()  -> construct from REDIS_URL
    """
    def __init__(self, client: Optional[aioredis.Redis] = None):
        self.r = client or aioredis.from_url(
            os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            encoding="utf-8",
            decode_responses=True,
        )

    @classmethod
    def from_env(cls):
        url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        return cls(aioredis.from_url(url, encoding="utf-8", decode_responses=True))

    async def get_json(self, key: str) -> Optional[Any]:
        raw = await self.r.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            # stray plaintext; treat as missing
            return None

    async def set_json(self, key: str, value: Any, ttl: int = DEFAULT_TTL):
        await self.r.set(key, json.dumps(value, ensure_ascii=False, default=str), ex=ttl)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.r.delete(*keys)

    async def ping(self) -> bool:
        return bool(await self.r.ping())
