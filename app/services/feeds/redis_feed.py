"""Information feed read from the platform's Redis cache."""
import json
from typing import Any, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.errors import UpstreamFeedError
from app.services.feeds.base import TextFeed


class RedisTextFeed(TextFeed):
    """Reads JSON lists cached under ``cache:<topic>`` by the platform API."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        key_prefix: str = "cache:",
        max_items: int = 3,
    ):
        super().__init__(max_items=max_items)
        if client is None:
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self.redis = client
        self.key_prefix = key_prefix

    async def get_items(self, topic: str) -> List[Any]:
        try:
            raw = await self.redis.get(f"{self.key_prefix}{topic}")
        except RedisError as e:
            raise UpstreamFeedError(topic, str(e)) from e
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise UpstreamFeedError(topic, "cached value is not JSON") from e
        return data if isinstance(data, list) else [data]

    async def close(self) -> None:
        await self.redis.aclose()
