"""Information feed fetched over HTTP, with a short local cache."""
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from app.core.errors import UpstreamFeedError
from app.services.feeds.base import TextFeed

logger = logging.getLogger(__name__)


class HttpTextFeed(TextFeed):
    """
    Feed served by the platform API at ``{base_url}/{topic}``.

    Topic details map to a query parameter, so ``prices:vegetables`` is
    fetched from ``/prices?filter=vegetables``. Responses are cached for
    ``cache_ttl_seconds``.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 3.0,
        cache_ttl_seconds: int = 60,
        max_items: int = 3,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(max_items=max_items)
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout_seconds
        )
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[str, Tuple[float, List[Any]]] = {}

    async def get_items(self, topic: str) -> List[Any]:
        cached = self._cache.get(topic)
        if cached and cached[0] > self._clock():
            return cached[1]

        path, _, detail = topic.partition(":")
        params = {"filter": detail} if detail else None
        try:
            response = await self.client.get(f"/{path}", params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[FEED] Fetch failed - Topic: {topic}, Error: {type(e).__name__}: {e}")
            raise UpstreamFeedError(topic, str(e)) from e

        if isinstance(data, dict):
            data = data.get("items", data.get("data", []))
        items = data if isinstance(data, list) else [data]
        self._cache[topic] = (self._clock() + self.cache_ttl_seconds, items)
        return items

    async def close(self) -> None:
        await self.client.aclose()
