"""In-memory information feed."""
from typing import Any, Dict, List, Optional

from app.services.feeds.base import TextFeed


class InMemoryTextFeed(TextFeed):
    """Feed backed by a dict of topic to items; updated via ``publish``."""

    def __init__(self, items: Optional[Dict[str, List[Any]]] = None, max_items: int = 3):
        super().__init__(max_items=max_items)
        self._items: Dict[str, List[Any]] = dict(items or {})

    def publish(self, topic: str, items: List[Any]) -> None:
        """Replace the cached items for a topic."""
        self._items[topic] = list(items)

    async def get_items(self, topic: str) -> List[Any]:
        return list(self._items.get(topic, []))
