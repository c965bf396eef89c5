"""Read-only information feeds spoken to callers."""
from abc import ABC, abstractmethod
from typing import Any, Iterable, List

# Spoken names for the top-level topics
TOPIC_LABELS = {
    "alerts": "local alerts",
    "transport": "transport updates",
    "prices": "market prices",
    "announcements": "community announcements",
}


def topic_label(topic: str) -> str:
    """Spoken label for a topic such as ``prices:vegetables``."""
    base, _, detail = topic.partition(":")
    label = TOPIC_LABELS.get(base, base.replace("_", " "))
    if detail:
        return f"{detail.replace('_', ' ')} {label}"
    return label


def item_text(item: Any) -> str:
    """Best spoken text for one feed item."""
    if isinstance(item, dict):
        for field in ("summary", "text", "title", "message", "description"):
            value = item.get(field)
            if value:
                return str(value).strip()
        return ""
    return str(item).strip()


class TextFeed(ABC):
    """Source of short cached summaries, one per topic."""

    def __init__(self, max_items: int = 3):
        self.max_items = max_items

    @abstractmethod
    async def get_items(self, topic: str) -> List[Any]:
        """Raw cached items for a topic. Raises UpstreamFeedError."""
        pass

    async def get_cached(self, topic: str) -> str:
        """Spoken summary for a topic, or an empty string if there is none."""
        items = await self.get_items(topic)
        return self.summarize(topic, items)

    async def close(self) -> None:
        """Release resources held by the feed."""
        pass

    def summarize(self, topic: str, items: Iterable[Any]) -> str:
        """Turn feed items into one spoken paragraph."""
        texts = [text for text in (item_text(item) for item in items) if text]
        if not texts:
            return ""
        label = topic_label(topic)
        count = len(texts)
        noun = "update" if count == 1 else "updates"
        lines = [f"There {'is' if count == 1 else 'are'} {count} {label} {noun}."]
        for index, text in enumerate(texts[: self.max_items], start=1):
            lines.append(f"{index}. {text.rstrip('.')}.")
        return " ".join(lines)
