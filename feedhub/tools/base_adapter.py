from abc import ABC, abstractmethod
from typing import Any, List
from feedhub.models.items import ContentItem
from feedhub.services.logger import logger

class SourceAdapter(ABC):
    name = "source"
    # Bootstrap sources only contribute when no other source returned news
    bootstrap_only = False

    @abstractmethod
    async def fetch_records(self) -> List[Any]:
        pass

    @abstractmethod
    def to_content_item(self, record: Any, index: int) -> ContentItem:
        pass

    def normalize(self, records: List[Any]) -> List[ContentItem]:
        items = []
        for index, record in enumerate(records):
            try:
                items.append(self.to_content_item(record, index))
            except ValueError as e:
                logger.warning(f"[{self.name}] Dropping record {index}: {e}")
        return items

    async def fetch_items(self) -> List[ContentItem]:
        return self.normalize(await self.fetch_records())
