import asyncio
from typing import List
from feedhub.config import settings
from feedhub.models.items import ContentItem
from feedhub.services.logger import logger
from feedhub.tools.base_adapter import SourceAdapter
from feedhub.tools.wordpress_adapter import WordPressAdapter
from feedhub.tools.news_adapter import StoreNewsAdapter
from feedhub.tools.seed_adapter import SeedNewsAdapter


def default_adapters() -> List[SourceAdapter]:
    adapters: List[SourceAdapter] = [WordPressAdapter(), StoreNewsAdapter()]
    if settings.SEED_NEWS_ENABLED:
        adapters.append(SeedNewsAdapter())
    return adapters


class ContentAggregator:
    def __init__(self, adapters: List[SourceAdapter] = None):
        self.adapters = adapters if adapters is not None else default_adapters()

    async def get_combined_content(self) -> List[ContentItem]:
        """
        Fetches every source concurrently, normalizes what succeeded and returns
        one list sorted by date, newest first. A failing source contributes
        nothing; it never fails the whole call.
        """
        results = await asyncio.gather(
            *(adapter.fetch_records() for adapter in self.adapters),
            return_exceptions=True,
        )

        primary: List[ContentItem] = []
        bootstrap: List[ContentItem] = []
        for adapter, res in zip(self.adapters, results):
            if isinstance(res, BaseException):
                if isinstance(res, asyncio.CancelledError):
                    raise res
                logger.error(f"Source '{adapter.name}' failed: {res}")
                continue

            items = adapter.normalize(res)
            logger.debug(f"Source '{adapter.name}' contributed {len(items)} items")
            if adapter.bootstrap_only:
                bootstrap.extend(items)
            else:
                primary.extend(items)

        combined = list(primary)
        if not any(item.type == "news" for item in primary):
            combined.extend(bootstrap)

        combined.sort(key=lambda item: item.date, reverse=True)
        logger.info(f"Combined feed: {len(combined)} items from {len(self.adapters)} sources")
        return combined


aggregator = ContentAggregator()
