import httpx
from typing import List, Tuple
from bs4 import BeautifulSoup
from feedhub.config import settings
from feedhub.errors import ScrapeSourceError
from feedhub.models.items import ScrapedItem, ScrapeSource
from feedhub.services.logger import logger
from feedhub.sources_config import DEFAULT_SCRAPE_SOURCES, BROWSER_USER_AGENT
from feedhub.tools.extractors import ExtractionStrategy, DEFAULT_STRATEGIES


class NewsScraper:
    def __init__(
        self,
        sources: List[ScrapeSource] = None,
        strategies: List[ExtractionStrategy] = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.sources = sources if sources is not None else DEFAULT_SCRAPE_SOURCES
        self.strategies = strategies or DEFAULT_STRATEGIES
        self.timeout = timeout if timeout is not None else settings.SCRAPE_TIMEOUT
        self.transport = transport

    async def scrape_all(self) -> List[ScrapedItem]:
        """
        Scrapes every configured source and returns the de-duplicated items.
        A failing source is logged and contributes nothing; this never raises.
        """
        all_items: List[ScrapedItem] = []
        headers = {"User-Agent": BROWSER_USER_AGENT}

        async with httpx.AsyncClient(headers=headers, timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
            for source in self.sources:
                try:
                    logger.info(f"Scraping {source.name}...")
                    items = await self.scrape_source(client, source)
                    all_items.extend(items)
                except ScrapeSourceError as e:
                    logger.error(f"Error scraping {source.name}: {e.details}")
                except Exception as e:
                    logger.exception(f"Unexpected error scraping {source.name}: {e}")

        items = self.dedupe(all_items)
        logger.info(f"Scrape finished: {len(items)} unique items from {len(self.sources)} sources")
        return items

    async def preview(self, limit: int = 10) -> Tuple[int, List[ScrapedItem]]:
        """Runs a scrape without persisting; returns the total count and the first `limit` items."""
        items = await self.scrape_all()
        return len(items), items[:limit]

    async def scrape_source(self, client: httpx.AsyncClient, source: ScrapeSource) -> List[ScrapedItem]:
        html = await self._fetch_html(client, source)
        soup = BeautifulSoup(html, "html.parser")
        return self.extract(soup, source)

    async def _fetch_html(self, client: httpx.AsyncClient, source: ScrapeSource) -> str:
        try:
            resp = await client.get(source.url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ScrapeSourceError(f"{source.url} responded {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ScrapeSourceError(f"{source.url} unreachable: {e!r}") from e
        return resp.text

    def extract(self, soup: BeautifulSoup, source: ScrapeSource) -> List[ScrapedItem]:
        for strategy in self.strategies:
            items = strategy.extract(soup, source)
            if items:
                logger.info(f"{source.name}: Found {len(items)} items ({strategy.name})")
                return items
        logger.warning(f"{source.name}: no items matched any extraction strategy")
        return []

    @staticmethod
    def dedupe(items: List[ScrapedItem]) -> List[ScrapedItem]:
        seen = set()
        unique = []
        for item in items:
            key = item.link.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique


scraper = NewsScraper()
