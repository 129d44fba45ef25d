"""
HTML extraction strategies for listing pages.

The scraper runs these in order and keeps the first non-empty result, so a new
page layout only needs a new strategy appended to the chain.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import urljoin
from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser
from feedhub.errors import ScrapeParseError
from feedhub.models.items import ScrapedItem, ScrapeSource, utcnow, ensure_utc
from feedhub.services.logger import logger

IGNORED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


def resolve_link(href: Optional[str], base: str) -> Optional[str]:
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(IGNORED_HREF_PREFIXES):
        return None
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base.rstrip("/") + "/", href)


def parse_date(text: Optional[str]):
    """Best-effort date parsing (ISO or German day-first). Falls back to now."""
    if not text or not text.strip():
        return utcnow()
    try:
        return ensure_utc(date_parser.parse(text.strip(), dayfirst=True, fuzzy=True))
    except (ValueError, OverflowError):
        return utcnow()


def first_text(element: Tag, selector: str) -> str:
    for match in element.select(selector):
        text = match.get_text(" ", strip=True)
        if text:
            return text
    return ""


class ExtractionStrategy(ABC):
    name = "base"

    @abstractmethod
    def extract(self, soup: BeautifulSoup, source: ScrapeSource) -> List[ScrapedItem]:
        pass


class StructuredListStrategy(ExtractionStrategy):
    """Common "news list item" shapes: article, teaser and list-item classes."""
    name = "structured"

    ITEM_SELECTOR = ".news-list-item, .teaser, article, .news-item, .item, .news"
    TITLE_SELECTOR = "h2, h3, .title, .news-title, a"
    DESCRIPTION_SELECTOR = "p, .description, .excerpt, .summary"
    DATE_SELECTOR = ".date, time, .news-date, .published"
    MIN_TITLE_LENGTH = 5
    DESCRIPTION_FALLBACK_LENGTH = 200

    def extract(self, soup: BeautifulSoup, source: ScrapeSource) -> List[ScrapedItem]:
        items = []
        for element in soup.select(self.ITEM_SELECTOR):
            try:
                item = self.parse_element(element, source)
            except ScrapeParseError as e:
                logger.warning(f"[{source.name}] Error parsing item: {e.details}")
                continue
            if item:
                items.append(item)
        return items

    def parse_element(self, element: Tag, source: ScrapeSource) -> Optional[ScrapedItem]:
        try:
            title = first_text(element, self.TITLE_SELECTOR)
            if len(title) < self.MIN_TITLE_LENGTH:
                return None

            anchor = element if element.name == "a" else element.find("a", href=True)
            link = resolve_link(anchor.get("href") if anchor else None, source.base)
            if not link:
                return None

            description = first_text(element, self.DESCRIPTION_SELECTOR)
            if not description:
                description = title[:self.DESCRIPTION_FALLBACK_LENGTH] + "..."

            image = element.find("img", src=True)
            image_url = resolve_link(image.get("src"), source.base) if image else None

            return ScrapedItem(
                title=title,
                link=link,
                description=description,
                date=parse_date(self._date_text(element)),
                source=source.name,
                image_url=image_url or "",
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ScrapeParseError(f"{type(e).__name__}: {e}") from e

    def _date_text(self, element: Tag) -> str:
        time_tag = element.find("time", attrs={"datetime": True})
        if time_tag:
            return time_tag["datetime"]
        return " ".join(m.get_text(" ", strip=True) for m in element.select(self.DATE_SELECTOR)).strip()


class AnchorFallbackStrategy(ExtractionStrategy):
    """Any link into a /news/ path with a headline-sized text."""
    name = "anchor-fallback"

    PATH_MARKER = "/news/"
    MIN_TEXT_LENGTH = 10

    def extract(self, soup: BeautifulSoup, source: ScrapeSource) -> List[ScrapedItem]:
        items = []
        for anchor in soup.find_all("a", href=True):
            title = anchor.get_text(" ", strip=True)
            href = anchor["href"]
            if len(title) <= self.MIN_TEXT_LENGTH or self.PATH_MARKER not in href:
                continue
            link = resolve_link(href, source.base)
            if not link:
                continue
            items.append(ScrapedItem(
                title=title,
                link=link,
                description=title,
                date=utcnow(),
                source=source.name,
            ))
        return items


DEFAULT_STRATEGIES: List[ExtractionStrategy] = [
    StructuredListStrategy(),
    AnchorFallbackStrategy(),
]
