from typing import List
from feedhub.models.items import ContentItem, NewsDocument, Rendered, utcnow, ensure_utc
from feedhub.services.database import NewsRepository, news_store, is_synthetic_link
from feedhub.tools.base_adapter import SourceAdapter

EXCERPT_LENGTH = 100
PLACEHOLDER_LINK = "#"


def news_to_content_item(doc: NewsDocument, item_id: str, slug: str, source: str) -> ContentItem:
    content = doc.content or doc.description or ""
    excerpt = doc.description or (doc.content[:EXCERPT_LENGTH] + "..." if doc.content else "")
    # Legacy documents without a publication date sort by ingestion time
    date = doc.date or doc.scraped_at or utcnow()
    link = doc.link if doc.link and not is_synthetic_link(doc.link) else PLACEHOLDER_LINK

    return ContentItem(
        id=item_id,
        title=Rendered(rendered=doc.title or ""),
        content=Rendered(rendered=content),
        excerpt=Rendered(rendered=excerpt),
        date=ensure_utc(date),
        slug=slug,
        type="news",
        source=source,
        link=link,
    )


class StoreNewsAdapter(SourceAdapter):
    name = "mongodb"
    DEFAULT_SOURCE = "MongoDB"

    def __init__(self, store: NewsRepository = None):
        self.store = store or news_store

    async def fetch_records(self) -> List[NewsDocument]:
        return await self.store.find_recent()

    def to_content_item(self, doc: NewsDocument, index: int) -> ContentItem:
        native_id = doc.id if doc.id is not None else str(index)
        return news_to_content_item(
            doc,
            item_id=f"mongo-{native_id}",
            slug=f"mongo-{index}",
            source=doc.source or self.DEFAULT_SOURCE,
        )
