from typing import Any, Dict, List
from feedhub.models.items import ContentItem, NewsDocument
from feedhub.sources_config import SEED_NEWS, SEED_OUTLET
from feedhub.tools.base_adapter import SourceAdapter
from feedhub.tools.news_adapter import news_to_content_item

class SeedNewsAdapter(SourceAdapter):
    """Static demo news, used to bootstrap the feed while the store is empty."""
    name = "seed"
    bootstrap_only = True

    def __init__(self, seed: List[Dict[str, Any]] = None, outlet: str = None):
        self.seed = seed if seed is not None else SEED_NEWS
        self.outlet = outlet or SEED_OUTLET

    async def fetch_records(self) -> List[NewsDocument]:
        return [NewsDocument.model_validate({**entry, "source": self.outlet}) for entry in self.seed]

    def to_content_item(self, doc: NewsDocument, index: int) -> ContentItem:
        return news_to_content_item(
            doc,
            item_id=f"seed-{index + 1}",
            slug=f"seed-{index + 1}",
            source=self.outlet,
        )
