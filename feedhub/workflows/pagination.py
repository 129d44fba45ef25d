import math
from typing import Any, Optional
from feedhub.config import settings
from feedhub.models.items import NewsPage
from feedhub.services.database import NewsRepository, news_store


def clamp_positive(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """Absent -> default; non-numeric or < 1 -> 1; above maximum -> maximum."""
    if value is None or value == "":
        number = default
    else:
        try:
            number = int(value)
        except (TypeError, ValueError):
            number = 1
    number = max(1, number)
    if maximum is not None:
        number = min(number, maximum)
    return number


class Paginator:
    def __init__(self, store: NewsRepository = None, default_limit: int = None, max_limit: int = None):
        self.store = store or news_store
        self.default_limit = default_limit or settings.PAGE_LIMIT_DEFAULT
        self.max_limit = max_limit or settings.PAGE_LIMIT_MAX

    async def get_page(self, page: Any = 1, limit: Any = None) -> NewsPage:
        page = clamp_positive(page, 1)
        limit = clamp_positive(limit, self.default_limit, self.max_limit)

        items, total = await self.store.find_page(page, limit)
        return NewsPage(
            items=items,
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
            has_more=page * limit < total,
        )


paginator = Paginator()
