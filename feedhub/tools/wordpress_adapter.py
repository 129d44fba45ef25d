from typing import List
from feedhub.models.items import ContentItem, RawPost, Rendered, parse_timestamp
from feedhub.services.wordpress import WordPressClient, wordpress
from feedhub.tools.base_adapter import SourceAdapter

class WordPressAdapter(SourceAdapter):
    name = "wordpress"

    def __init__(self, client: WordPressClient = None):
        self.client = client or wordpress

    async def fetch_records(self) -> List[RawPost]:
        return await self.client.fetch_posts()

    def to_content_item(self, post: RawPost, index: int) -> ContentItem:
        date = parse_timestamp(post.date)
        if date is None:
            raise ValueError(f"post {post.id} has no parseable date ({post.date!r})")

        return ContentItem(
            id=f"wp-{post.id}",
            # Upstream already wraps these in {rendered}
            title=Rendered(rendered=post.title.rendered),
            content=Rendered(rendered=post.content.rendered),
            excerpt=Rendered(rendered=post.excerpt.rendered),
            date=date,
            slug=post.slug,
            type="wp",
            source="WordPress",
            link=post.link,
        )
