import time
import httpx
from typing import Any, Callable, Dict, List, Optional
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type
from feedhub.config import settings
from feedhub.errors import UpstreamError
from feedhub.models.items import RawPost
from feedhub.services.logger import logger


class TTLCache:
    """Single-slot cache. `clock` returns seconds and is injectable for tests."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._value: Any = None
        self._stored_at: Optional[float] = None

    def get(self) -> Any:
        if self._stored_at is None:
            return None
        if self.clock() - self._stored_at >= self.ttl:
            return None
        return self._value

    def set(self, value: Any) -> None:
        self._value = value
        self._stored_at = self.clock()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None

    @property
    def is_fresh(self) -> bool:
        return self.get() is not None


class WordPressClient:
    FIELDS = "id,title,content,excerpt,date,slug,featured_media,link"

    def __init__(
        self,
        api_base: str = None,
        ttl: float = None,
        timeout: float = None,
        per_page: int = None,
        max_retries: int = None,
        clock: Callable[[], float] = time.monotonic,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.api_base = (api_base or settings.WP_API).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.WP_TIMEOUT
        self.per_page = per_page or settings.WP_PER_PAGE
        self.max_retries = max(1, max_retries or settings.WP_MAX_RETRIES)
        self.cache = TTLCache(ttl if ttl is not None else settings.WP_CACHE_TTL_SECONDS, clock=clock)
        self.transport = transport
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=8)

    @property
    def posts_url(self) -> str:
        return f"{self.api_base}/posts"

    async def fetch_posts(self) -> List[RawPost]:
        """
        Returns the upstream post collection, served from cache within the TTL.
        Failures raise UpstreamError; a stale snapshot is never returned.
        """
        cached = self.cache.get()
        if cached is not None:
            logger.debug(f"WordPress cache hit ({len(cached)} posts)")
            return cached

        payload = await self._request_posts()
        if not isinstance(payload, list):
            raise UpstreamError(f"Unexpected payload from {self.posts_url}: {type(payload).__name__}")

        try:
            posts = [RawPost.model_validate(p) for p in payload]
        except ValueError as e:
            raise UpstreamError(f"Malformed post in WordPress response: {e}") from e

        self.cache.set(posts)
        logger.info(f"Fetched {len(posts)} WordPress posts from {self.api_base}")
        return posts

    async def _request_posts(self) -> Any:
        params = {"per_page": self.per_page, "_fields": self.FIELDS}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.max_retries),
                    wait=self.retry_wait,
                    retry=retry_if_exception_type(httpx.TransportError),
                    before_sleep=lambda retry_state: logger.warning(
                        f"WordPress request failed, retrying in {retry_state.next_action.sleep} seconds... (attempt {retry_state.attempt_number})"
                    ),
                    reraise=True,
                ):
                    with attempt:
                        resp = await client.get(self.posts_url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"WordPress API responded {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"WordPress API unreachable: {e!r}") from e
        except ValueError as e:
            raise UpstreamError(f"WordPress API returned invalid JSON: {e}") from e

    async def debug_snapshot(self) -> Dict[str, Any]:
        was_cached = self.cache.is_fresh
        posts = await self.fetch_posts()
        return {
            "apiBase": self.api_base,
            "totalPosts": len(posts),
            "cached": was_cached,
            "posts": [
                {
                    "id": p.id,
                    "title": p.title.rendered,
                    "date": p.date,
                    "slug": p.slug,
                    "link": p.link,
                }
                for p in posts
            ],
        }


wordpress = WordPressClient()
