from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Literal, Union
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive timestamps (WordPress `date`, Mongo without tz_aware) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


class Rendered(BaseModel):
    rendered: str = ""


class ContentItem(BaseModel):
    """Source-agnostic item returned by every feed endpoint."""
    id: str
    title: Rendered
    excerpt: Rendered
    content: Rendered
    date: datetime
    slug: str = ""
    type: Literal["wp", "news"]
    source: str
    link: Optional[str] = None


class RawPost(BaseModel):
    """A WordPress post as served by /wp/v2/posts (projected with _fields)."""
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    date: Optional[str] = None
    slug: str = ""
    link: Optional[str] = None
    title: Rendered = Field(default_factory=Rendered)
    content: Rendered = Field(default_factory=Rendered)
    excerpt: Rendered = Field(default_factory=Rendered)
    featured_media: Optional[int] = None


class ScrapeSource(BaseModel):
    name: str
    url: str
    base: str  # Used to resolve relative links


class ScrapedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    link: str
    description: str = ""
    date: datetime = Field(default_factory=utcnow)
    source: str
    image_url: str = Field("", alias="imageUrl")


class NewsDocument(BaseModel):
    """A document of the news collection, as read back from MongoDB."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    # Legacy documents may lack any of title, link or source.
    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    # Legacy documents may lack a date; every write path sets one.
    date: Optional[datetime] = None
    source: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    scraped_at: Optional[datetime] = Field(None, alias="scrapedAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if value is not None else None

    @field_validator("source", mode="before")
    @classmethod
    def _source_or_empty(cls, value):
        return "" if value is None else value


class NewsCreate(BaseModel):
    """Body of a manual insert. Required fields are checked by the repository."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    link: Optional[str] = None
    date: Optional[datetime] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")

    @field_validator("title", "content", "description", "source", "link", "image_url", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class NewsBulkCreate(BaseModel):
    items: List[NewsCreate]


class BulkInsertResult(BaseModel):
    success: bool = True
    count: int
    inserted: List[NewsDocument]


class NewsPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[NewsDocument]
    page: int
    limit: int
    total: int
    pages: int
    has_more: bool = Field(alias="hasMore")


class ScrapeReport(BaseModel):
    scraped: int = 0
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
