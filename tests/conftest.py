from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from feedhub.services.database import NewsRepository
from feedhub.services.wordpress import WordPressClient

MIN_DATE = datetime.min.replace(tzinfo=timezone.utc)
T0 = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)


def at(hours: float) -> datetime:
    """Timestamp `hours` after T0."""
    return T0 + timedelta(hours=hours)


class FakeCursor:
    def __init__(self, collection: "FakeCollection", docs: List[Dict[str, Any]]):
        self._collection = collection
        self._docs = docs
        self._skip = 0
        self._limit: Optional[int] = None

    def sort(self, key: str, direction: int):
        present = [d for d in self._docs if d.get(key) is not None]
        missing = [d for d in self._docs if d.get(key) is None]
        present.sort(key=lambda d: d[key], reverse=direction < 0)
        self._docs = present + missing if direction < 0 else missing + present
        return self

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    async def to_list(self, length: Optional[int] = None):
        self._collection.check_available()
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for a motor collection with a unique index on `link`."""

    def __init__(self, unique_fields=("link",)):
        self.docs: List[Dict[str, Any]] = []
        self.unique_fields = set(unique_fields)
        self.indexes: List[str] = []
        self.available = True
        self.upsert_race_links: set = set()

    def check_available(self):
        if not self.available:
            raise ServerSelectionTimeoutError("fake mongo is down")

    def _match(self, flt: Dict[str, Any]):
        for doc in self.docs:
            if all(doc.get(k) == v for k, v in flt.items()):
                return doc
        return None

    def _check_unique(self, doc: Dict[str, Any], ignore=None):
        for field in self.unique_fields:
            for other in self.docs:
                if other is not ignore and field in doc and other.get(field) == doc[field]:
                    raise DuplicateKeyError(f"E11000 duplicate key error: {field}", code=11000)

    async def create_index(self, keys, unique=False, name=None):
        self.check_available()
        self.indexes.append(name)
        return name

    def find(self, flt: Optional[Dict[str, Any]] = None):
        flt = flt or {}
        return FakeCursor(self, [d for d in self.docs if all(d.get(k) == v for k, v in flt.items())])

    async def count_documents(self, flt: Dict[str, Any]):
        self.check_available()
        return len([d for d in self.docs if all(d.get(k) == v for k, v in flt.items())])

    async def insert_one(self, doc: Dict[str, Any]):
        self.check_available()
        self._check_unique(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one_and_update(self, flt, update, upsert=False, return_document=ReturnDocument.BEFORE):
        self.check_available()
        link = flt.get("link")
        if upsert and link in self.upsert_race_links:
            # Simulate another process inserting the same link between our match and insert
            self.upsert_race_links.discard(link)
            self.docs.append({"_id": ObjectId(), "link": link, "title": "winner", "source": "other"})
            raise DuplicateKeyError("E11000 duplicate key error: link", code=11000)

        existing = self._match(flt)
        if existing is not None:
            before = copy.deepcopy(existing)
            existing.update(copy.deepcopy(update.get("$set", {})))
            return copy.deepcopy(existing) if return_document == ReturnDocument.AFTER else before
        if not upsert:
            return None

        new_doc = {**flt, **update.get("$setOnInsert", {}), **update.get("$set", {})}
        self._check_unique(new_doc)
        new_doc["_id"] = ObjectId()
        self.docs.append(copy.deepcopy(new_doc))
        return copy.deepcopy(new_doc) if return_document == ReturnDocument.AFTER else None


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def wp_post(post_id: int, title: str, date: str, **extra) -> Dict[str, Any]:
    post = {
        "id": post_id,
        "date": date,
        "slug": title.lower().replace(" ", "-"),
        "link": f"https://example.wordpress.com/{post_id}",
        "title": {"rendered": title},
        "content": {"rendered": f"<p>{title} body</p>"},
        "excerpt": {"rendered": f"<p>{title}</p>"},
        "featured_media": 0,
    }
    post.update(extra)
    return post


class WordPressStub:
    """Mock transport handler recording requests to the posts endpoint."""

    def __init__(self, posts=None, status: int = 200, error: Exception = None):
        self.posts = posts or []
        self.status = status
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, json=self.posts)

    def client(self, **kwargs) -> WordPressClient:
        kwargs.setdefault("max_retries", 1)
        return WordPressClient(api_base="https://wp.test/wp/v2", transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def store(collection) -> NewsRepository:
    return NewsRepository(collection=collection)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
