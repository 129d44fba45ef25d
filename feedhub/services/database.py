import asyncio
import uuid
import pydantic
from typing import Any, Dict, List, Optional, Tuple, Union
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError, DuplicateKeyError as MongoDuplicateKeyError
from feedhub.config import settings
from feedhub.errors import StoreError, ValidationError, DuplicateKeyError
from feedhub.models.items import NewsDocument, NewsCreate, ScrapedItem, utcnow, ensure_utc
from feedhub.services.logger import logger

# Manual inserts without a link get a unique placeholder so the unique index still holds.
SYNTHETIC_LINK_PREFIX = "urn:feedhub:news:"


def synthetic_link() -> str:
    return f"{SYNTHETIC_LINK_PREFIX}{uuid.uuid4().hex}"


def is_synthetic_link(link: Optional[str]) -> bool:
    return bool(link) and link.startswith(SYNTHETIC_LINK_PREFIX)


def is_new_document(doc: NewsDocument) -> bool:
    """True when the upsert that returned `doc` created it: createdAt and updatedAt come from the same write."""
    return doc.created_at is not None and doc.created_at == doc.updated_at


def to_documents(raw_docs: List[Dict[str, Any]]) -> List[NewsDocument]:
    """Validates each stored document on its own; malformed ones are logged and skipped."""
    docs = []
    for raw in raw_docs:
        try:
            docs.append(NewsDocument.model_validate(raw))
        except pydantic.ValidationError as e:
            logger.warning(f"Skipping malformed news document {raw.get('_id')}: {e.error_count()} invalid fields")
    return docs


class NewsRepository:
    def __init__(self, collection=None):
        self._client: Optional[AsyncIOMotorClient] = None
        self._collection = collection

    @property
    def collection(self):
        if self._collection is None:
            self._client = AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
            self._collection = self._client[settings.MONGODB_DB_NAME][settings.MONGODB_COLLECTION]
        return self._collection

    async def init(self):
        try:
            await self.collection.create_index([("link", ASCENDING)], unique=True, name="link_unique")
            await self.collection.create_index([("date", DESCENDING)], name="date_desc")
        except PyMongoError as e:
            raise StoreError(f"Index creation failed: {e}") from e
        logger.info(f"News store initialized ({settings.MONGODB_DB_NAME}.{settings.MONGODB_COLLECTION})")

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None
            self._collection = None

    async def find_recent(self, limit: Optional[int] = None) -> List[NewsDocument]:
        """Documents sorted by publication date, newest first."""
        try:
            cursor = self.collection.find().sort("date", DESCENDING)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise StoreError(f"Failed to read news: {e}") from e
        return to_documents(docs)

    async def find_page(self, page: int, limit: int) -> Tuple[List[NewsDocument], int]:
        skip = (page - 1) * limit
        try:
            docs, total = await asyncio.gather(
                self.collection.find().sort("date", DESCENDING).skip(skip).limit(limit).to_list(length=limit),
                self.collection.count_documents({}),
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to read news page {page}: {e}") from e
        return to_documents(docs), total

    async def count(self) -> int:
        try:
            return await self.collection.count_documents({})
        except PyMongoError as e:
            raise StoreError(f"Failed to count news: {e}") from e

    async def upsert_by_link(self, item: Union[ScrapedItem, Dict[str, Any]]) -> NewsDocument:
        """
        Inserts the item, or overwrites the document that already owns its link.
        Refreshes scrapedAt on every call.
        """
        if isinstance(item, ScrapedItem):
            fields = item.model_dump(by_alias=True)
        else:
            fields = dict(item)
        fields["title"] = (fields.get("title") or "").strip()
        fields["link"] = (fields.get("link") or "").strip()
        if not fields["title"] or not fields["link"]:
            raise ValidationError("Missing required fields: title, link")

        now = utcnow()
        fields["scrapedAt"] = now
        fields["updatedAt"] = now
        link = fields["link"]

        try:
            doc = await self.collection.find_one_and_update(
                {"link": link},
                {"$set": fields, "$setOnInsert": {"createdAt": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError:
            # Lost an upsert race on the unique index; update the winner's document instead.
            logger.debug(f"Upsert race on {link}, retrying as update")
            doc = await self._update_existing(link, fields)
        except PyMongoError as e:
            raise StoreError(f"Upsert failed for {link}: {e}") from e
        return NewsDocument.model_validate(doc)

    async def _update_existing(self, link: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        try:
            doc = await self.collection.find_one_and_update(
                {"link": link},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError(link) from e
        except PyMongoError as e:
            raise StoreError(f"Upsert failed for {link}: {e}") from e
        if doc is None:
            raise DuplicateKeyError(link)
        return doc

    def _prepare_manual(self, payload: NewsCreate) -> Dict[str, Any]:
        missing = [name for name in ("title", "source") if not getattr(payload, name)]
        if not payload.content and not payload.description:
            missing.append("content")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        now = utcnow()
        return {
            "title": payload.title,
            "link": payload.link or synthetic_link(),
            "description": payload.description,
            "content": payload.content,
            "date": ensure_utc(payload.date) if payload.date else now,
            "source": payload.source,
            "imageUrl": payload.image_url,
            "scrapedAt": now,
            "createdAt": now,
            "updatedAt": now,
        }

    async def insert(self, payload: NewsCreate) -> NewsDocument:
        """Direct insert of a manually submitted item."""
        doc = self._prepare_manual(payload)
        try:
            result = await self.collection.insert_one(doc)
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError(f"link {doc['link']}") from e
        except PyMongoError as e:
            raise StoreError(f"Insert failed: {e}") from e
        doc["_id"] = result.inserted_id
        return NewsDocument.model_validate(doc)

    async def insert_many(self, payloads: List[NewsCreate]) -> List[NewsDocument]:
        """Bulk manual insert. Validates everything up front; items whose link exists are skipped."""
        docs = [self._prepare_manual(p) for p in payloads]
        inserted = []
        for doc in docs:
            try:
                result = await self.collection.insert_one(doc)
            except MongoDuplicateKeyError:
                logger.info(f"Skipping duplicate news item {doc['link']}")
                continue
            except PyMongoError as e:
                raise StoreError(f"Insert failed: {e}") from e
            doc["_id"] = result.inserted_id
            inserted.append(NewsDocument.model_validate(doc))
        return inserted


news_store = NewsRepository()
