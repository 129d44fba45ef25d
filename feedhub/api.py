from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union
from fastapi import FastAPI, Body, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import pydantic

# Import services
from feedhub.config import settings
from feedhub.errors import FeedHubError, ValidationError, ScrapeInProgressError
from feedhub.models.items import (
    BulkInsertResult, ContentItem, NewsBulkCreate, NewsCreate, NewsDocument, NewsPage, utcnow,
)
from feedhub.services.database import news_store
from feedhub.services.logger import logger
from feedhub.services.scheduler import scheduler
from feedhub.services.wordpress import wordpress
from feedhub.tools.news_adapter import StoreNewsAdapter
from feedhub.tools.scraper import scraper
from feedhub.tools.seed_adapter import SeedNewsAdapter
from feedhub.tools.wordpress_adapter import WordPressAdapter
from feedhub.workflows.aggregator import aggregator
from feedhub.workflows.pagination import paginator

wp_adapter = WordPressAdapter()
store_adapter = StoreNewsAdapter()
seed_adapter = SeedNewsAdapter()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # The feed still serves WordPress content while MongoDB is down
    try:
        await news_store.init()
    except FeedHubError as e:
        logger.error(f"News store init failed: {e}")

    if settings.SCHEDULER_ENABLED:
        scheduler.start()

    yield

    # Cleanup on shutdown
    if settings.SCHEDULER_ENABLED:
        scheduler.stop()
    news_store.close()

app = FastAPI(title="FeedHub Content API", lifespan=lifespan)

# Allow CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(FeedHubError)
async def feedhub_error_handler(request: Request, exc: FeedHubError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(exc.errors())})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

@app.get("/api/health")
async def health():
    return {
        "status": "OK",
        "message": "Server is running with extended features",
        "timestamp": utcnow().isoformat(),
    }

@app.get("/api/posts", response_model=List[ContentItem])
async def get_posts():
    return await wp_adapter.fetch_items()

@app.get("/api/debug/wordpress")
async def debug_wordpress():
    return await wordpress.debug_snapshot()

@app.get("/api/content", response_model=List[ContentItem])
async def get_content():
    return await aggregator.get_combined_content()

@app.get("/api/news", response_model=Union[NewsPage, List[ContentItem]])
async def get_news(page: Optional[str] = None, limit: Optional[str] = None):
    # Query strings are clamped by the paginator rather than rejected
    if page is None and limit is None:
        return await seed_adapter.fetch_items()
    return await paginator.get_page(page, limit)

@app.post("/api/news/scrape")
async def trigger_scrape(x_scrape_key: Optional[str] = Header(None)):
    if settings.SCRAPE_KEY and x_scrape_key != settings.SCRAPE_KEY:
        return JSONResponse(status_code=403, content={"error": "Forbidden - invalid scrape key"})

    logger.info("Manual scrape triggered...")
    report = await scheduler.scrape_now(raise_errors=True)
    if report is None:
        raise ScrapeInProgressError()
    return {
        "message": "Scraping completed",
        "scraped": report.scraped,
        "inserted": report.inserted,
        "duplicates": report.duplicates,
        "failed": report.failed,
    }

@app.get("/api/news/test")
async def preview_scrape():
    count, items = await scraper.preview(limit=10)
    return {
        "message": "Test scrape completed",
        "count": count,
        "items": items,
    }

def _validate_body(model, body: Dict[str, Any]):
    try:
        return model.model_validate(body)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e

@app.get("/api/mongo/news", response_model=List[ContentItem])
async def get_mongo_news():
    return await store_adapter.fetch_items()

@app.post("/api/mongo/news/insert", status_code=201, response_model=Union[BulkInsertResult, NewsDocument])
@app.post("/api/mongo/news", status_code=201, response_model=Union[BulkInsertResult, NewsDocument])
async def insert_news(body: Dict[str, Any] = Body(...)):
    if "items" in body:
        bulk = _validate_body(NewsBulkCreate, body)
        inserted = await news_store.insert_many(bulk.items)
        logger.info(f"Inserted {len(inserted)}/{len(bulk.items)} news items")
        return BulkInsertResult(count=len(inserted), inserted=inserted)

    doc = await news_store.insert(_validate_body(NewsCreate, body))
    logger.info(f"Inserted news item {doc.id}: {doc.title}")
    return doc

if __name__ == "__main__":
    import uvicorn
    # log_config=None keeps the loguru interception set up in services.logger
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_config=None)
