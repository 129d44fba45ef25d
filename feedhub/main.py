import asyncio
import sys
from feedhub.services.database import news_store
from feedhub.services.scheduler import scheduler
from feedhub.services.logger import logger

async def run_once():
    """One scrape-and-upsert pass, outside of the API process."""
    await news_store.init()
    try:
        report = await scheduler.scrape_now(raise_errors=True)
        if report:
            logger.info(f"Scraped {report.scraped}, inserted {report.inserted}, duplicates {report.duplicates}, failed {report.failed}")
    finally:
        news_store.close()

def main():
    try:
        asyncio.run(run_once())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
