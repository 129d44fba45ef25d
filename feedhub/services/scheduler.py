import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional
from feedhub.config import settings
from feedhub.errors import DuplicateKeyError, FeedHubError, ScrapeError
from feedhub.models.items import ScrapeReport
from feedhub.services.database import NewsRepository, news_store, is_new_document
from feedhub.services.logger import logger
from feedhub.tools.scraper import NewsScraper, scraper as default_scraper

Task = Callable[[], Awaitable[object]]

DEFAULT_INTERVAL = 6 * 3600
CRON_ALIASES = {
    "@hourly": 3600,
    "@daily": 86400,
    "@midnight": 86400,
    "@weekly": 7 * 86400,
}


def cron_to_interval(expr: str) -> float:
    """
    Translates the cron shapes we use into a fixed interval in seconds:
    `*/N * * * *`, `M */N * * *`, `M * * * *`, `M H * * *` and the @ aliases.
    """
    expr = expr.strip()
    if expr in CRON_ALIASES:
        return CRON_ALIASES[expr]

    fields = expr.split()
    if len(fields) != 5:
        raise ValueError(f"Expected 5 cron fields, got {len(fields)}: {expr!r}")
    minute, hour, day, month, weekday = fields
    if (day, month, weekday) != ("*", "*", "*"):
        raise ValueError(f"Only minute/hour cron fields are supported: {expr!r}")

    if hour == "*":
        if minute == "*":
            return 60
        if minute.startswith("*/") and minute[2:].isdigit() and int(minute[2:]) > 0:
            return int(minute[2:]) * 60
        if minute.isdigit():
            return 3600
    elif minute.isdigit():
        if hour.startswith("*/") and hour[2:].isdigit() and int(hour[2:]) > 0:
            return int(hour[2:]) * 3600
        if hour.isdigit():
            return 86400
    raise ValueError(f"Unsupported cron expression: {expr!r}")


def resolve_interval() -> float:
    if settings.SCRAPE_INTERVAL_SECONDS:
        return settings.SCRAPE_INTERVAL_SECONDS
    try:
        return cron_to_interval(settings.SCRAPE_CRON)
    except ValueError as e:
        logger.warning(f"{e}; falling back to every {DEFAULT_INTERVAL // 3600} hours")
        return DEFAULT_INTERVAL


class Timer(ABC):
    @abstractmethod
    def schedule_repeating(self, interval: float, task: Task) -> None:
        pass

    @abstractmethod
    def schedule_once(self, delay: float, task: Task) -> None:
        pass

    @abstractmethod
    def cancel_all(self) -> None:
        pass


class AsyncioTimer(Timer):
    """Runs tasks on the current event loop; must be used from inside a running loop."""

    def __init__(self):
        self._tasks: List[asyncio.Task] = []

    def schedule_repeating(self, interval: float, task: Task) -> None:
        self._tasks.append(asyncio.create_task(self._repeat(interval, task)))

    def schedule_once(self, delay: float, task: Task) -> None:
        self._tasks.append(asyncio.create_task(self._once(delay, task)))

    def cancel_all(self) -> None:
        for t in self._tasks:
            t.cancel()
        self._tasks.clear()

    async def _once(self, delay: float, task: Task) -> None:
        await asyncio.sleep(delay)
        await self._run(task)

    async def _repeat(self, interval: float, task: Task) -> None:
        while True:
            await asyncio.sleep(interval)
            await self._run(task)

    async def _run(self, task: Task) -> None:
        try:
            await task()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Scheduled task failed: {e}")


class ScrapeScheduler:
    def __init__(
        self,
        scraper: NewsScraper = None,
        store: NewsRepository = None,
        timer: Timer = None,
        interval: float = None,
        initial_delay: float = None,
    ):
        self.scraper = scraper or default_scraper
        self.store = store or news_store
        self.timer = timer or AsyncioTimer()
        self.interval = interval
        self.initial_delay = initial_delay if initial_delay is not None else settings.SCRAPE_INITIAL_DELAY
        self.is_scraping = False

    @property
    def state(self) -> str:
        return "scraping" if self.is_scraping else "idle"

    def start(self):
        interval = self.interval or resolve_interval()
        self.timer.schedule_repeating(interval, self.scrape_now)
        # First pass is delayed so it does not compete with application startup
        self.timer.schedule_once(self.initial_delay, self.scrape_now)
        logger.info(f"Scheduler started: every {interval:.0f}s (cron: {settings.SCRAPE_CRON}), first run in {self.initial_delay:.0f}s")

    def stop(self):
        self.timer.cancel_all()
        logger.info("Scheduler stopped")

    async def scrape_now(self, raise_errors: bool = False) -> Optional[ScrapeReport]:
        """
        Runs one scrape-and-upsert pass. Returns None without scraping if a pass
        is already in flight. With raise_errors, a failed pass raises ScrapeError
        instead of only being logged.
        """
        # Check-and-set with no await in between: atomic on a single event loop.
        if self.is_scraping:
            logger.info("Scraping already in progress, skipping...")
            return None
        self.is_scraping = True
        logger.info("Starting scrape pass...")

        try:
            items = await self.scraper.scrape_all()
            report = ScrapeReport(scraped=len(items))

            for item in items:
                try:
                    doc = await self.store.upsert_by_link(item)
                    if is_new_document(doc):
                        report.inserted += 1
                    else:
                        report.duplicates += 1
                except DuplicateKeyError:
                    report.duplicates += 1
                    logger.debug(f"Duplicate link ignored: {item.link}")
                except FeedHubError as e:
                    report.failed += 1
                    logger.error(f"DB error for item '{item.title}': {e}")

            logger.info(
                f"Scraping completed: {report.inserted} new items "
                f"({report.duplicates} duplicates, {report.failed} failed)"
            )
            return report
        except Exception as e:
            logger.error(f"Scraping failed: {e}")
            if raise_errors:
                raise ScrapeError(str(e)) from e
            return None
        finally:
            self.is_scraping = False


scheduler = ScrapeScheduler()
