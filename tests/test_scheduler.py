from __future__ import annotations

import asyncio

import pytest

from conftest import at
from feedhub.config import settings
from feedhub.errors import ScrapeError, StoreError
from feedhub.models.items import ScrapedItem
from feedhub.services.scheduler import ScrapeScheduler, Timer, cron_to_interval, resolve_interval


class RecordingTimer(Timer):
    def __init__(self):
        self.repeating = []
        self.once = []
        self.cancelled = False

    def schedule_repeating(self, interval, task):
        self.repeating.append((interval, task))

    def schedule_once(self, delay, task):
        self.once.append((delay, task))

    def cancel_all(self):
        self.cancelled = True


class GatedScraper:
    def __init__(self, items=None):
        self.items = items or []
        self.calls = 0
        self.release = asyncio.Event()

    async def scrape_all(self):
        self.calls += 1
        await self.release.wait()
        return self.items


class FailingScraper:
    async def scrape_all(self):
        raise RuntimeError("parser exploded")


def _item(link: str) -> ScrapedItem:
    return ScrapedItem(title=f"Title {link}", link=link, date=at(0), source="Stadt Dortmund")


@pytest.mark.parametrize("expr, seconds", [
    ("0 */6 * * *", 6 * 3600),
    ("*/15 * * * *", 900),
    ("30 * * * *", 3600),
    ("0 3 * * *", 86400),
    ("@hourly", 3600),
])
def test_cron_to_interval(expr, seconds):
    assert cron_to_interval(expr) == seconds


@pytest.mark.parametrize("expr", ["0 0 * * 1", "0 */0 * * *", "bogus"])
def test_cron_to_interval_rejects_unsupported(expr):
    with pytest.raises(ValueError):
        cron_to_interval(expr)


def test_resolve_interval_prefers_explicit_seconds(monkeypatch):
    monkeypatch.setattr(settings, "SCRAPE_INTERVAL_SECONDS", 42.0)
    assert resolve_interval() == 42.0

    monkeypatch.setattr(settings, "SCRAPE_INTERVAL_SECONDS", None)
    monkeypatch.setattr(settings, "SCRAPE_CRON", "0 0 1 * *")
    assert resolve_interval() == 6 * 3600


def test_start_schedules_repeating_and_initial_run(store):
    timer = RecordingTimer()
    sched = ScrapeScheduler(scraper=GatedScraper(), store=store, timer=timer, interval=3600, initial_delay=10)

    sched.start()

    assert [interval for interval, _ in timer.repeating] == [3600]
    assert [delay for delay, _ in timer.once] == [10]
    assert timer.repeating[0][1] == sched.scrape_now
    sched.stop()
    assert timer.cancelled


@pytest.mark.asyncio
async def test_concurrent_scrape_now_runs_one_pass(store, collection):
    scraper = GatedScraper(items=[_item("http://a"), _item("http://b")])
    sched = ScrapeScheduler(scraper=scraper, store=store, timer=RecordingTimer())

    first = asyncio.create_task(sched.scrape_now())
    await asyncio.sleep(0)
    assert sched.state == "scraping"

    second = await sched.scrape_now()
    assert second is None

    scraper.release.set()
    report = await first

    assert scraper.calls == 1
    assert report.scraped == 2
    assert report.inserted == 2
    assert len(collection.docs) == 2
    assert sched.state == "idle"


@pytest.mark.asyncio
async def test_failed_pass_releases_latch(store):
    sched = ScrapeScheduler(scraper=FailingScraper(), store=store, timer=RecordingTimer())

    assert await sched.scrape_now() is None
    assert sched.is_scraping is False

    with pytest.raises(ScrapeError):
        await sched.scrape_now(raise_errors=True)
    assert sched.is_scraping is False


@pytest.mark.asyncio
async def test_item_upsert_failure_does_not_abort_pass(store, monkeypatch):
    scraper = GatedScraper(items=[_item("http://a"), _item("http://bad"), _item("http://c")])
    scraper.release.set()
    sched = ScrapeScheduler(scraper=scraper, store=store, timer=RecordingTimer())
    original = store.upsert_by_link

    async def flaky_upsert(item):
        if item.link == "http://bad":
            raise StoreError("write concern timeout")
        return await original(item)

    monkeypatch.setattr(store, "upsert_by_link", flaky_upsert)
    report = await sched.scrape_now()

    assert report.inserted == 2
    assert report.failed == 1


@pytest.mark.asyncio
async def test_rescraping_same_links_converges(store, collection):
    scraper = GatedScraper(items=[_item("http://a")])
    scraper.release.set()
    sched = ScrapeScheduler(scraper=scraper, store=store, timer=RecordingTimer())

    first = await sched.scrape_now()
    second = await sched.scrape_now()

    assert scraper.calls == 2
    assert len(collection.docs) == 1
    assert (first.inserted, first.duplicates) == (1, 0)
    assert (second.inserted, second.duplicates) == (0, 1)
