import threading

import pytest

from fakes import FakeFrontier
from trawler.scrapers.base import Scraper
from trawler.storage.base import StoreError
from trawler.workers.scraper_runner import ScraperRunner


class EchoScraper(Scraper):
    def __init__(self):
        super().__init__()
        self.seen = []

    def extract_from(self, url, html):
        self.seen.append(url)
        return f"{url}: {len(html)}"


class BrokenScraper(Scraper):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def extract_from(self, url, html):
        raise self.error


def test_failing_scraper_does_not_stop_the_others():
    frontier = FakeFrontier(pages=[("http://example.nz/", "<p>hi</p>")])
    errors = []
    echo = EchoScraper()
    runner = ScraperRunner(frontier, [BrokenScraper(ValueError("bad markup")), echo],
                           error_handler=lambda url, message: errors.append((url, message)))

    messages = runner.poll_once()

    assert messages == ["Failed scraping http://example.nz/", "http://example.nz/: 9"]
    assert errors == [("http://example.nz/", "BrokenScraper: bad markup")]
    assert frontier.scraped == ["http://example.nz/"]
    assert runner.stats['scraper_errors'] == 1


def test_empty_page_skips_scrapers():
    frontier = FakeFrontier(pages=[("http://example.nz/empty", "")])
    echo = EchoScraper()
    runner = ScraperRunner(frontier).add_scraper(echo)

    assert runner.poll_once() == []
    assert echo.seen == []
    assert frontier.scraped == ["http://example.nz/empty"]


def test_store_failure_propagates():
    frontier = FakeFrontier(pages=[("http://example.nz/", "<p>hi</p>")])
    runner = ScraperRunner(frontier, [BrokenScraper(StoreError("disk full"))])

    with pytest.raises(StoreError):
        runner.poll_once()
    assert frontier.scraped == []


def test_loop_runs_until_stopped():
    stop_event = threading.Event()
    frontier = FakeFrontier(pages=[("http://example.nz/a", "a"), ("http://example.nz/b", "b")])
    runner = ScraperRunner(frontier, [EchoScraper()], stop_event=stop_event,
                           min_wait=0.001, max_wait=0.001)

    messages = []
    for message in runner.loop():
        messages.append(message)
        if len(messages) == 2:
            runner.stop()

    assert messages == ["http://example.nz/a: 1", "http://example.nz/b: 1"]
    assert runner.get_stats()['pages_scraped'] == 2


def test_run_closes_after_loop():
    stop_event = threading.Event()
    stop_event.set()
    frontier = FakeFrontier()
    runner = ScraperRunner(frontier, stop_event=stop_event)

    runner.run()

    assert frontier.drained == 1
    assert runner.get_stats()['iterations'] == 0
