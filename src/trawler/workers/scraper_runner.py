"""
Scraper Runner - Runs every configured scraper over each fetched page.
"""

import threading
from typing import List, Optional, Sequence

from ..core.frontier import UrlFrontier
from ..scrapers.base import Scraper
from ..storage.base import StoreError
from .poller import ErrorHandler, PollingWorker


class ScraperRunner(PollingWorker):
    """
    Scrape loop: claim a fetched page, run the scrapers, mark it scraped.

    A failing scraper is reported to the error handler and the remaining
    scrapers still run. Store failures are not caught.
    """

    min_wait = 0.1
    max_wait = 5.0

    def __init__(self, frontier: UrlFrontier, scrapers: Optional[Sequence[Scraper]] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 stop_event: Optional[threading.Event] = None,
                 min_wait: Optional[float] = None, max_wait: Optional[float] = None):
        super().__init__(stop_event, error_handler, min_wait=min_wait, max_wait=max_wait)
        self.frontier = frontier
        self.scrapers: List[Scraper] = list(scrapers or [])

        self.stats.update({
            'pages_scraped': 0,
            'empty_pages': 0,
            'scraper_errors': 0,
        })

    def add_scraper(self, scraper: Scraper) -> "ScraperRunner":
        self.scrapers.append(scraper)
        return self

    def poll_once(self) -> Optional[List[str]]:
        page = self.frontier.get_next_page()
        if page is None:
            return None

        messages = []
        if page.content:
            for scraper in self.scrapers:
                messages.append(self._run_scraper(scraper, page.url, page.content))
        else:
            self.stats['empty_pages'] += 1

        self.frontier.finished_scraping(page.url)
        self.stats['pages_scraped'] += 1
        return messages

    def _run_scraper(self, scraper: Scraper, url: str, html: str) -> str:
        try:
            return scraper.extract_from(url, html)
        except StoreError:
            raise
        except Exception as e:
            self.stats['scraper_errors'] += 1
            self.logger.debug(f"{scraper.__class__.__name__} failed on {url}", exc_info=True)
            self.error_handler(url, f"{scraper.__class__.__name__}: {e}")
            return f"Failed scraping {url}"

    def close(self):
        self.frontier.drain()
