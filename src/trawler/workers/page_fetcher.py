"""
Page Fetcher - Fetches URLs handed out by the frontier and stores the pages.

Outcomes per URL:
- content accepted: stored, URL becomes fetched
- HTTP error status or rejected content type/language: empty page stored
- timeout or connection error: reported and the URL released for a retry,
  until it has failed ``max_attempts`` times, then an empty page is stored
"""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.caches import BoundedMap
from ..core.frontier import UrlFrontier
from .http_client import FetchErrorKind, FetchResult, HttpClient
from .poller import ErrorHandler, PollingWorker


@dataclass
class FetchConfig:
    """Configuration for the page fetcher."""
    timeout_seconds: float = 10.0
    accept_content_types: List[str] = None
    accept_languages: List[str] = None
    collapse_whitespace: bool = True
    max_attempts: int = 3  # Transport failures before a URL is given up
    min_wait_seconds: float = 0.01
    max_wait_seconds: float = 3.0

    def __post_init__(self):
        if self.accept_content_types is None:
            self.accept_content_types = ['text/html', 'application/xhtml+xml', 'application/xml']
        if self.accept_languages is None:
            self.accept_languages = ['en']


_WHITESPACE_RUN = re.compile(r'\s\s+')


def collapse_whitespace(content: str) -> str:
    """Replace every run of two or more whitespace characters with one space."""
    return _WHITESPACE_RUN.sub(' ', content)


class PageFetcher(PollingWorker):
    """Fetch loop: frontier URL -> HTTP GET -> frontier page."""

    def __init__(self, frontier: UrlFrontier, client: HttpClient,
                 config: Optional[FetchConfig] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 content_filter: Optional[Callable[[str], str]] = None,
                 stop_event: Optional[threading.Event] = None):
        self.config = config or FetchConfig()
        super().__init__(stop_event, error_handler,
                         min_wait=self.config.min_wait_seconds,
                         max_wait=self.config.max_wait_seconds)
        self.frontier = frontier
        self.client = client
        if content_filter is None and self.config.collapse_whitespace:
            content_filter = collapse_whitespace
        self.content_filter = content_filter

        self.accepted_types = {t.lower() for t in self.config.accept_content_types}
        self.accepted_languages = {l.lower() for l in self.config.accept_languages}
        self.failures = BoundedMap(10000, name="fetch failures")

        self.stats.update({
            'pages_stored': 0,
            'empty_pages': 0,
            'released': 0,
        })

    def poll_once(self) -> Optional[List[str]]:
        url = self.frontier.get_next_url()
        if not url:
            return None

        self.logger.debug(f"Requesting {url}")
        result = self.client.get(url, timeout=self.config.timeout_seconds)
        if result.ok:
            self.check_content(result)

        if result.error_kind is not None and result.error_kind.is_transport:
            self.error_handler(url, result.error)
            attempts = self.failures.get(url, 0) + 1
            if attempts < self.config.max_attempts:
                self.failures.set(url, attempts)
                self.frontier.release_url(url)
                self.stats['released'] += 1
                return [f"{url} --> {result.error_kind.value}, released for retry"]
            self.logger.warning(f"Giving up on {url} after {attempts} attempts")

        self.failures.discard(url)
        content = ''
        if result.ok:
            content = result.text
            if self.content_filter:
                content = self.content_filter(content)
            self.stats['pages_stored'] += 1
        else:
            self.logger.info(f"{url}: {result.error}, storing empty page")
            self.stats['empty_pages'] += 1

        self.frontier.add_page(url, content)
        return [f"{url} --> {len(content)} chars"]

    def check_content(self, result: FetchResult) -> FetchResult:
        """Reject responses whose content type or language is not accepted."""
        if not self.is_accepted_content_type(result.header('Content-Type')):
            return result.fail(FetchErrorKind.CONTENT_TYPE,
                               f"Content-Type rejected: {result.header('Content-Type')}")
        if not self.is_accepted_language(result.header('Content-Language')):
            return result.fail(FetchErrorKind.LANGUAGE,
                               f"Content-Language rejected: {result.header('Content-Language')}")
        return result

    def is_accepted_content_type(self, header: Optional[str]) -> bool:
        if not header or not self.accepted_types:
            return True
        mime_type = header.split(';')[0].strip().lower()
        return not mime_type or mime_type in self.accepted_types

    def is_accepted_language(self, header: Optional[str]) -> bool:
        if not header or not self.accepted_languages:
            return True
        for tag in header.replace(' ', '').lower().split(','):
            if tag in self.accepted_languages:
                return True
            if tag.split('-')[0] in self.accepted_languages:
                return True
        return False

    def close(self):
        self.frontier.drain()
        self.client.close()
