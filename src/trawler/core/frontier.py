"""
URL Frontier - Selects the next URL to fetch and drives the page lifecycle.
File: src/trawler/core/frontier.py

Scheduling:
- hosts are served round-robin from a small rotating queue (HostRotation)
- each host hands out URLs from a batch claimed from the store
- politeness is a budget per full rotation of the queue, not per request
- robots.txt is checked for every URL before it is handed out
"""
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, List, Optional, Tuple
import gzip
import logging
import time

from .caches import BoundedSet
from .host_registry import HostRegistry
from .models import Host, HostStatus, Page, UrlStatus, host_of
from .robots import RobotsPolicy
from ..storage.base import PageStore


@dataclass
class FrontierConfig:
    """Configuration for the URL frontier"""
    batch_size: int = 8  # Hosts in rotation, and URLs claimed per host
    max_batch_size: int = 32
    auto_increase_batch_size: bool = True
    crawl_delay_seconds: float = 10.0  # Minimum duration of one full rotation
    max_pending_writes: int = 1
    max_known_urls: int = 10000
    preload_known_urls: bool = False
    user_agent: str = "Trawler/1.0"


class HostRotation:
    """
    Round-robin queue of hosts with rotation-wide pacing.

    Every ``batch_size`` dequeues make one rotation. When a rotation that
    handed out at least one URL finishes faster than ``crawl_delay``, the
    remainder is slept off and the queue may grow by one host.

    An empty answer from the registry is remembered until the rotation
    ends, unless the queue runs dry.
    """

    def __init__(self, registry: HostRegistry, batch_size: int, max_batch_size: int,
                 crawl_delay: float, auto_increase: bool = True,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], object] = time.sleep):
        self.registry = registry
        self.batch_size = max(1, batch_size)
        self.max_batch_size = max(self.batch_size, max_batch_size)
        self.crawl_delay = crawl_delay
        self.auto_increase = auto_increase
        self.clock = clock
        self.sleep = sleep
        self.logger = logging.getLogger(self.__class__.__name__)

        self.hosts: Deque[Host] = deque()
        self.iterations = 0  # Dequeues in the current rotation
        self.cycle_started_at = clock()
        self.served = False
        self.registry_exhausted = False

    def __len__(self) -> int:
        return len(self.hosts)

    def __contains__(self, hostname: str) -> bool:
        return any(host.hostname == hostname for host in self.hosts)

    def next_host(self) -> Optional[Host]:
        """Dequeue the next host and move it to the back of the queue."""
        if self.iterations >= self.batch_size:
            self._end_cycle()

        self._fill()
        if not self.hosts:
            return None

        host = self.hosts.popleft()
        self.hosts.append(host)
        self.iterations += 1
        return host

    def mark_served(self):
        """Record that a URL was handed out during the current rotation."""
        self.served = True

    def remove(self, hostname: str):
        self.hosts = deque(host for host in self.hosts if host.hostname != hostname)

    def _fill(self):
        if self.registry_exhausted and self.hosts:
            return
        self.registry_exhausted = False

        for _ in range(self.batch_size - len(self.hosts)):
            host = self.registry.get_next_host_to_crawl()
            if host is None:
                self.registry_exhausted = True
                break
            if host.hostname in self:
                continue
            self.hosts.append(host)

    def _end_cycle(self):
        if self.served:
            remaining = self.crawl_delay - (self.clock() - self.cycle_started_at)
            if remaining > 0:
                self.logger.debug(f"Rotation of {self.batch_size} finished early, "
                                  f"sleeping {remaining:.2f}s")
                self.sleep(remaining)
                if self.auto_increase and self.batch_size < self.max_batch_size:
                    self.batch_size += 1
                    self.logger.info(f"Batch size increased to {self.batch_size}")

        self.iterations = 0
        self.cycle_started_at = self.clock()
        self.served = False
        self.registry_exhausted = False


class UrlFrontier:
    """
    The crawl frontier: URL selection, discovery intake and page hand-off.

    All in-memory state (rotation, per-host batches, pending writes, known
    URLs) can be rebuilt from the store. ``drain()`` must be called on
    shutdown so buffered discoveries are written and claimed-but-unserved
    URLs are returned to the store.
    """

    def __init__(self, store: PageStore, registry: HostRegistry,
                 config: Optional[FrontierConfig] = None,
                 robots: Optional[RobotsPolicy] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], object] = time.sleep):
        self.store = store
        self.registry = registry
        self.config = config or FrontierConfig()
        self.robots = robots or RobotsPolicy(user_agent=self.config.user_agent)
        self.logger = logging.getLogger(self.__class__.__name__)

        self.rotation = HostRotation(
            registry,
            batch_size=self.config.batch_size,
            max_batch_size=self.config.max_batch_size,
            crawl_delay=self.config.crawl_delay_seconds,
            auto_increase=self.config.auto_increase_batch_size,
            clock=clock,
            sleep=sleep,
        )
        self.url_batches: Dict[str, List[str]] = {}
        self.pending_writes: List[Tuple[str, str]] = []
        self.known_urls = BoundedSet(self.config.max_known_urls, name="known URLs")

        self.stats = {
            'urls_served': 0,
            'urls_blocked': 0,
            'urls_added': 0,
            'hosts_done': 0,
            'pages_added': 0,
            'pages_claimed': 0,
        }

        if self.config.preload_known_urls:
            self._preload_known_urls()

    def _preload_known_urls(self):
        urls = self.store.sample_urls(self.config.max_known_urls // 2)
        self.known_urls.update(urls)
        self.logger.info(f"Preloaded {len(urls)} known URLs")

    # Fetch path

    def get_next_url(self) -> str:
        """
        Get the next URL to fetch.

        Returns:
            URL, or an empty string when there is no work
        """
        while True:
            host = self.rotation.next_host()
            if host is None:
                return ''

            while True:
                if not self.url_batches.get(host.hostname) and not self._refresh_host(host):
                    self._drop_host(host.hostname)
                    break

                url = self._next_url_for_host(host.hostname)
                if url is None:
                    self._retire_host(host.hostname)
                    break

                verdict = self.robots.check(host.hostname, host.robots_txt, url)
                if not verdict.may_fetch:
                    self._set_blocked(url)
                    continue

                self.rotation.mark_served()
                self.stats['urls_served'] += 1
                return url

    def _next_url_for_host(self, hostname: str) -> Optional[str]:
        batch = self.url_batches.get(hostname)
        if not batch:
            batch = self._load_url_batch(hostname)
        if not batch:
            return None
        return batch.pop(0)

    def _load_url_batch(self, hostname: str) -> List[str]:
        limit = self.rotation.batch_size
        urls = self.store.find_new_urls(hostname, limit)
        if not urls and any(host == hostname for _, host in self.pending_writes):
            self.flush()
            urls = self.store.find_new_urls(hostname, limit)

        if urls:
            self.store.set_urls_status(urls, UrlStatus.FETCHING, from_status=UrlStatus.NEW)
            self.url_batches[hostname] = urls
        else:
            self.url_batches.pop(hostname, None)
        return urls

    def _refresh_host(self, host: Host) -> bool:
        """
        Re-read a rotating host before claiming its next URL batch.

        Returns:
            False if the host is no longer crawlable
        """
        current = self.registry.find_host(host.hostname)
        if current is None or current.status is not HostStatus.OK:
            status = current.status.value if current and current.status else None
            self.logger.info(f"Host {host.hostname} is {status}, leaving rotation")
            return False

        host.status = current.status
        host.robots_txt = current.robots_txt
        return True

    def _drop_host(self, hostname: str):
        self.rotation.remove(hostname)
        self.url_batches.pop(hostname, None)

    def _retire_host(self, hostname: str):
        self.rotation.remove(hostname)
        self.url_batches.pop(hostname, None)
        self.registry.mark_done(hostname)
        self.stats['hosts_done'] += 1

    def _set_blocked(self, url: str):
        self.store.set_urls_status([url], UrlStatus.BLOCKED, from_status=UrlStatus.FETCHING)
        self.stats['urls_blocked'] += 1
        self.logger.info(f"Blocked by robots.txt: {url}")

    def add_page(self, url: str, content: str) -> bool:
        """
        Store fetched content and advance the URL to fetched.

        Returns:
            True if exactly one fetching record was updated
        """
        compressed = gzip.compress(content.encode('utf-8', errors='replace'))
        stored = self.store.store_content(url, compressed)
        if stored:
            self.stats['pages_added'] += 1
        else:
            self.logger.warning(f"Page not stored, URL is not being fetched: {url}")
        return stored

    def release_url(self, url: str):
        """Return a URL whose fetch failed to new so it is retried later."""
        self.store.set_urls_status([url], UrlStatus.NEW, from_status=UrlStatus.FETCHING)

    # Scrape path

    def get_next_page(self) -> Optional[Page]:
        """Claim one fetched page for scraping."""
        record = self.store.claim_fetched()
        if record is None:
            return None

        content = ''
        if record.content:
            content = gzip.decompress(record.content).decode('utf-8', errors='replace')

        self.known_urls.add(record.url)
        self.stats['pages_claimed'] += 1
        return Page(url=record.url, host=record.host, content=content)

    def finished_scraping(self, url: str):
        self.store.finish_scraping(url)

    def add_urls(self, urls: Iterable[str]) -> int:
        """
        Queue discovered URLs for insertion.

        Returns:
            Number of URLs not seen before by this frontier
        """
        new_count = 0
        seen = set()
        for url in urls:
            if url in seen or url in self.known_urls:
                continue
            seen.add(url)

            host = host_of(url)
            if not host:
                self.logger.debug(f"Skipping URL without host: {url}")
                continue

            self.registry.add_host(host)
            self.pending_writes.append((url, host))
            self.known_urls.add(url)
            new_count += 1

        if len(self.pending_writes) >= self.config.max_pending_writes:
            self.flush()

        self.stats['urls_added'] += new_count
        return new_count

    def flush(self) -> int:
        """Write buffered URL inserts. Returns the number of records sent."""
        if not self.pending_writes:
            return 0
        pending, self.pending_writes = self.pending_writes, []
        self.store.insert_urls(pending)
        return len(pending)

    # Lifecycle

    def drain(self) -> int:
        """
        Flush pending writes and return unserved batch URLs to new.

        Returns:
            Number of URLs released
        """
        flushed = self.flush()
        unserved = [url for batch in self.url_batches.values() for url in batch]
        if unserved:
            self.store.set_urls_status(unserved, UrlStatus.NEW, from_status=UrlStatus.FETCHING)
        self.url_batches.clear()

        self.logger.info(f"Drained frontier: {flushed} pending URLs written, "
                         f"{len(unserved)} URLs released")
        return len(unserved)

    def recover(self) -> Tuple[int, int]:
        """
        Reset records left in flight by a stopped process.

        Returns:
            (fetching reset to new, scraping reset to fetched)
        """
        fetching = self.store.reset_status(UrlStatus.FETCHING, UrlStatus.NEW)
        scraping = self.store.reset_status(UrlStatus.SCRAPING, UrlStatus.FETCHED)
        self.logger.info(f"Recovered {fetching} fetching and {scraping} scraping records")
        return fetching, scraping

    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        return self.store.status_counts()
