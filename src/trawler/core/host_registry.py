"""
Host Registry - Owns host records and hands out hosts due for crawl or refresh.
File: src/trawler/core/host_registry.py
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging
import time

from .caches import BoundedSet
from .models import Host, HostStatus
from ..storage.base import HostStore


@dataclass
class HostRegistryConfig:
    """Configuration for the host registry"""
    crawl_delay_seconds: float = 20.0  # Minimum gap between two batches of the same host
    host_refresh_period_seconds: float = 86400.0  # Refetch robots.txt once a day
    max_known_hosts: int = 4000
    batch_size: int = 100


class HostRegistry:
    """
    Hands out crawl-eligible hosts in batches and registers new ones.

    A batch of hosts is read from the store and stamped with
    ``last_fetched_at`` so that other registries skip it until the crawl
    delay has passed. The stamp is best-effort: two registries may both
    serve the same host, which only costs a duplicate fetch.
    """

    def __init__(self, store: HostStore, config: Optional[HostRegistryConfig] = None,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.config = config or HostRegistryConfig()
        self.clock = clock
        self.logger = logging.getLogger(self.__class__.__name__)

        self.batch: List[Host] = []
        self.known_hosts = BoundedSet(self.config.max_known_hosts, name="known hosts")

        self.stats = {
            'batches_loaded': 0,
            'hosts_served': 0,
            'hosts_added': 0,
        }

    def get_next_host_to_crawl(self) -> Optional[Host]:
        """
        Get the next host due for crawling.

        Returns:
            Host, or None when no host is due
        """
        if not self.batch:
            self._load_batch()

        if not self.batch:
            return None

        self.stats['hosts_served'] += 1
        return self.batch.pop()

    def _load_batch(self):
        now = self.clock()
        cutoff = now - self.config.crawl_delay_seconds
        hosts = self.store.find_due_hosts(cutoff, self.config.batch_size)
        if not hosts:
            return

        self.store.stamp_fetched([host.hostname for host in hosts], now)
        for host in hosts:
            host.last_fetched_at = now

        self.batch = hosts
        self.stats['batches_loaded'] += 1
        self.logger.debug(f"Loaded {len(hosts)} hosts to crawl")

    def add_host(self, hostname: str) -> bool:
        """
        Register a hostname if it is not already known.

        Returns:
            True if a new host record was created
        """
        if hostname in self.known_hosts:
            return False

        inserted = self.store.insert_host(hostname, HostStatus.OK)
        self.known_hosts.add(hostname)

        if inserted:
            self.stats['hosts_added'] += 1
            self.logger.info(f"New host: {hostname}")
        return inserted

    def get_next_host_to_update(self) -> Optional[Host]:
        """Get the host whose robots.txt is the most overdue for a refresh."""
        cutoff = self.clock() - self.config.host_refresh_period_seconds
        return self.store.find_host_to_update(cutoff)

    def update_host(self, host: Host) -> bool:
        """Persist a host's robots.txt and status after a refresh."""
        now = self.clock()
        host.last_updated_at = now
        return self.store.update_host(host, now)

    def mark_done(self, hostname: str) -> bool:
        """Mark a host whose URL backlog is exhausted."""
        self.batch = [host for host in self.batch if host.hostname != hostname]
        changed = self.store.set_status(hostname, HostStatus.DONE, self.clock())
        if changed:
            self.logger.info(f"Host done: {hostname}")
        return changed

    def set_status(self, hostname: str, status: HostStatus) -> bool:
        """Administrative status change. Returns False for an unknown host."""
        changed = self.store.set_status(hostname, status, self.clock())
        if changed:
            self.logger.info(f"Host {hostname} set to {status.value}")
        else:
            self.logger.warning(f"Unknown host: {hostname}")
        return changed

    def find_host(self, hostname: str) -> Optional[Host]:
        return self.store.find_host(hostname)

    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        return self.store.status_counts()
