"""
Host Fetcher - Refreshes robots.txt and status for hosts due an update.
"""

import threading
from dataclasses import dataclass
from typing import List, Optional

from ..core.host_registry import HostRegistry
from ..core.models import Host, HostStatus
from ..core.robots import RobotsPolicy, RobotsVerdict
from .http_client import FetchErrorKind, FetchResult, HttpClient
from .poller import ErrorHandler, PollingWorker


@dataclass
class HostFetchConfig:
    """Configuration for the host refresher."""
    timeout_seconds: float = 8.0
    schemes: List[str] = None  # Tried in order, next one on connection error
    min_wait_seconds: float = 1.0
    max_wait_seconds: float = 30.0

    def __post_init__(self):
        if self.schemes is None:
            self.schemes = ['https', 'http']


class HostFetcher(PollingWorker):
    """
    Refresh loop: oldest-updated host -> robots.txt -> host status.

    Status rules:
    - transport failure: ERROR, previous robots.txt kept
    - non-2xx response: empty robots.txt, OK
    - robots.txt disallows "/" for our user agent: BLOCKED
    - otherwise: OK
    EXCLUDED hosts are never refreshed. Any other status, including a
    BLOCKED set by hand, is recomputed.
    """

    def __init__(self, registry: HostRegistry, client: HttpClient,
                 robots: RobotsPolicy, config: Optional[HostFetchConfig] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 stop_event: Optional[threading.Event] = None):
        self.config = config or HostFetchConfig()
        super().__init__(stop_event, error_handler,
                         min_wait=self.config.min_wait_seconds,
                         max_wait=self.config.max_wait_seconds)
        self.registry = registry
        self.client = client
        self.robots = robots

        self.stats.update({status.value: 0 for status in HostStatus})

    def poll_once(self) -> Optional[List[str]]:
        host = self.registry.get_next_host_to_update()
        if host is None:
            return None

        if host.status is HostStatus.EXCLUDED:
            self.logger.warning(f"Skipping excluded host {host.hostname}")
            return []

        self.refresh(host)
        self.registry.update_host(host)
        self.stats[host.status.value] += 1
        return [f"{host.hostname}: {host.status.value}"]

    def refresh(self, host: Host) -> Host:
        """Fetch robots.txt for a host and set its robots text and status."""
        result = self.fetch_robots(host.hostname)

        if result.error_kind is not None and result.error_kind.is_transport:
            self.error_handler(result.url, result.error)
            host.status = HostStatus.ERROR
            return host

        if not result.ok:
            self.logger.info(f"{result.url}: {result.error}, treating as no rules")
            host.robots_txt = ''
            host.status = HostStatus.OK
            return host

        host.robots_txt = result.text
        verdict = self.robots.check(host.hostname, host.robots_txt, f"http://{host.hostname}/")
        host.status = HostStatus.BLOCKED if verdict is RobotsVerdict.DISALLOWED else HostStatus.OK
        return host

    def fetch_robots(self, hostname: str) -> FetchResult:
        result = None
        for scheme in self.config.schemes:
            url = f"{scheme}://{hostname}/robots.txt"
            self.logger.debug(f"Requesting {url}")
            result = self.client.get(url, timeout=self.config.timeout_seconds)
            if result.error_kind is not FetchErrorKind.CONNECTION:
                break
        return result

    def close(self):
        self.client.close()
