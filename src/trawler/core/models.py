"""
Data Model - Records shared by the registry, the frontier and the store.
File: src/trawler/core/models.py
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class HostStatus(str, Enum):
    """Crawl status of a host. Only OK hosts are handed to the frontier."""
    OK = "ok"
    BLOCKED = "blocked"
    EXCLUDED = "excluded"
    ERROR = "error"
    DONE = "done"


class UrlStatus(str, Enum):
    """
    Lifecycle of a URL record.

    new -> fetching -> fetched -> scraping -> scraped
    new | fetching -> blocked

    NEW is stored as an unset status.
    """
    NEW = "new"
    FETCHING = "fetching"
    FETCHED = "fetched"
    SCRAPING = "scraping"
    SCRAPED = "scraped"
    BLOCKED = "blocked"

    @classmethod
    def from_stored(cls, value: Optional[str]) -> "UrlStatus":
        return cls.NEW if value is None else cls(value)

    def to_stored(self) -> Optional[str]:
        return None if self is UrlStatus.NEW else self.value


@dataclass
class Host:
    """A crawlable authority and its politeness metadata."""
    hostname: str
    status: Optional[HostStatus] = HostStatus.OK
    robots_txt: Optional[str] = None
    last_fetched_at: Optional[float] = None
    last_updated_at: Optional[float] = None

    def __repr__(self) -> str:
        status = self.status.value if self.status else None
        return f"Host(hostname='{self.hostname}', status={status})"


@dataclass
class UrlRecord:
    """A stored URL, with its compressed content while awaiting scraping."""
    url: str
    host: str
    status: UrlStatus = UrlStatus.NEW
    content: Optional[bytes] = None


@dataclass
class Page:
    """A fetched page claimed for scraping."""
    url: str
    host: str
    content: str
    status: UrlStatus = UrlStatus.SCRAPING


def host_of(url: str) -> str:
    """Return the authority of a URL, lower-cased, as used for host keys."""
    return urlparse(url).netloc.lower()
