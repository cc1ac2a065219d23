"""
Store interfaces consumed by the registry, the frontier and the scrapers.

Implementations must provide:
- filtered reads with sort and limit
- an atomic claim of a single record
- best-effort batched writes, where a duplicate key counts as success
- grouped counts for reporting

Methods documented as best-effort may drop individual writes that conflict,
but must raise StoreError when the store itself is unreachable.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.models import Host, HostStatus, UrlRecord, UrlStatus


class StoreError(Exception):
    """Raised when the backing store cannot be reached or used."""
    pass


class HostStore(ABC):
    """Collection of host records keyed by hostname."""

    @abstractmethod
    def find_due_hosts(self, cutoff: float, limit: int) -> List[Host]:
        """OK hosts never fetched or last fetched before ``cutoff``, oldest first."""

    @abstractmethod
    def stamp_fetched(self, hostnames: Sequence[str], when: float) -> None:
        """Best-effort: set ``last_fetched_at`` for the given hosts."""

    @abstractmethod
    def insert_host(self, hostname: str, status: HostStatus) -> bool:
        """Insert if absent. Returns True when a new record was created."""

    @abstractmethod
    def find_host_to_update(self, cutoff: float) -> Optional[Host]:
        """Oldest-updated non-excluded host not updated since ``cutoff``."""

    @abstractmethod
    def update_host(self, host: Host, when: float) -> bool:
        """Persist robots text and status, stamping ``last_updated_at``."""

    @abstractmethod
    def set_status(self, hostname: str, status: HostStatus, when: float) -> bool:
        """Change a host's status, stamping ``last_updated_at``."""

    @abstractmethod
    def find_host(self, hostname: str) -> Optional[Host]:
        pass

    @abstractmethod
    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        pass


class PageStore(ABC):
    """Collection of URL records keyed by URL."""

    @abstractmethod
    def insert_urls(self, records: Iterable[Tuple[str, str]]) -> None:
        """Best-effort insert-if-absent of (url, host) pairs."""

    @abstractmethod
    def find_new_urls(self, host: str, limit: int) -> List[str]:
        """URLs of ``host`` with no status, in store order."""

    @abstractmethod
    def set_urls_status(self, urls: Sequence[str], status: UrlStatus,
                        from_status: UrlStatus) -> None:
        """Best-effort compare-and-set of the status of each URL."""

    @abstractmethod
    def store_content(self, url: str, content: bytes) -> bool:
        """Move a fetching URL to fetched with its content. True if one record changed."""

    @abstractmethod
    def claim_fetched(self) -> Optional[UrlRecord]:
        """Atomically move one fetched record to scraping and return it."""

    @abstractmethod
    def finish_scraping(self, url: str) -> None:
        """Best-effort: mark a scraping record scraped and drop its content."""

    @abstractmethod
    def reset_status(self, from_status: UrlStatus, to_status: UrlStatus) -> int:
        """Move every record in ``from_status`` to ``to_status``. Returns the count."""

    @abstractmethod
    def sample_urls(self, limit: int) -> List[str]:
        pass

    @abstractmethod
    def find_record(self, url: str) -> Optional[UrlRecord]:
        pass

    @abstractmethod
    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        pass


class StructuredDataStore(ABC):
    """Content-addressed collection of extracted structured-data documents."""

    @abstractmethod
    def upsert_documents(self, url: str, documents: Sequence[Dict[str, Any]]) -> int:
        """Upsert documents keyed by their ``_digest``. Returns the number written."""

    @abstractmethod
    def item_type_counts(self) -> List[Tuple[str, int]]:
        pass
