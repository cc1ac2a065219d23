"""
Workers Module - Poll-loop drivers, one per process role.

Components:
-----------
- PollingWorker: backoff polling loop with a cooperative stop event
- PageFetcher: fetches frontier URLs and stores the pages
- HostFetcher: refreshes robots.txt and host status
- ScraperRunner: runs scrapers over fetched pages
- HttpClient: requests session used by the fetchers
"""

from .http_client import FetchErrorKind, FetchResult, HttpClient, HttpClientConfig
from .poller import PollingWorker
from .page_fetcher import FetchConfig, PageFetcher, collapse_whitespace
from .host_fetcher import HostFetchConfig, HostFetcher
from .scraper_runner import ScraperRunner

__all__ = [
    'PollingWorker',
    'PageFetcher',
    'FetchConfig',
    'collapse_whitespace',
    'HostFetcher',
    'HostFetchConfig',
    'ScraperRunner',
    'HttpClient',
    'HttpClientConfig',
    'FetchResult',
    'FetchErrorKind',
]
