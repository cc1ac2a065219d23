"""
HTTP Client - Fetches page bytes and robots.txt for the workers.

Expected faults are reported on the result as a FetchErrorKind instead of
being raised, so a worker can decide per kind whether to retry the URL or
store an empty page.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException, Timeout
from urllib3.util.retry import Retry


@dataclass
class HttpClientConfig:
    """Configuration for the HTTP client."""
    timeout_seconds: float = 10.0
    max_retries: int = 2
    retry_backoff_factor: float = 1.0
    retry_on_status: List[int] = None
    verify_ssl: bool = True
    user_agent: str = "Trawler/1.0"
    max_content_size_mb: int = 10  # Larger bodies are rejected as TOO_LARGE
    accept_language: str = "en"

    # Connection pooling
    pool_connections: int = 10
    pool_maxsize: int = 10

    def __post_init__(self):
        """Set default retry status codes."""
        if self.retry_on_status is None:
            self.retry_on_status = [429, 502, 503, 504]


class FetchErrorKind(Enum):
    """Why a fetch did not produce usable content."""
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    TOO_LARGE = "too_large"
    CONTENT_TYPE = "content_type"
    LANGUAGE = "language"

    @property
    def is_transport(self) -> bool:
        """Transport faults are worth retrying later."""
        return self in (FetchErrorKind.TIMEOUT, FetchErrorKind.CONNECTION)


@dataclass
class FetchResult:
    """Outcome of one GET request."""
    url: str
    status_code: Optional[int] = None
    content: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)
    final_url: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[FetchErrorKind] = None
    response_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None

    @property
    def text(self) -> str:
        return self.content.decode('utf-8', errors='replace')

    def fail(self, kind: FetchErrorKind, error: str) -> "FetchResult":
        self.error_kind = kind
        self.error = error
        return self


class HttpClient:
    """A requests session with urllib3 retries and a body size limit."""

    def __init__(self, config: Optional[HttpClientConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or HttpClientConfig()
        self.session = session or self._create_session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=self.config.retry_backoff_factor,
            status_forcelist=self.config.retry_on_status,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy,
                              pool_connections=self.config.pool_connections,
                              pool_maxsize=self.config.pool_maxsize)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': self.config.accept_language,
        })
        return session

    def get(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        """
        GET a URL.

        Args:
            url: URL to fetch
            timeout: Request timeout in seconds, defaults to the configured one

        Returns:
            FetchResult; check ``error_kind`` before using ``content``
        """
        timeout = timeout if timeout is not None else self.config.timeout_seconds
        max_bytes = self.config.max_content_size_mb * 1024 * 1024
        result = FetchResult(url=url, final_url=url)
        start_time = time.time()

        try:
            response = self.session.get(
                url, timeout=timeout,
                allow_redirects=True, verify=self.config.verify_ssl, stream=True
            )
        except Timeout as e:
            result.response_time = time.time() - start_time
            return result.fail(FetchErrorKind.TIMEOUT, f"Timeout after {timeout}s: {e}")
        except RequestException as e:
            result.response_time = time.time() - start_time
            return result.fail(FetchErrorKind.CONNECTION, f"Request error: {e}")

        try:
            result.status_code = response.status_code
            result.headers = dict(response.headers)
            result.final_url = response.url

            content_length = response.headers.get('Content-Length')
            if content_length and content_length.isdigit() and int(content_length) > max_bytes:
                return result.fail(FetchErrorKind.TOO_LARGE, f"Content too large: {content_length} bytes")

            if not 200 <= response.status_code < 300:
                return result.fail(FetchErrorKind.HTTP_STATUS, f"HTTP {response.status_code}")

            chunks = []
            size = 0
            for chunk in response.iter_content(chunk_size=8192):
                chunks.append(chunk)
                size += len(chunk)
                if size > max_bytes:
                    return result.fail(FetchErrorKind.TOO_LARGE, "Content exceeded size limit")
            result.content = b''.join(chunks)
        except Timeout as e:
            return result.fail(FetchErrorKind.TIMEOUT, f"Timeout reading body: {e}")
        except RequestException as e:
            return result.fail(FetchErrorKind.CONNECTION, f"Error reading body: {e}")
        finally:
            response.close()
            result.response_time = time.time() - start_time

        return result

    def close(self):
        self.session.close()
