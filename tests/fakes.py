"""Test doubles shared by the worker tests."""

from trawler.core.models import Page
from trawler.workers.http_client import FetchErrorKind, FetchResult


class FakeClient:
    """Returns queued FetchResults per URL and records every request."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.requests = []
        self.closed = False

    def get(self, url, timeout=None):
        self.requests.append(url)
        response = self.responses.get(url)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if response is None:
            return FetchResult(url=url, status_code=404).fail(FetchErrorKind.HTTP_STATUS, "HTTP 404")
        return response

    def close(self):
        self.closed = True


def ok(url, body, **headers):
    return FetchResult(url=url, status_code=200, content=body.encode('utf-8'),
                       headers=headers or {'Content-Type': 'text/html; charset=utf-8'})


def failed(url, kind, message="failed"):
    return FetchResult(url=url).fail(kind, message)


class FakeFrontier:
    """Records the calls fetch and scrape workers make on a frontier."""

    def __init__(self, urls=(), pages=()):
        self.urls = list(urls)
        self.pages = [Page(url=url, host='', content=content) for url, content in pages]
        self.stored = {}
        self.released = []
        self.scraped = []
        self.drained = 0

    def get_next_url(self):
        return self.urls.pop(0) if self.urls else None

    def add_page(self, url, content):
        self.stored[url] = content

    def release_url(self, url):
        self.released.append(url)
        self.urls.append(url)

    def get_next_page(self):
        return self.pages.pop(0) if self.pages else None

    def finished_scraping(self, url):
        self.scraped.append(url)

    def drain(self):
        self.drained += 1
        return 0
