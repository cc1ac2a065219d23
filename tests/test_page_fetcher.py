from fakes import FakeClient, FakeFrontier, failed, ok
from trawler.workers.http_client import FetchErrorKind
from trawler.workers.page_fetcher import FetchConfig, PageFetcher, collapse_whitespace

URL = "http://example.nz/"


def make_fetcher(responses, urls=(URL,), **config):
    frontier = FakeFrontier(urls=urls)
    client = FakeClient(responses)
    errors = []
    fetcher = PageFetcher(frontier, client, FetchConfig(**config),
                          error_handler=lambda url, message: errors.append((url, message)))
    return fetcher, frontier, client, errors


def test_collapse_whitespace():
    assert collapse_whitespace("a  b\n\n\tc d") == "a b c d"


def test_page_is_stored_with_whitespace_collapsed():
    fetcher, frontier, _, _ = make_fetcher({URL: ok(URL, "<p>hello\n\n   world</p>")})

    messages = fetcher.poll_once()

    assert frontier.stored == {URL: "<p>hello world</p>"}
    assert messages == [f"{URL} --> 18 chars"]
    assert fetcher.stats['pages_stored'] == 1


def test_raw_content_kept_when_collapsing_disabled():
    fetcher, frontier, _, _ = make_fetcher({URL: ok(URL, "a  b")}, collapse_whitespace=False)
    fetcher.poll_once()
    assert frontier.stored[URL] == "a  b"


def test_rejected_content_type_stores_empty_page():
    fetcher, frontier, _, errors = make_fetcher(
        {URL: ok(URL, "%PDF", **{'Content-Type': 'application/pdf'})})

    assert fetcher.poll_once() == [f"{URL} --> 0 chars"]
    assert frontier.stored == {URL: ''}
    assert frontier.released == []
    assert errors == []


def test_language_filter():
    fetcher, _, _, _ = make_fetcher({})

    assert fetcher.is_accepted_language(None)
    assert fetcher.is_accepted_language("en")
    assert fetcher.is_accepted_language("en-NZ")
    assert fetcher.is_accepted_language("mi, en")
    assert not fetcher.is_accepted_language("fr")


def test_rejected_language_stores_empty_page():
    fetcher, frontier, _, _ = make_fetcher(
        {URL: ok(URL, "bonjour", **{'Content-Type': 'text/html', 'Content-Language': 'fr'})})
    fetcher.poll_once()
    assert frontier.stored == {URL: ''}


def test_http_error_stores_empty_page():
    fetcher, frontier, client, errors = make_fetcher({})

    fetcher.poll_once()

    assert client.requests == [URL]
    assert frontier.stored == {URL: ''}
    assert fetcher.stats['empty_pages'] == 1
    assert errors == []


def test_timeout_releases_url_until_attempts_run_out():
    fetcher, frontier, client, errors = make_fetcher(
        {URL: failed(URL, FetchErrorKind.TIMEOUT, "timed out")}, max_attempts=3)

    assert fetcher.poll_once() == [f"{URL} --> timeout, released for retry"]
    assert fetcher.poll_once() == [f"{URL} --> timeout, released for retry"]
    assert frontier.stored == {}

    assert fetcher.poll_once() == [f"{URL} --> 0 chars"]
    assert frontier.stored == {URL: ''}
    assert frontier.released == [URL, URL]
    assert errors == [(URL, "timed out")] * 3
    assert len(client.requests) == 3


def test_success_after_connection_error():
    fetcher, frontier, _, errors = make_fetcher(
        {URL: [failed(URL, FetchErrorKind.CONNECTION, "refused"), ok(URL, "<p>up</p>")]})

    fetcher.poll_once()
    fetcher.poll_once()

    assert frontier.stored == {URL: "<p>up</p>"}
    assert len(errors) == 1


def test_no_url_means_no_work():
    fetcher, _, client, _ = make_fetcher({}, urls=())
    assert fetcher.poll_once() is None
    assert client.requests == []


def test_close_drains_frontier_and_closes_client():
    fetcher, frontier, client, _ = make_fetcher({})
    fetcher.close()
    assert frontier.drained == 1
    assert client.closed
