import pytest

from fakes import FakeClient, failed, ok
from trawler.core.models import Host, HostStatus
from trawler.core.robots import RobotsPolicy
from trawler.workers.host_fetcher import HostFetchConfig, HostFetcher
from trawler.workers.http_client import FetchErrorKind

HOST = "example.nz"
HTTPS = f"https://{HOST}/robots.txt"
HTTP = f"http://{HOST}/robots.txt"


class FakeRegistry:
    def __init__(self, hosts=()):
        self.hosts = list(hosts)
        self.updated = []

    def get_next_host_to_update(self):
        return self.hosts.pop(0) if self.hosts else None

    def update_host(self, host):
        self.updated.append(host)
        return True


def make_fetcher(responses, hosts=None):
    registry = FakeRegistry([Host(HOST, status=None)] if hosts is None else hosts)
    client = FakeClient(responses)
    errors = []
    fetcher = HostFetcher(registry, client, RobotsPolicy(user_agent="Trawler"), HostFetchConfig(),
                          error_handler=lambda url, message: errors.append(url))
    return fetcher, registry, client, errors


@pytest.mark.parametrize("robots_txt, expected", [
    ("User-agent: *\nDisallow: /\n", HostStatus.BLOCKED),
    ("User-agent: *\nDisallow: /private/\n", HostStatus.OK),
    ("User-agent: Trawler\nDisallow: /\n", HostStatus.BLOCKED),
    ("User-agent: OtherBot\nDisallow: /\n", HostStatus.OK),
])
def test_status_from_robots(robots_txt, expected):
    fetcher, registry, _, _ = make_fetcher({HTTPS: ok(HTTPS, robots_txt)})

    assert fetcher.poll_once() == [f"{HOST}: {expected.value}"]

    host = registry.updated[0]
    assert host.status is expected
    assert host.robots_txt == robots_txt


def test_missing_robots_means_no_rules():
    fetcher, registry, _, errors = make_fetcher({})

    fetcher.poll_once()

    host = registry.updated[0]
    assert host.status is HostStatus.OK
    assert host.robots_txt == ''
    assert errors == []


def test_falls_back_to_http_on_connection_error():
    fetcher, registry, client, _ = make_fetcher({
        HTTPS: failed(HTTPS, FetchErrorKind.CONNECTION, "refused"),
        HTTP: ok(HTTP, "User-agent: *\nDisallow:\n"),
    })

    fetcher.poll_once()

    assert client.requests == [HTTPS, HTTP]
    assert registry.updated[0].status is HostStatus.OK


def test_timeout_marks_error_and_keeps_robots():
    previous = "User-agent: *\nDisallow: /tmp/\n"
    host = Host(HOST, status=HostStatus.OK, robots_txt=previous)
    fetcher, registry, client, errors = make_fetcher(
        {HTTPS: failed(HTTPS, FetchErrorKind.TIMEOUT, "timed out")}, hosts=[host])

    assert fetcher.poll_once() == [f"{HOST}: error"]

    assert client.requests == [HTTPS]
    assert registry.updated[0].status is HostStatus.ERROR
    assert registry.updated[0].robots_txt == previous
    assert errors == [HTTPS]


def test_excluded_host_is_not_refreshed():
    host = Host(HOST, status=HostStatus.EXCLUDED)
    fetcher, registry, client, _ = make_fetcher({}, hosts=[host])

    assert fetcher.poll_once() == []
    assert client.requests == []
    assert registry.updated == []


def test_no_host_means_no_work():
    fetcher, _, client, _ = make_fetcher({}, hosts=[])
    assert fetcher.poll_once() is None
    assert client.requests == []


def test_blocked_set_by_hand_is_recomputed():
    host = Host(HOST, status=HostStatus.BLOCKED, robots_txt='')
    fetcher, registry, _, _ = make_fetcher({HTTPS: ok(HTTPS, "User-agent: *\nDisallow:\n")},
                                           hosts=[host])

    assert fetcher.poll_once() == [f"{HOST}: ok"]
    assert registry.updated[0].status is HostStatus.OK
