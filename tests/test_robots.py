from urllib.robotparser import RobotFileParser

from trawler.core.robots import RobotsPolicy, RobotsVerdict


ROBOTS_TXT = """
User-agent: *
Disallow: /private
"""


def test_no_robots_text_allows_everything():
    policy = RobotsPolicy()
    assert policy.check("example.nz", None, "http://example.nz/private") is RobotsVerdict.ALLOWED
    assert policy.check("example.nz", "  \n", "http://example.nz/private") is RobotsVerdict.ALLOWED


def test_disallowed_path():
    policy = RobotsPolicy(user_agent="Trawler/1.0")

    assert policy.check("example.nz", ROBOTS_TXT, "http://example.nz/private/x") is RobotsVerdict.DISALLOWED
    assert policy.check("example.nz", ROBOTS_TXT, "http://example.nz/public") is RobotsVerdict.ALLOWED
    assert policy.stats["disallowed"] == 1


def test_parser_fault_is_reported_and_allows():
    def broken_parser():
        raise RuntimeError("boom")

    policy = RobotsPolicy(parser_factory=broken_parser)
    verdict = policy.check("example.nz", ROBOTS_TXT, "http://example.nz/private")

    assert verdict is RobotsVerdict.PARSE_ERROR
    assert verdict.may_fetch
    assert policy.stats["parse_errors"] == 1


def test_parsed_robots_are_cached_until_text_changes():
    created = []

    def counting_parser():
        created.append(1)
        return RobotFileParser()

    policy = RobotsPolicy(parser_factory=counting_parser)
    policy.check("example.nz", ROBOTS_TXT, "http://example.nz/a")
    policy.check("example.nz", ROBOTS_TXT, "http://example.nz/b")
    assert len(created) == 1

    policy.check("example.nz", "User-agent: *\nDisallow: /", "http://example.nz/a")
    assert len(created) == 2


def test_agent_specific_rules():
    robots_txt = "User-agent: Trawler\nDisallow: /\n\nUser-agent: *\nDisallow:\n"
    policy = RobotsPolicy(user_agent="Trawler/1.0")
    assert policy.check("example.nz", robots_txt, "http://example.nz/") is RobotsVerdict.DISALLOWED

    other = RobotsPolicy(user_agent="OtherBot/2.0")
    assert other.check("example.nz", robots_txt, "http://example.nz/") is RobotsVerdict.ALLOWED
