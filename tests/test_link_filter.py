from trawler.core.link_filter import (
    LinkFilter,
    LinkFilterConfig,
    RuleSet,
    is_domain_match,
    link_extension,
)


def make_filter(**rules):
    return LinkFilter(LinkFilterConfig(**rules))


def test_domain_reject_overrides_accept():
    link_filter = make_filter(domains=RuleSet(accept=[".nz"], reject=[".google."]))

    assert link_filter.is_domain_accepted("www.example.co.nz")
    assert not link_filter.is_domain_accepted("www.google.co.nz")
    assert not link_filter.is_domain_accepted("www.example.com")


def test_domain_patterns():
    assert is_domain_match(".nz", "www.example.co.nz")
    assert is_domain_match("www.example.", "www.example.org")
    assert is_domain_match(".example.", "www.example.org")
    assert is_domain_match("example.com", "example.com")
    assert not is_domain_match("example.com", "www.example.com")
    assert not is_domain_match("www.example.", "example.org")


def test_domain_pattern_also_matches_without_leading_dot():
    assert is_domain_match(".example.com", "example.com")
    assert is_domain_match(".example.", "example.org")


def test_empty_domain_accept_list_accepts_everything_not_rejected():
    link_filter = make_filter(domains=RuleSet(reject=[".facebook."]))
    assert link_filter.is_accepted("https://anything.example/page")
    assert not link_filter.is_accepted("https://www.facebook.com/page")


def test_links_without_extension_are_always_accepted():
    link_filter = make_filter(extensions=RuleSet(accept=["html"], reject=["js", "css"]))

    assert link_filter.is_accepted("http://example.nz/about")
    assert link_filter.is_accepted("http://example.nz/dir/")
    assert link_filter.is_accepted("http://example.nz")


def test_extension_reject_list_is_a_denylist():
    link_filter = make_filter(extensions=RuleSet(accept=["html"], reject=["jpg"]))

    assert not link_filter.is_accepted("http://example.nz/photo.JPG")
    assert link_filter.is_accepted("http://example.nz/index.html")
    assert link_filter.is_accepted("http://example.nz/notes.txt")


def test_extension_accept_overrides_reject():
    link_filter = make_filter(extensions=RuleSet(accept=["php"], reject=["php"]))
    assert link_filter.is_accepted("http://example.nz/index.php?page=2")


def test_scheme_rules():
    link_filter = make_filter(schemes=RuleSet(accept=["http", "https"], reject=["ftp"]))

    assert link_filter.is_accepted("https://example.nz/")
    assert not link_filter.is_accepted("ftp://example.nz/file")
    assert link_filter.is_accepted("gopher://example.nz/")
    assert link_filter.is_scheme_accepted("")


def test_links_without_host_pass_the_domain_rule():
    link_filter = make_filter(domains=RuleSet(accept=[".nz"]))
    assert link_filter.is_accepted("/relative/page.html")


def test_filter_keeps_order_and_drops_duplicates():
    link_filter = make_filter(domains=RuleSet(accept=[".nz"]))
    links = [
        "http://b.nz/",
        "http://a.com/",
        "http://a.nz/",
        "http://b.nz/",
    ]
    assert link_filter.filter(links) == ["http://b.nz/", "http://a.nz/"]


def test_filter_keeps_duplicates_when_not_distinct():
    link_filter = LinkFilter(LinkFilterConfig(distinct_urls=False))
    assert link_filter.filter(["http://a.nz/", "http://a.nz/"]) == ["http://a.nz/", "http://a.nz/"]


def test_domain_verdicts_are_memoized():
    link_filter = make_filter(domains=RuleSet(accept=[".nz"]))
    link_filter.is_domain_accepted("Example.NZ")
    assert link_filter.domain_cache.get("example.nz") is True


def test_unparseable_links_are_rejected():
    link_filter = make_filter()
    assert not link_filter.is_accepted("http://[::1/page")


def test_link_extension():
    assert link_extension("/a/b/index.HTML") == "html"
    assert link_extension("/a/b/") == ""
    assert link_extension("/archive.tar.gz") == "gz"
