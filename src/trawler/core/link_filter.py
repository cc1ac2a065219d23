"""
Link Filter - Accepts or rejects discovered links before they reach the frontier.
File: src/trawler/core/link_filter.py

Rules:
- extensions and schemes: accepted if empty, OR in ``accept``, OR not in ``reject``
  (``reject`` is a denylist, ``accept`` overrides it)
- domains: accepted if they match an ``accept`` pattern (or ``accept`` is empty)
  AND match no ``reject`` pattern
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set
from urllib.parse import urlparse
import logging
import posixpath

from .caches import BoundedMap


@dataclass
class RuleSet:
    """Accept and reject lists for one link attribute."""
    accept: List[str] = field(default_factory=list)
    reject: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, List[str]]]) -> "RuleSet":
        data = data or {}
        return cls(accept=list(data.get('accept') or []),
                   reject=list(data.get('reject') or []))

    def is_empty(self) -> bool:
        return not self.accept and not self.reject


@dataclass
class LinkFilterConfig:
    """Configuration for the link filter"""
    extensions: RuleSet = field(default_factory=RuleSet)
    schemes: RuleSet = field(default_factory=RuleSet)
    domains: RuleSet = field(default_factory=RuleSet)
    distinct_urls: bool = True
    max_cached_domains: int = 10000


def is_domain_match(pattern: str, domain: str) -> bool:
    """
    Match a partial domain pattern against a hostname.

    '.example.com'  suffix match
    'www.example.'  prefix match
    '.example.'     substring match (not at the start of the domain)
    'example.com'   exact match

    Each pattern is also tried with its leading dots removed, so
    '.example.com' matches 'example.com' itself and '.example.' matches
    'example.org'.
    """
    if not pattern:
        return False

    for patt in (pattern.lstrip('.'), pattern):
        if not patt:
            continue
        dot_left = patt.startswith('.')
        dot_right = patt.endswith('.')
        if dot_left and dot_right:
            if domain.find(patt, 1) != -1:
                return True
        elif dot_left:
            if domain.endswith(patt):
                return True
        elif dot_right:
            if domain.startswith(patt):
                return True
        elif domain == patt:
            return True
    return False


def link_extension(path: str) -> str:
    """Return the lower-cased file extension of the last path segment."""
    basename = posixpath.basename(path)
    _, ext = posixpath.splitext(basename)
    return ext.lstrip('.').lower()


class LinkFilter:
    """
    Filters candidate links by extension, scheme and domain.

    Domain verdicts are memoized since the same domain recurs heavily across
    a crawl.
    """

    def __init__(self, config: LinkFilterConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

        # Sets for O(1) lookup
        self.accepted_extensions: Set[str] = {e.lower().lstrip('.') for e in config.extensions.accept}
        self.rejected_extensions: Set[str] = {e.lower().lstrip('.') for e in config.extensions.reject}
        self.accepted_schemes: Set[str] = {s.lower() for s in config.schemes.accept}
        self.rejected_schemes: Set[str] = {s.lower() for s in config.schemes.reject}
        self.accepted_domains = [d.lower() for d in config.domains.accept]
        self.rejected_domains = [d.lower() for d in config.domains.reject]

        self.domain_cache = BoundedMap(config.max_cached_domains, name="domain verdicts")

    def filter(self, links: Iterable[str]) -> List[str]:
        """Return the accepted links, in their original order."""
        accepted = []
        seen = set()
        for link in links:
            if self.config.distinct_urls:
                if link in seen:
                    continue
                seen.add(link)
            if self.is_accepted(link):
                accepted.append(link)
        return accepted

    def is_accepted(self, link: str) -> bool:
        try:
            parsed = urlparse(link)
            hostname = parsed.hostname or ''
        except ValueError as e:
            self.logger.debug(f"Unparseable link {link!r}: {e}")
            return False

        return (
            self.is_scheme_accepted(parsed.scheme)
            and self.is_domain_accepted(hostname)
            and self.is_extension_accepted(link_extension(parsed.path))
        )

    def is_extension_accepted(self, extension: str) -> bool:
        if self.config.extensions.is_empty() or not extension:
            return True
        extension = extension.lower()
        return (extension in self.accepted_extensions
                or extension not in self.rejected_extensions)

    def is_scheme_accepted(self, scheme: str) -> bool:
        if self.config.schemes.is_empty() or not scheme:
            return True
        scheme = scheme.lower()
        return (scheme in self.accepted_schemes
                or scheme not in self.rejected_schemes)

    def is_domain_accepted(self, domain: str) -> bool:
        if self.config.domains.is_empty() or not domain:
            return True

        domain = domain.lower()
        cached = self.domain_cache.get(domain)
        if cached is not None:
            return cached

        accepted = (not self.accepted_domains
                    or any(is_domain_match(p, domain) for p in self.accepted_domains))
        if accepted and any(is_domain_match(p, domain) for p in self.rejected_domains):
            accepted = False

        self.domain_cache.set(domain, accepted)
        return accepted
