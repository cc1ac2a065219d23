"""
Robots.txt Policy - Decides whether the crawler may fetch a URL.

The robots text for each host is fetched by the host refresher and stored on
the host record. This module only evaluates it, caching one parser per host.
Evaluation never raises: a parser fault is reported as PARSE_ERROR, which
callers treat as allowed.
"""

import hashlib
import logging
from enum import Enum
from typing import Callable, Optional
from urllib.robotparser import RobotFileParser

from .caches import BoundedMap


class RobotsVerdict(Enum):
    """Outcome of a robots.txt check."""
    ALLOWED = "allowed"
    DISALLOWED = "disallowed"
    PARSE_ERROR = "parse_error"

    @property
    def may_fetch(self) -> bool:
        return self is not RobotsVerdict.DISALLOWED


class RobotsPolicy:
    """
    Evaluates robots.txt rules for a user agent.

    Parsed documents are cached per hostname together with a digest of the
    text they were built from, so a refreshed robots.txt replaces the entry.
    """

    def __init__(self, user_agent: str = "Trawler/1.0", max_cached_hosts: int = 1000,
                 parser_factory: Callable[[], RobotFileParser] = RobotFileParser):
        self.user_agent = user_agent
        self.parser_factory = parser_factory
        self.cache = BoundedMap(max_cached_hosts, name="robots")
        self.logger = logging.getLogger(self.__class__.__name__)

        self.stats = {
            'allowed': 0,
            'disallowed': 0,
            'parse_errors': 0,
        }

    def check(self, hostname: str, robots_txt: Optional[str], url: str) -> RobotsVerdict:
        """
        Check whether ``url`` may be fetched under ``robots_txt``.

        Args:
            hostname: Host the robots text belongs to (cache key)
            robots_txt: Raw robots.txt content, empty or None for "no rules"
            url: Candidate URL

        Returns:
            RobotsVerdict
        """
        if not robots_txt or not robots_txt.strip():
            self.stats['allowed'] += 1
            return RobotsVerdict.ALLOWED

        try:
            parser = self._get_parser(hostname, robots_txt)
            allowed = parser.can_fetch(self.user_agent, url)
        except Exception as e:
            self.stats['parse_errors'] += 1
            self.logger.warning(f"robots.txt for {hostname} could not be evaluated, "
                                f"allowing {url}: {e}")
            return RobotsVerdict.PARSE_ERROR

        if allowed:
            self.stats['allowed'] += 1
            return RobotsVerdict.ALLOWED

        self.stats['disallowed'] += 1
        self.logger.debug(f"URL disallowed by robots.txt: {url}")
        return RobotsVerdict.DISALLOWED

    def _get_parser(self, hostname: str, robots_txt: str) -> RobotFileParser:
        digest = hashlib.sha256(robots_txt.encode('utf-8', errors='replace')).hexdigest()
        cached = self.cache.get(hostname)
        if cached is not None and cached[0] == digest:
            return cached[1]

        parser = self.parser_factory()
        parser.parse(robots_txt.splitlines())
        self.cache.set(hostname, (digest, parser))
        return parser
