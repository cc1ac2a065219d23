"""
Core Module - The crawl frontier and politeness scheduler.

Components:
-----------
- HostRegistry (core.host_registry): hands out hosts due for crawl or refresh
- UrlFrontier (core.frontier): host rotation, URL batching, pacing and the
  page lifecycle
- LinkFilter: accepts or rejects discovered links
- RobotsPolicy: evaluates stored robots.txt text
- BoundedMap / BoundedSet: process-local caches

The registry and the frontier depend on the store interfaces, so they are
imported from their own modules:

from trawler.core.host_registry import HostRegistry
from trawler.core.frontier import UrlFrontier
"""

from .caches import BoundedMap, BoundedSet
from .link_filter import LinkFilter, LinkFilterConfig, RuleSet, is_domain_match
from .models import Host, HostStatus, Page, UrlRecord, UrlStatus, host_of
from .robots import RobotsPolicy, RobotsVerdict

__all__ = [
    'BoundedMap',
    'BoundedSet',
    'LinkFilter',
    'LinkFilterConfig',
    'RuleSet',
    'is_domain_match',
    'Host',
    'HostStatus',
    'Page',
    'UrlRecord',
    'UrlStatus',
    'host_of',
    'RobotsPolicy',
    'RobotsVerdict',
]
