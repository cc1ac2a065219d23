"""
Trawler - A distributed crawl frontier and politeness scheduler.

Features:
- Independent fetch, host-refresh and scrape processes sharing one store
- Round-robin host rotation with a rotation-wide crawl delay
- robots.txt enforcement per URL
- Bounded in-process caches, rebuildable from the store
- Link filtering by extension, scheme and domain pattern
- Microdata extraction into a content-addressed collection
"""

__version__ = "1.0.0"

from .core.host_registry import HostRegistry, HostRegistryConfig
from .core.frontier import UrlFrontier, FrontierConfig
from .core.link_filter import LinkFilter, LinkFilterConfig
from .config import ConfigLoader, TrawlerConfig, validate_config

__all__ = [
    'HostRegistry',
    'HostRegistryConfig',
    'UrlFrontier',
    'FrontierConfig',
    'LinkFilter',
    'LinkFilterConfig',
    'ConfigLoader',
    'TrawlerConfig',
    'validate_config',
]
