"""
Scrapers Module - Extraction variants run by the ScraperRunner.

Components:
-----------
- Scraper: abstract capability, extract_from(url, html) -> summary
- LinkScraper: outbound links -> frontier
- StructuredDataScraper: microdata items -> structured data store
"""

from .base import Scraper
from .link_scraper import LinkScraper
from .structured_data_scraper import StructuredDataScraper, normalize_document

__all__ = [
    'Scraper',
    'LinkScraper',
    'StructuredDataScraper',
    'normalize_document',
]
