"""
Scraper - The capability every extraction variant implements.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup


class Scraper(ABC):
    """
    Extracts something from a fetched page.

    Subclasses store what they find themselves and return a short,
    human-readable summary for the operator log.
    """

    parser: str = "html.parser"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def extract_from(self, url: str, html: str) -> str:
        """
        Process one page.

        Args:
            url: Source URL of the page
            html: HTML of the page

        Returns:
            Summary of what was extracted, may be empty
        """
        pass

    def parse(self, html: str) -> Optional[BeautifulSoup]:
        """
        Parse HTML into a BeautifulSoup object.

        Returns:
            BeautifulSoup object or None if parsing failed
        """
        try:
            return BeautifulSoup(html, self.parser)
        except Exception as e:
            self.logger.warning(f"Failed to parse HTML: {e}")
            return None
