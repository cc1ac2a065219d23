"""
Link Scraper - Feeds outbound links of a page back into the frontier.
"""

from typing import List
from urllib.parse import urldefrag, urljoin

from ..core.frontier import UrlFrontier
from ..core.link_filter import LinkFilter
from .base import Scraper


SKIPPED_PREFIXES = ('javascript:', 'mailto:', 'tel:')


def shorten_url(url: str, max_length: int = 80) -> str:
    if len(url) <= max_length:
        return url
    return f"{url[:60]}.....{url[-15:]}"


class LinkScraper(Scraper):
    """Extracts href targets, resolves them, filters them and adds them."""

    def __init__(self, frontier: UrlFrontier, link_filter: LinkFilter):
        super().__init__()
        self.frontier = frontier
        self.link_filter = link_filter

    def extract_from(self, url: str, html: str) -> str:
        links = self.link_filter.filter(self.extract_links(url, html))
        new_count = self.frontier.add_urls(links) if links else 0
        return f"{shorten_url(url)} --> urls: {len(links)}, new: {new_count}"

    def extract_links(self, url: str, html: str) -> List[str]:
        """
        Extract absolute URLs of every non-empty href in the page.

        A ``<base href>`` changes the context relative links resolve against.
        Fragments are dropped.
        """
        soup = self.parse(html)
        if soup is None:
            return []

        context = url
        base = soup.find('base', href=True)
        if base and base['href'].strip():
            context = urljoin(url, base['href'].strip())

        links = []
        for element in soup.find_all(href=True):
            href = element['href'].strip()
            if not href or href.lower().startswith(SKIPPED_PREFIXES):
                continue
            try:
                absolute, _ = urldefrag(urljoin(context, href))
            except ValueError as e:
                self.logger.debug(f"Skipping malformed href {href!r}: {e}")
                continue
            if absolute:
                links.append(absolute)
        return links
