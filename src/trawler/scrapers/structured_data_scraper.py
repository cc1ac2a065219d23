"""
Structured Data Scraper - Extracts HTML microdata items and stores them.

Each top-level item becomes one document:

    {"type": ["https://schema.org/Product"],
     "id": "...",                       (only when itemid is set)
     "properties": {"name": ["Widget"], "offers": [{...nested item...}]}}

Property names given as URIs are reduced to their last path segment, and
the document is keyed by the SHA-256 digest of its sorted-key JSON so the
same item found on many pages is stored once.
"""

import hashlib
import json
import re
from typing import Any, Dict, Iterator, List
from urllib.parse import urljoin

from bs4 import Tag

from ..storage.base import StructuredDataStore
from .base import Scraper


NAMESPACE_KEY = re.compile(r'"https?:[^"]*/([^"/]+)"\s?:', re.IGNORECASE)

URL_ATTRIBUTES = {
    'a': 'href', 'area': 'href', 'link': 'href',
    'audio': 'src', 'embed': 'src', 'iframe': 'src', 'img': 'src',
    'source': 'src', 'track': 'src', 'video': 'src',
    'object': 'data',
}


def normalize_document(item: Dict[str, Any]) -> Dict[str, Any]:
    """Strip namespace URIs from keys and add the ``_digest`` key."""
    cleaned_json = NAMESPACE_KEY.sub(r'"\1":', json.dumps(item, sort_keys=True, ensure_ascii=False))
    document = json.loads(cleaned_json)
    document['_digest'] = hashlib.sha256(cleaned_json.encode('utf-8')).hexdigest()
    return document


class StructuredDataScraper(Scraper):
    """Microdata extractor writing to a StructuredDataStore."""

    def __init__(self, store: StructuredDataStore):
        super().__init__()
        self.store = store

    def extract_from(self, url: str, html: str) -> str:
        items = self.extract_items(url, html)
        if not items:
            return ''
        self.store.upsert_documents(url, [normalize_document(item) for item in items])
        return f"microdata items: {len(items)}"

    def extract_items(self, url: str, html: str) -> List[Dict[str, Any]]:
        """Return every top-level microdata item of the page."""
        soup = self.parse(html)
        if soup is None:
            return []

        items = []
        for element in soup.find_all(attrs={'itemscope': True}):
            if element.has_attr('itemprop'):
                continue  # nested, reached through its parent
            items.append(self._parse_item(element, url))
        return items

    def _parse_item(self, element: Tag, url: str) -> Dict[str, Any]:
        item: Dict[str, Any] = {}
        types = element.get('itemtype')
        if types:
            item['type'] = types.split()
        if element.get('itemid'):
            item['id'] = urljoin(url, element['itemid'].strip())

        properties: Dict[str, List[Any]] = {}
        for prop in self._property_elements(element):
            value = self._property_value(prop, url)
            for name in prop['itemprop'].split():
                properties.setdefault(name, []).append(value)
        item['properties'] = properties
        return item

    def _property_elements(self, element: Tag) -> Iterator[Tag]:
        # Properties of nested items belong to those items
        for child in element.find_all(True, recursive=False):
            if child.has_attr('itemprop'):
                yield child
            if not child.has_attr('itemscope'):
                yield from self._property_elements(child)

    def _property_value(self, element: Tag, url: str) -> Any:
        if element.has_attr('itemscope'):
            return self._parse_item(element, url)

        name = element.name
        if name == 'meta':
            return element.get('content', '')
        if name in URL_ATTRIBUTES:
            value = element.get(URL_ATTRIBUTES[name], '').strip()
            return urljoin(url, value) if value else ''
        if name in ('data', 'meter'):
            return element.get('value', '')
        if name == 'time' and element.has_attr('datetime'):
            return element['datetime']
        return ' '.join(element.get_text().split())
