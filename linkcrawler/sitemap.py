"""
Sitemap Harvester
=================
Collects page URLs declared in ``{origin}/sitemap.xml``.

Handles both document kinds:

- ``<urlset>``       — every ``<url><loc>`` is collected
- ``<sitemapindex>`` — each nested ``<sitemap><loc>`` is fetched and its
  ``<urlset>`` entries collected; nested indices are not followed further

Sitemaps usually declare the sitemaps.org namespace but some sites skip it,
so elements are matched by local name.

Fails soft: the outer harvest returns an empty set on any error, and one
broken nested sitemap is logged and skipped without affecting the others.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Set
from urllib.parse import urljoin

import requests

from .run_config import CrawlerRunConfig

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


def _child_locs(root: ET.Element, entry_tag: str) -> List[str]:
    """Return the stripped ``<loc>`` text of every direct *entry_tag* child of *root*."""
    locs = []
    for entry in root:
        if _local_name(entry.tag) != entry_tag:
            continue
        for child in entry:
            if _local_name(child.tag) == 'loc' and child.text and child.text.strip():
                locs.append(child.text.strip())
                break
    return locs


def parse_sitemap(xml_text) -> ET.Element:
    """Parse sitemap XML. Raises ``ET.ParseError`` on malformed input."""
    return ET.fromstring(xml_text)


def urlset_locations(root: ET.Element) -> List[str]:
    """Page URLs of a ``<urlset>`` document (empty for any other document)."""
    if _local_name(root.tag) != 'urlset':
        return []
    return _child_locs(root, 'url')


def index_locations(root: ET.Element) -> List[str]:
    """Nested sitemap URLs of a ``<sitemapindex>`` document (empty otherwise)."""
    if _local_name(root.tag) != 'sitemapindex':
        return []
    return _child_locs(root, 'sitemap')


class SitemapHarvester:
    """
    Fetch and flatten a site's sitemap.

    Usage::

        harvester = SitemapHarvester(config, session)
        urls = await harvester.fetch_sitemap("https://example.com")
    """

    def __init__(
        self,
        config: Optional[CrawlerRunConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or CrawlerRunConfig()
        self.session = session or requests.Session()
        if session is None:
            self.session.headers.update({'User-Agent': self.config.user_agent})

    def _fetch_root(self, url: str) -> ET.Element:
        """GET *url* and parse it. Raises on transport, status or XML errors."""
        response = self.session.get(url, timeout=self.config.request_timeout_seconds)
        response.raise_for_status()
        return parse_sitemap(response.content)

    async def _fetch_root_async(self, url: str) -> ET.Element:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._fetch_root, url)

    async def fetch_sitemap(self, base_origin: str) -> Set[str]:
        """Return every URL declared by the origin's sitemap (one level of nesting)."""
        sitemap_url = f"{base_origin.rstrip('/')}/sitemap.xml"
        links: Set[str] = set()

        try:
            root = await self._fetch_root_async(sitemap_url)
        except (requests.RequestException, ET.ParseError) as exc:
            logger.warning(f"[SITEMAP] Failed to fetch sitemap: {sitemap_url}: {exc}")
            return links

        links.update(urlset_locations(root))

        for loc in index_locations(root):
            nested_url = urljoin(sitemap_url, loc)
            try:
                nested_root = await self._fetch_root_async(nested_url)
            except (requests.RequestException, ET.ParseError) as exc:
                logger.warning(f"[SITEMAP] Failed to fetch nested sitemap: {nested_url}: {exc}")
                continue
            nested = urlset_locations(nested_root)
            if not nested and index_locations(nested_root):
                logger.info(f"[SITEMAP] Not following nested index: {nested_url}")
            links.update(nested)

        logger.info(f"[SITEMAP] {sitemap_url} → {len(links)} URLs")
        return links
