"""
Page Fetcher & Link Extractor
=============================
Fetches one page and extracts its in-scope navigational links.

Transport is a ``requests.Session`` with browser-like headers. Requests are
blocking, so each GET runs in the loop's default executor and the calling
coroutine suspends until the response arrives. Redirects are never followed
by the transport: a ``302`` is inspected explicitly so redirect chains back
to the home page cannot re-discover it forever.

Fails soft: every network, status or parse problem is logged and reported
as a ``PageOutcome`` with ``error`` set and no links.
"""

from __future__ import annotations

import asyncio
import logging
import platform
from typing import FrozenSet, Optional

import requests
from bs4 import BeautifulSoup
from requests.utils import requote_uri

from .link_filter import is_page_link
from .results import (
    PageOutcome,
    SKIP_ALREADY_VISITED,
    SKIP_HOME_DUPLICATE,
    SKIP_REDIRECT_DUPLICATE,
)
from .run_config import CrawlerRunConfig
from .scope import is_in_scope, is_origin_root, resolve_href, same_page
from .state import CrawlState

logger = logging.getLogger(__name__)

# Statuses whose target is examined rather than treated as a failure
_INSPECTABLE_REDIRECTS = frozenset({302})


def _detect_platform() -> str:
    """Return the sec-ch-ua-platform value for the current OS."""
    system = platform.system()
    if system == "Darwin":
        return "macOS"
    elif system == "Windows":
        return "Windows"
    else:
        return "Linux"


def create_session(user_agent: str) -> requests.Session:
    """Create a requests session with realistic browser headers."""
    session = requests.Session()
    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
        'Accept-Encoding': 'gzip, deflate',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
        'sec-ch-ua-mobile': '?0',
        'sec-ch-ua-platform': f'"{_detect_platform()}"',
    })
    return session


def parse_links(html: str, base_origin: str) -> FrozenSet[str]:
    """
    Extract filtered, absolute, same-origin links from *html*.

    Each anchor's ``href`` goes through the link filter first, is then
    resolved against *base_origin*, and survives only if it parses and stays
    inside the origin.
    """
    soup = BeautifulSoup(html, "lxml")
    links = set()
    for anchor in soup.find_all('a'):
        href = anchor.get('href')
        if not is_page_link(href):
            continue
        absolute = resolve_href(href, base_origin)
        if absolute is None:
            continue
        if not is_in_scope(absolute, base_origin):
            continue
        # Stored in the form requests puts on the wire
        links.add(requote_uri(absolute))
    return frozenset(links)


class PageFetcher:
    """
    Fetch pages for one crawl and turn them into ``PageOutcome`` values.

    Usage::

        fetcher = PageFetcher(config)
        outcome = await fetcher.extract_links("https://example.com", state)
        outcome.links   # frozenset of absolute same-origin URLs
    """

    def __init__(
        self,
        config: Optional[CrawlerRunConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or CrawlerRunConfig()
        self.session = session or create_session(self.config.user_agent)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get(self, url: str) -> requests.Response:
        return self.session.get(
            url,
            timeout=self.config.request_timeout_seconds,
            allow_redirects=False,
        )

    async def _get_async(self, url: str) -> requests.Response:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get, url)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def extract_links(self, page_url: str, state: CrawlState) -> PageOutcome:
        """
        Fetch *page_url* and return its in-scope links.

        Marks the page visited before the request goes out. Never raises for
        network, HTTP or parse failures.
        """
        page_url = requote_uri(page_url)
        if not state.mark_visited(page_url):
            logger.debug(f"[FETCH] Already visited: {page_url}")
            return PageOutcome(url=page_url, skipped_reason=SKIP_ALREADY_VISITED)

        try:
            response = await self._get_async(page_url)
        except requests.Timeout:
            logger.warning(f"[FETCH] Timeout: {page_url}")
            return PageOutcome(url=page_url, error="Request timeout")
        except requests.RequestException as exc:
            logger.warning(f"[FETCH] Error fetching page: {page_url}, {exc}")
            return PageOutcome(url=page_url, error=str(exc))

        status = response.status_code

        if status in _INSPECTABLE_REDIRECTS:
            location = response.headers.get('Location')
            effective = resolve_href(location, page_url) if location else None
            if effective is None:
                logger.warning(f"[FETCH] {status} without usable Location: {page_url}")
                return PageOutcome(url=page_url, status_code=status, error=f"HTTP {status} without Location")
            effective = requote_uri(effective)
        elif 200 <= status < 300:
            # Redirects are never followed, so a 2xx answers page_url itself
            effective = page_url
        else:
            logger.warning(f"[FETCH] HTTP {status}: {page_url}")
            return PageOutcome(url=page_url, status_code=status, error=f"HTTP {status}")

        skip = self._check_effective_url(page_url, effective, status, state)
        if skip is not None:
            return skip

        try:
            links = parse_links(response.text, state.base_origin)
        except Exception as exc:
            logger.warning(f"[FETCH] Could not parse HTML from {page_url}: {exc}")
            return PageOutcome(
                url=page_url, status_code=status, effective_url=effective,
                error=f"Parse error: {exc}",
            )

        logger.info(f"[FETCH] {page_url} → {len(links)} links")

        if self.config.rate_delay > 0:
            await asyncio.sleep(self.config.rate_delay)

        return PageOutcome(
            url=page_url,
            links=links,
            status_code=status,
            effective_url=effective,
        )

    def _check_effective_url(
        self,
        page_url: str,
        effective: str,
        status: int,
        state: CrawlState,
    ) -> Optional[PageOutcome]:
        """
        Decide whether the page behind *effective* should be skipped.

        Returns a skip/failure outcome, or None when extraction should run.
        The home page is claimed only on the path that goes on to extract
        links. No await happens between the check and the claim, so
        concurrent fetches cannot both claim the root.
        """
        origin = state.base_origin

        if same_page(page_url, effective):
            if status in _INSPECTABLE_REDIRECTS:
                logger.warning(f"[FETCH] Redirect loop on {page_url}")
                return PageOutcome(
                    url=page_url, status_code=status, effective_url=effective,
                    error="Redirect loop",
                )
            if is_origin_root(effective, origin) and not state.claim_home_page():
                logger.info(f"[FETCH] {page_url} is the home page again, skipping")
                return PageOutcome(
                    url=page_url, status_code=status, effective_url=effective,
                    skipped_reason=SKIP_HOME_DUPLICATE,
                )
            return None

        if is_origin_root(effective, origin) and state.home_page_seen:
            logger.info(f"[FETCH] {page_url} redirects to the home page, skipping")
            return PageOutcome(
                url=page_url, status_code=status, effective_url=effective,
                skipped_reason=SKIP_HOME_DUPLICATE,
            )

        if is_in_scope(page_url, origin) and is_in_scope(effective, origin):
            logger.info(f"[FETCH] {page_url} redirects to {effective}, duplicate, skipping")
            return PageOutcome(
                url=page_url, status_code=status, effective_url=effective,
                skipped_reason=SKIP_REDIRECT_DUPLICATE,
            )

        logger.warning(f"[FETCH] {page_url} redirects off-origin to {effective}")
        return PageOutcome(
            url=page_url, status_code=status, effective_url=effective,
            error=f"Redirected off-origin to {effective}",
        )
