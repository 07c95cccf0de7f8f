"""
Crawl Service
=============
Request boundary shared by the CLI and the Streamlit UI.

- ``validate_seed_url(url)``     — reject bad input before any network I/O
- ``crawl_site(url, ...)``       — discovery plus optional capture
- ``handle_crawl_request(...)``  — ``(status, body)`` pair for a front end:
  200 with the payload, 400 for bad input, 500 for unexpected failures
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from .capture_pipeline import capture_all
from .orchestrator import CrawlOrchestrator
from .results import CrawlResult
from .run_config import CrawlerRunConfig
from .screenshot import ScreenshotCapturer
from .utils import is_valid_url

logger = logging.getLogger(__name__)


class InvalidSeedURLError(ValueError):
    """The seed URL is missing or is not an absolute HTTP(S) URL."""


def validate_seed_url(url) -> str:
    """Return the stripped seed URL or raise ``InvalidSeedURLError``."""
    if url is None or (isinstance(url, str) and not url.strip()):
        raise InvalidSeedURLError("A URL is required")
    if not is_valid_url(url):
        raise InvalidSeedURLError(f"Invalid URL: {url!r}")
    return url.strip()


async def crawl_site(
    url: str,
    config: Optional[CrawlerRunConfig] = None,
    orchestrator: Optional[CrawlOrchestrator] = None,
    capturer: Optional[ScreenshotCapturer] = None,
) -> CrawlResult:
    """
    Discover links from *url* and, when ``config.capture`` is set, screenshot
    each of them in discovery order.
    """
    config = config or CrawlerRunConfig()
    seed = validate_seed_url(url)
    config.log_summary(seed)

    orchestrator = orchestrator or CrawlOrchestrator(config)
    result = await orchestrator.crawl(seed)

    if config.capture:
        capturer = capturer or ScreenshotCapturer(config)
        result.captures = await capture_all(result.links, capturer)
        result.stats['screenshots_taken'] = sum(1 for c in result.captures if c.ok)
        result.stats['screenshots_failed'] = sum(1 for c in result.captures if not c.ok)

    return result


def run(url: str, config: Optional[CrawlerRunConfig] = None) -> CrawlResult:
    """Run the async crawl from synchronous code."""
    return asyncio.run(crawl_site(url, config))


async def handle_crawl_request(
    url,
    config: Optional[CrawlerRunConfig] = None,
    orchestrator: Optional[CrawlOrchestrator] = None,
    capturer: Optional[ScreenshotCapturer] = None,
) -> Tuple[int, dict]:
    """
    Run one crawl request and map the outcome to ``(status, body)``.

    Per-page and per-capture failures never reach this level; only bad input
    (400) and unexpected internal errors (500) do.
    """
    try:
        seed = validate_seed_url(url)
    except InvalidSeedURLError as exc:
        logger.warning(f"[CRAWL] Rejected request: {exc}")
        return 400, {'error': str(exc)}

    try:
        result = await crawl_site(seed, config, orchestrator=orchestrator, capturer=capturer)
    except Exception as exc:
        logger.error(f"[CRAWL] Crawl of {seed} failed: {exc}", exc_info=True)
        return 500, {'error': 'Internal error while crawling', 'detail': str(exc)}

    return 200, result.to_payload()
