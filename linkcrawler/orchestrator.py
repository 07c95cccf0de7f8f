"""
Crawl Orchestrator
==================
Drives link discovery for one seed URL through explicit phases:

1. **Seed**      — fetch the seed page (sequential, must finish first); an
                   in-scope 302 on the seed is followed one hop
2. **Expansion** — fetch every discovered-but-unvisited link concurrently
                   (fan-out / fan-in), adding what they link to
3. **Merge**     — union the HTML discoveries with the sitemap's URLs
4. **Complete**  — return the sorted, deduplicated link list

Expansion policies:

- ``single``      — one generation: links found on the expansion pages are
                    recorded but never fetched themselves (default)
- ``fixed_point`` — repeat expansion generations until the frontier is empty
                    or the discovery cap is reached

Both stop queuing fetches once ``discovered`` reaches ``max_links``.
Sitemap URLs are merged afterwards and are not capped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Set

from .fetcher import PageFetcher
from .results import CrawlResult, PageOutcome, SKIP_REDIRECT_DUPLICATE
from .run_config import CrawlerRunConfig, EXPANSION_FIXED_POINT
from .scope import origin_of
from .sitemap import SitemapHarvester
from .state import CrawlState
from .utils import ProgressTracker

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """
    Phase-based discovery engine.

    Usage::

        orchestrator = CrawlOrchestrator(config)
        result = await orchestrator.crawl("https://example.com")
        result.links   # sorted unique URLs

    Every ``crawl()`` call builds its own ``CrawlState``; nothing is kept on
    the orchestrator between calls, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        config: Optional[CrawlerRunConfig] = None,
        fetcher: Optional[PageFetcher] = None,
        harvester: Optional[SitemapHarvester] = None,
    ):
        self.config = config or CrawlerRunConfig()
        self.fetcher = fetcher or PageFetcher(self.config)
        self.harvester = harvester or SitemapHarvester(self.config, session=self.fetcher.session)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def crawl(self, seed_url: str) -> CrawlResult:
        """Discover the same-origin pages reachable from *seed_url*."""
        base_origin = origin_of(seed_url)
        if base_origin is None:
            raise ValueError(f"Invalid URL: {seed_url}")

        state = CrawlState(base_origin=base_origin, max_links=self.config.max_links)
        progress = ProgressTracker()
        progress.start()
        errors: List[dict] = []

        logger.info("=" * 65)
        logger.info("[CRAWL] STARTED")
        logger.info(f"[CRAWL] Seed: {seed_url}")
        logger.info(f"[CRAWL] Origin: {base_origin}")
        logger.info(f"[CRAWL] Expansion: {self.config.expansion}, cap={self.config.max_links}")
        logger.info("=" * 65)

        # ── Phase 1: seed ─────────────────────────────────────────────
        seed_outcome = await self.fetcher.extract_links(seed_url, state)
        self._record(seed_outcome, state, progress, errors)

        # The seed's redirect target has no other way in, so follow one hop
        if seed_outcome.skipped_reason == SKIP_REDIRECT_DUPLICATE:
            logger.info(f"[CRAWL] Seed redirects to {seed_outcome.effective_url}, following")
            target_outcome = await self.fetcher.extract_links(seed_outcome.effective_url, state)
            self._record(target_outcome, state, progress, errors)

        # ── Phase 2: expansion ───────────────────────────────────────
        generation = 0
        while True:
            frontier = self._next_frontier(state)
            if not frontier:
                break
            generation += 1
            logger.info(
                f"[FRONTIER] Generation {generation}: fetching {len(frontier)} pages "
                f"(discovered={len(state.discovered)})"
            )
            outcomes = await self._expand(frontier, state)
            for outcome in outcomes:
                self._record(outcome, state, progress, errors)
            if self.config.expansion != EXPANSION_FIXED_POINT:
                break

        html_links = set(state.discovered)

        # ── Phase 3: merge ────────────────────────────────────────────
        sitemap_links = await self.harvester.fetch_sitemap(base_origin)

        # ── Phase 4: complete ─────────────────────────────────────────
        progress.finish()
        links = unique_links(html_links, sitemap_links)
        stats = progress.get_stats()
        stats.update({
            'generations': generation,
            'html_links': len(html_links),
            'sitemap_links': len(sitemap_links),
            'total_links': len(links),
            'home_page_seen': state.home_page_seen,
        })

        logger.info(
            f"[CRAWL] Complete: {len(links)} unique links "
            f"({len(html_links)} from HTML, {len(sitemap_links)} from sitemap) "
            f"in {stats['elapsed_time']}s"
        )

        return CrawlResult(
            links=links,
            html_links=sorted(html_links),
            sitemap_links=sorted(sitemap_links),
            stats=stats,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    @staticmethod
    def _next_frontier(state: CrawlState) -> List[str]:
        """Unvisited discoveries to fetch next, or nothing once the cap is reached."""
        if state.at_capacity:
            logger.info(f"[FRONTIER] Discovery cap reached ({state.max_links}) — not queuing more pages")
            return []
        return sorted(state.frontier())

    async def _expand(self, frontier: Iterable[str], state: CrawlState) -> List[PageOutcome]:
        """
        Fetch every URL in *frontier* concurrently.

        Per-page failures come back as failed outcomes. An exception that
        escapes the fetcher is a bug, not a page failure: siblings are still
        allowed to finish, then the first such exception is re-raised and the
        crawl ends.
        """
        urls = list(frontier)
        gathered = await asyncio.gather(
            *(self.fetcher.extract_links(url, state) for url in urls),
            return_exceptions=True,
        )
        outcomes = []
        unexpected = None
        for url, item in zip(urls, gathered):
            if isinstance(item, BaseException):
                logger.error(f"[FRONTIER] Unexpected failure on {url}: {item!r}")
                unexpected = unexpected or item
            else:
                outcomes.append(item)
        if unexpected is not None:
            raise unexpected
        return outcomes

    @staticmethod
    def _record(
        outcome: PageOutcome,
        state: CrawlState,
        progress: ProgressTracker,
        errors: List[dict],
    ) -> None:
        if outcome.error is not None:
            progress.increment_failed()
            errors.append({'url': outcome.url, 'error': outcome.error})
            return
        if outcome.skipped:
            progress.increment_skipped()
            return
        progress.increment_crawled()
        added = state.merge_links(outcome.links)
        progress.add_links(added)
        logger.debug(
            f"[FRONTIER] {outcome.url[:60]} → links={len(outcome.links)} "
            f"new={added} discovered={len(state.discovered)}"
        )


def unique_links(*groups: Iterable[str]) -> List[str]:
    """Sorted union of several link collections, empty strings dropped."""
    merged: Set[str] = set()
    for group in groups:
        merged.update(link for link in group if link)
    return sorted(merged)
