"""
Crawl State
===========
Per-request bookkeeping for one crawl invocation.

A ``CrawlState`` is created by the orchestrator for each crawl and handed by
reference to every component that reads or extends it. It is never stored
at module level, so concurrent crawl requests cannot interfere.

All mutation happens on the event-loop thread between suspension points,
which makes each check-and-set below atomic with respect to sibling tasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Set

from .scope import is_in_scope

logger = logging.getLogger(__name__)


@dataclass
class CrawlState:
    """
    Visited / discovered tracking for one crawl.

    Invariants:
    - ``visited`` and ``discovered`` hold only non-empty URLs inside ``base_origin``
    - ``discovered`` never grows past ``max_links``
    - ``home_page_seen`` flips False → True at most once
    """

    base_origin: str
    max_links: int = 100
    visited: Set[str] = field(default_factory=set)
    discovered: Set[str] = field(default_factory=set)
    home_page_seen: bool = False

    def __post_init__(self):
        if not self.base_origin:
            raise ValueError("CrawlState requires a base origin")
        if self.max_links < 1:
            raise ValueError(f"max_links must be positive, got {self.max_links}")

    # ------------------------------------------------------------------
    # Visited
    # ------------------------------------------------------------------

    def mark_visited(self, url: str) -> bool:
        """Record *url* as fetched. Returns False if it was already visited or is out of scope."""
        if not url or url in self.visited or not is_in_scope(url, self.base_origin):
            return False
        self.visited.add(url)
        return True

    def is_visited(self, url: str) -> bool:
        return url in self.visited

    # ------------------------------------------------------------------
    # Discovered
    # ------------------------------------------------------------------

    @property
    def at_capacity(self) -> bool:
        return len(self.discovered) >= self.max_links

    def add_discovered(self, url: str) -> bool:
        """
        Add an in-scope link target.

        Returns True only when *url* is new and was accepted; duplicates,
        out-of-scope URLs and anything arriving after the cap is reached are
        rejected.
        """
        if not url or url in self.discovered:
            return False
        if not is_in_scope(url, self.base_origin):
            logger.debug(f"[FRONTIER] Refusing off-origin link: {url}")
            return False
        if self.at_capacity:
            return False
        self.discovered.add(url)
        return True

    def merge_links(self, links) -> int:
        """Add every link in *links*; returns how many were new."""
        added = 0
        for link in links:
            if self.at_capacity:
                break
            if self.add_discovered(link):
                added += 1
        return added

    def frontier(self) -> Set[str]:
        """Discovered URLs not yet fetched."""
        return self.discovered - self.visited

    # ------------------------------------------------------------------
    # Home page
    # ------------------------------------------------------------------

    def claim_home_page(self) -> bool:
        """
        Record that the origin root has been reached.

        Returns True the first time only; every later call returns False so
        the caller can treat that resolution as a duplicate.
        """
        if self.home_page_seen:
            return False
        self.home_page_seen = True
        return True
