"""
Typed results for page fetches, captures and whole crawls.

Every per-page and per-capture outcome carries either a value or an explicit
failure marker, so callers and tests can assert on failures without reading
log output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

SKIP_HOME_DUPLICATE = "home_duplicate"
SKIP_REDIRECT_DUPLICATE = "redirect_duplicate"
SKIP_ALREADY_VISITED = "already_visited"


@dataclass(frozen=True)
class PageOutcome:
    """Result of fetching one page and extracting its links."""
    url: str
    links: FrozenSet[str] = frozenset()
    status_code: Optional[int] = None
    effective_url: Optional[str] = None
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.skipped_reason is None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


@dataclass(frozen=True)
class CaptureResult:
    """Result of one screenshot capture. ``screenshot_path`` is None on failure."""
    url: str
    screenshot_path: Optional[str] = None
    error: Optional[str] = None
    failed_stage: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.screenshot_path is not None

    def to_dict(self) -> dict:
        return {'url': self.url, 'screenshotPath': self.screenshot_path}


@dataclass
class CrawlResult:
    """Result of a crawl operation."""
    links: List[str] = field(default_factory=list)
    html_links: List[str] = field(default_factory=list)
    sitemap_links: List[str] = field(default_factory=list)
    captures: Optional[List[CaptureResult]] = None
    stats: Dict = field(default_factory=dict)
    errors: List[Dict] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.links)

    def to_payload(self) -> dict:
        """Outbound success payload: discovered links, or capture results when capture ran."""
        if self.captures is not None:
            return {
                'results': [c.to_dict() for c in self.captures],
                'count': self.count,
            }
        return {'links': list(self.links), 'count': self.count}

    def to_dict(self) -> dict:
        """Full export including statistics and per-page errors."""
        data = self.to_payload()
        data['stats'] = dict(self.stats)
        data['errors'] = list(self.errors)
        return data
