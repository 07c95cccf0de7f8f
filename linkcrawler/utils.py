"""
Utility Functions
Progress tracking and small URL helpers shared by the crawler modules.
"""

import logging
import time
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Tracks crawling progress for reporting.

    Counters are only touched from the event-loop thread, so no locking is
    needed.
    """

    def __init__(self):
        self.pages_crawled = 0
        self.pages_failed = 0
        self.pages_skipped = 0
        self.links_discovered = 0
        self.start_time = None
        self.end_time = None

    def start(self) -> None:
        """Mark crawl start."""
        self.start_time = time.time()

    def finish(self) -> None:
        """Mark crawl end."""
        self.end_time = time.time()

    def increment_crawled(self) -> int:
        self.pages_crawled += 1
        return self.pages_crawled

    def increment_failed(self) -> int:
        self.pages_failed += 1
        return self.pages_failed

    def increment_skipped(self) -> int:
        self.pages_skipped += 1
        return self.pages_skipped

    def add_links(self, count: int) -> int:
        self.links_discovered += count
        return self.links_discovered

    @property
    def total_processed(self) -> int:
        """Total pages processed."""
        return self.pages_crawled + self.pages_failed + self.pages_skipped

    @property
    def elapsed_time(self) -> float:
        """Elapsed time in seconds."""
        if self.start_time is None:
            return 0
        end = self.end_time or time.time()
        return end - self.start_time

    @property
    def pages_per_second(self) -> float:
        """Crawling rate."""
        elapsed = self.elapsed_time
        if elapsed == 0:
            return 0
        return self.pages_crawled / elapsed

    def get_stats(self) -> dict:
        """Get current statistics."""
        return {
            'pages_crawled': self.pages_crawled,
            'pages_failed': self.pages_failed,
            'pages_skipped': self.pages_skipped,
            'total_processed': self.total_processed,
            'links_discovered': self.links_discovered,
            'elapsed_time': round(self.elapsed_time, 2),
            'pages_per_second': round(self.pages_per_second, 2)
        }


def is_valid_url(url) -> bool:
    """Check if URL is an absolute HTTP(S) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        return all([parsed.scheme in ('http', 'https'), parsed.hostname])
    except ValueError:
        return False


def base_name_from_url(url: str) -> str:
    """Derive a filesystem-safe base name from a URL."""
    parsed = urlparse(url)
    base = parsed.netloc.replace('.', '_').replace(':', '_')
    if parsed.path and parsed.path != '/':
        path_part = parsed.path.strip('/').replace('/', '_')[:30]
        base = f"{base}_{path_part}"
    return base
