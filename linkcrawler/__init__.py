"""
Link Crawler Package
Same-origin link discovery with optional full-page screenshots.

CLI Usage:
    python -m linkcrawler <url> [options]

    Options:
        --capture           Screenshot every discovered page
        --max-links         Cap on links discovered from HTML (default: 100)
        --expansion         single | fixed_point (default: single)
        --rate              Delay after each page fetch (default: 0.5)
        --timeout           Per-request timeout in seconds (default: 10)
        --screenshot-dir    Screenshot output directory (default: screenshots)
        --output-json       Export the payload to a JSON file
"""

from .run_config import CrawlerRunConfig
from .results import CaptureResult, CrawlResult, PageOutcome
from .state import CrawlState
from .link_filter import is_page_link
from .scope import is_in_scope, origin_of
from .fetcher import PageFetcher
from .sitemap import SitemapHarvester
from .orchestrator import CrawlOrchestrator
from .screenshot import ScreenshotCapturer
from .capture_pipeline import capture_all
from .service import InvalidSeedURLError, crawl_site, handle_crawl_request, run

__all__ = [
    'CrawlerRunConfig',
    'CaptureResult',
    'CrawlResult',
    'PageOutcome',
    'CrawlState',
    'is_page_link',
    'is_in_scope',
    'origin_of',
    'PageFetcher',
    'SitemapHarvester',
    'CrawlOrchestrator',
    'ScreenshotCapturer',
    'capture_all',
    # Request boundary
    'InvalidSeedURLError',
    'crawl_site',
    'handle_crawl_request',
    'run',
]

__version__ = '1.0.0'
