"""
Link Filter
===========
Lexical classification of raw ``href`` values found in anchor elements.

The filter never resolves or fetches anything: it decides, purely from the
string, whether a candidate looks like a crawlable page link. Relative to
absolute resolution and the same-origin check happen in the fetcher.

Public API
----------
- ``is_page_link(href)``   — True if *href* looks like a navigational page link
- ``NON_PAGE_EXTENSIONS``  — closed denylist of non-page file extensions
- ``BLOCKED_PATH_SEGMENTS`` — admin / CDN / email-obfuscation path segments
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------
# Denylists
# -----------------------------------------------------------------------

# Images, media, documents, archives, executables, stylesheets/scripts/data.
NON_PAGE_EXTENSIONS = (
    '.pdf', '.jpg', '.jpeg', '.png', '.gif', '.svg', '.webp', '.ico',
    '.mp4', '.mp3', '.avi', '.mov', '.wmv',
    '.zip', '.rar', '.exe', '.dmg',
    '.css', '.js', '.json', '.xml', '.csv',
    '.xlsx', '.doc', '.docx', '.ppt', '.pptx',
)

# Admin consoles, CDN internals and the Cloudflare email-obfuscation endpoint.
BLOCKED_PATH_SEGMENTS = (
    '/wp-admin',
    '/cdn-cgi/',
    '/email-protection',
)

_NOOP_SCRIPT_LINK = 'javascript:void(0)'


def is_page_link(href: Optional[str]) -> bool:
    """
    Return True if *href* is a crawlable page link.

    Rejected:
    - empty or missing values
    - fragment-only links (``#top``) and any href carrying a ``#`` fragment
    - the ``javascript:void(0)`` no-op pseudo-link
    - admin, CDN and email-obfuscation paths
    - anything containing a denylisted file extension (case-insensitive)
    """
    if not href:
        return False

    if href.startswith('#') or href.startswith(_NOOP_SCRIPT_LINK):
        return False

    if '#' in href:
        return False

    lowered = href.lower()

    for segment in BLOCKED_PATH_SEGMENTS:
        if segment in lowered:
            return False

    # Substring match, not suffix: "/files/report.pdf?dl=1" is still a PDF
    for ext in NON_PAGE_EXTENSIONS:
        if ext in lowered:
            return False

    return True
