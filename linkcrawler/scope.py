"""
Origin Scope
============
Same-origin enforcement for discovered links.

An *origin* is ``scheme://host[:port]`` with the scheme and host lower-cased
and default ports (``:80`` for http, ``:443`` for https) stripped, so that
``https://Example.com:443/x`` and ``https://example.com/y`` share an origin.

Public API
----------
- ``origin_of(url)``               — canonical origin string, or None
- ``is_in_scope(url, base_origin)`` — True if *url* shares *base_origin*
- ``is_origin_root(url, base_origin)`` — True if *url* is the home page
- ``same_page(a, b)``              — True if two URLs address the same page
- ``resolve_href(href, base)``     — absolute URL or None if unparseable
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)


def _strip_default_port(netloc: str, scheme: str) -> str:
    """Remove ``:80`` for http and ``:443`` for https from *netloc*."""
    if ":" not in netloc or netloc.endswith("]"):
        return netloc
    host, _, port = netloc.rpartition(":")
    if scheme == "http" and port == "80":
        return host
    if scheme == "https" and port == "443":
        return host
    return netloc


def origin_of(url: Optional[str]) -> Optional[str]:
    """
    Return the canonical origin of *url*.

    Returns None for empty input, non-HTTP(S) schemes, URLs without a host
    and strings ``urlparse`` refuses (e.g. malformed IPv6 literals).
    """
    if not url:
        return None
    try:
        p = urlparse(url.strip())
    except ValueError:
        return None

    scheme = p.scheme.lower()
    if scheme not in ("http", "https"):
        return None
    if not p.netloc:
        return None

    # Credentials never take part in origin comparison
    netloc = p.netloc.rpartition("@")[2].lower()
    if not netloc:
        return None
    return f"{scheme}://{_strip_default_port(netloc, scheme)}"


def is_in_scope(url: Optional[str], base_origin: str) -> bool:
    """True if *url* belongs to *base_origin* (exact origin match)."""
    candidate = origin_of(url)
    return candidate is not None and candidate == base_origin


def is_origin_root(url: Optional[str], base_origin: str) -> bool:
    """
    True if *url* resolves to the home page of *base_origin*.

    ``https://e.com``, ``https://e.com/`` and ``https://E.com:443/`` are all
    the root; ``https://e.com/?page=2`` is not.
    """
    if not is_in_scope(url, base_origin):
        return False
    p = urlparse(url.strip())
    return p.path in ("", "/") and not p.query and not p.params


def same_page(a: Optional[str], b: Optional[str]) -> bool:
    """
    True if *a* and *b* address the same page.

    Compares origin, path (empty path == ``/``) and query; fragments are
    ignored. ``https://e.com`` and ``https://e.com/`` are the same page.
    """
    origin_a, origin_b = origin_of(a), origin_of(b)
    if origin_a is None or origin_b is None or origin_a != origin_b:
        return False
    pa, pb = urlparse(a.strip()), urlparse(b.strip())
    return (pa.path or "/") == (pb.path or "/") and pa.query == pb.query


def resolve_href(href: str, base: str) -> Optional[str]:
    """
    Resolve *href* against *base*; None when the result cannot be parsed.
    """
    try:
        absolute = urljoin(base, href.strip())
        # urljoin is lazy about netloc validation; force it here
        urlparse(absolute).port
    except ValueError as exc:
        logger.debug(f"[FILTER] Unparseable href {href!r}: {exc}")
        return None
    return absolute
