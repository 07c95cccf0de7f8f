"""
Shared fixtures: an in-memory stand-in for ``requests.Session``.

Routes map a URL to a ``FakeResponse`` (or to an exception instance, which
is raised when the URL is requested). Unrouted URLs answer 404.
"""

import time

import pytest
import requests
from requests.utils import requote_uri

from linkcrawler.run_config import CrawlerRunConfig


class FakeResponse:
    def __init__(self, status_code=200, text="", url=None, headers=None, content=None):
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = headers or {}
        self.content = content if content is not None else text.encode("utf-8")

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")


class FakeSession:
    """
    Requested URLs are requoted the way ``requests`` prepares them, so routes
    must be keyed by the percent-encoded form. *delays* maps a URL to seconds
    slept before answering.
    """

    def __init__(self, routes=None, delays=None):
        self.routes = dict(routes or {})
        self.delays = dict(delays or {})
        self.headers = {}
        self.requested = []
        self.closed = False

    def get(self, url, timeout=None, allow_redirects=True):
        url = requote_uri(url)
        self.requested.append(url)
        if url in self.delays:
            time.sleep(self.delays[url])
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404, url=url)
        if isinstance(route, BaseException):
            raise route
        if route.url is None:
            route.url = url
        return route

    def close(self):
        self.closed = True


def html_page(*hrefs):
    anchors = "".join(f'<a href="{h}">link</a>' for h in hrefs)
    return f"<html><body>{anchors}</body></html>"


def ok(*hrefs, url=None):
    return FakeResponse(200, html_page(*hrefs), url=url)


def redirect(location):
    return FakeResponse(302, "", headers={"Location": location})


def urlset(*locs, namespace=True):
    ns = ' xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"' if namespace else ""
    body = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return FakeResponse(200, f'<?xml version="1.0" encoding="UTF-8"?><urlset{ns}>{body}</urlset>')


def sitemap_index(*locs):
    body = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return FakeResponse(
        200,
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</sitemapindex>',
    )


@pytest.fixture
def config():
    """Fast config: no politeness delay."""
    return CrawlerRunConfig(rate_delay=0)
