"""
Tests for orchestrator.py: end-to-end discovery against a fake site.
"""

import asyncio

import pytest

from conftest import FakeSession, ok, redirect, urlset
from linkcrawler.fetcher import PageFetcher
from linkcrawler.orchestrator import CrawlOrchestrator, unique_links
from linkcrawler.run_config import CrawlerRunConfig
from linkcrawler.sitemap import SitemapHarvester

BASE = "https://example.com"


def crawl(config, routes, seed=BASE):
    session = FakeSession(routes)
    orchestrator = CrawlOrchestrator(config, fetcher=PageFetcher(config, session=session))
    return asyncio.run(orchestrator.crawl(seed)), session


# ====================================================================
# Discovery
# ====================================================================

class TestDiscovery:

    def test_seed_links_plus_sitemap(self, config):
        routes = {
            BASE: ok("/a", "/b", "https://other.com/x", url=f"{BASE}/"),
            f"{BASE}/a": ok("/c"),
            f"{BASE}/b": ok(),
            f"{BASE}/sitemap.xml": urlset(f"{BASE}/d"),
        }
        result, _ = crawl(config, routes)
        assert result.links == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c", f"{BASE}/d"]
        assert result.html_links == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]
        assert result.sitemap_links == [f"{BASE}/d"]
        assert result.count == 4

    def test_links_are_unique_and_sorted(self, config):
        routes = {
            BASE: ok("/b", "/a", url=f"{BASE}/"),
            f"{BASE}/a": ok("/b"),
            f"{BASE}/b": ok("/a"),
            f"{BASE}/sitemap.xml": urlset(f"{BASE}/a", f"{BASE}/b"),
        }
        result, _ = crawl(config, routes)
        assert result.links == [f"{BASE}/a", f"{BASE}/b"]

    def test_single_generation_does_not_fetch_grandchildren(self, config):
        routes = {
            BASE: ok("/a", url=f"{BASE}/"),
            f"{BASE}/a": ok("/c"),
            f"{BASE}/c": ok("/d"),
        }
        result, session = crawl(config, routes)
        assert f"{BASE}/c" in result.links
        assert f"{BASE}/d" not in result.links
        assert f"{BASE}/c" not in session.requested
        assert result.stats['generations'] == 1

    def test_fixed_point_follows_until_exhausted(self):
        config = CrawlerRunConfig(rate_delay=0, expansion="fixed_point")
        routes = {
            BASE: ok("/a", url=f"{BASE}/"),
            f"{BASE}/a": ok("/c"),
            f"{BASE}/c": ok("/d"),
            f"{BASE}/d": ok("/a"),
        }
        result, session = crawl(config, routes)
        assert result.links == [f"{BASE}/a", f"{BASE}/c", f"{BASE}/d"]
        assert session.requested.count(f"{BASE}/a") == 1
        assert result.stats['generations'] == 3

    def test_each_page_fetched_once(self, config):
        routes = {
            BASE: ok("/a", "/b", url=f"{BASE}/"),
            f"{BASE}/a": ok("/b"),
            f"{BASE}/b": ok("/a"),
        }
        _, session = crawl(config, routes)
        assert session.requested.count(f"{BASE}/a") == 1
        assert session.requested.count(f"{BASE}/b") == 1


# ====================================================================
# Cap
# ====================================================================

class TestCap:

    def test_html_discovery_capped_sitemap_not(self, config):
        seed_links = [f"/p{i}" for i in range(150)]
        sitemap_links = [f"{BASE}/s{i}" for i in range(20)]
        routes = {
            BASE: ok(*seed_links, url=f"{BASE}/"),
            f"{BASE}/sitemap.xml": urlset(*sitemap_links),
        }
        result, session = crawl(config, routes)
        assert len(result.html_links) == 100
        assert len(result.sitemap_links) == 20
        assert result.count == 120
        # At the cap nothing beyond the seed is fetched
        page_requests = [u for u in session.requested if not u.endswith("sitemap.xml")]
        assert page_requests == [BASE]

    def test_custom_cap(self):
        config = CrawlerRunConfig(rate_delay=0, max_links=5)
        routes = {BASE: ok(*[f"/p{i}" for i in range(10)], url=f"{BASE}/")}
        result, _ = crawl(config, routes)
        assert len(result.html_links) == 5


# ====================================================================
# Home page / redirects
# ====================================================================

class TestHomeLoop:

    def test_links_back_to_home_not_recrawled(self, config):
        routes = {
            BASE: ok("/", "/a", url=f"{BASE}/"),
            f"{BASE}/": ok("/", "/a"),
            f"{BASE}/a": ok("/"),
        }
        result, _ = crawl(config, routes)
        assert result.stats['pages_skipped'] == 1
        assert result.stats['home_page_seen'] is True
        assert result.links == [f"{BASE}/", f"{BASE}/a"]

    def test_login_redirect_loop_terminates(self):
        config = CrawlerRunConfig(rate_delay=0, expansion="fixed_point")
        routes = {
            BASE: ok("/login", "/account", url=f"{BASE}/"),
            f"{BASE}/login": redirect("/"),
            f"{BASE}/account": redirect("/login"),
        }
        result, session = crawl(config, routes)
        assert result.links == [f"{BASE}/account", f"{BASE}/login"]
        assert result.stats['pages_skipped'] == 2
        assert session.requested.count(f"{BASE}/login") == 1


# ====================================================================
# Failures
# ====================================================================

class TestFailures:

    def test_failed_pages_recorded_not_fatal(self, config):
        routes = {
            BASE: ok("/a", "/missing", url=f"{BASE}/"),
            f"{BASE}/a": ok(),
        }
        result, _ = crawl(config, routes)
        assert result.links == [f"{BASE}/a", f"{BASE}/missing"]
        assert result.errors == [{'url': f"{BASE}/missing", 'error': "HTTP 404"}]
        assert result.stats['pages_failed'] == 1

    def test_failed_seed_still_returns_sitemap(self, config):
        routes = {f"{BASE}/sitemap.xml": urlset(f"{BASE}/x")}
        result, _ = crawl(config, routes)
        assert result.links == [f"{BASE}/x"]
        assert result.html_links == []

    def test_invalid_seed(self, config):
        orchestrator = CrawlOrchestrator(config, fetcher=PageFetcher(config, session=FakeSession()))
        with pytest.raises(ValueError):
            asyncio.run(orchestrator.crawl("not a url"))

    def test_unexpected_fetcher_exception_propagates(self, config):
        class ExplodingFetcher(PageFetcher):
            async def extract_links(self, page_url, state):
                if page_url.endswith("/boom"):
                    raise RuntimeError("boom")
                return await super().extract_links(page_url, state)

        session = FakeSession({BASE: ok("/boom", "/fine", url=f"{BASE}/"), f"{BASE}/fine": ok()})
        orchestrator = CrawlOrchestrator(
            config,
            fetcher=ExplodingFetcher(config, session=session),
            harvester=SitemapHarvester(config, session=session),
        )
        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(orchestrator.crawl(BASE))
        assert f"{BASE}/fine" in session.requested


class TestIsolation:

    def test_concurrent_crawls_do_not_share_state(self, config):
        session = FakeSession({
            BASE: ok("/a", url=f"{BASE}/"),
            f"{BASE}/a": ok(),
            "https://other.org": ok("/z", url="https://other.org/"),
            "https://other.org/z": ok(),
        })
        orchestrator = CrawlOrchestrator(config, fetcher=PageFetcher(config, session=session))

        async def both():
            return await asyncio.gather(
                orchestrator.crawl(BASE),
                orchestrator.crawl("https://other.org"),
            )

        first, second = asyncio.run(both())
        assert first.links == [f"{BASE}/a"]
        assert second.links == ["https://other.org/z"]


def test_unique_links_drops_empty():
    assert unique_links(["b", "", "a"], {"a", "c"}) == ["a", "b", "c"]


# ====================================================================
# Encoded paths, seed redirects, home-page ordering
# ====================================================================

class TestEncodedPaths:

    def test_space_and_non_ascii_pages_are_expanded(self):
        config = CrawlerRunConfig(rate_delay=0, expansion="fixed_point")
        routes = {
            BASE: ok("/my page", "/café", url=f"{BASE}/"),
            f"{BASE}/my%20page": ok("/deep-space"),
            f"{BASE}/caf%C3%A9": ok("/deep-cafe"),
            f"{BASE}/deep-space": ok(),
            f"{BASE}/deep-cafe": ok(),
        }
        result, _ = crawl(config, routes)
        assert result.links == [
            f"{BASE}/caf%C3%A9",
            f"{BASE}/deep-cafe",
            f"{BASE}/deep-space",
            f"{BASE}/my%20page",
        ]
        assert result.stats['pages_skipped'] == 0


class TestSeedRedirect:

    def test_seed_redirect_target_is_crawled(self, config):
        routes = {
            BASE: redirect("/en/"),
            f"{BASE}/en/": ok("/a", "/b"),
            f"{BASE}/a": ok(),
            f"{BASE}/b": ok(),
        }
        result, session = crawl(config, routes)
        assert result.links == [f"{BASE}/a", f"{BASE}/b"]
        assert result.stats['pages_skipped'] == 1
        assert result.stats['generations'] == 1
        assert session.requested.count(f"{BASE}/en/") == 1

    def test_seed_redirect_to_home_is_crawled(self, config):
        routes = {
            f"{BASE}/start": redirect("/"),
            f"{BASE}/": ok("/a"),
            f"{BASE}/a": ok(),
        }
        result, _ = crawl(config, routes, seed=f"{BASE}/start")
        assert result.links == [f"{BASE}/a"]
        assert result.stats['home_page_seen'] is True

    def test_only_one_hop_followed(self, config):
        routes = {
            BASE: redirect("/en/"),
            f"{BASE}/en/": redirect("/en/home"),
            f"{BASE}/en/home": ok("/a"),
        }
        result, session = crawl(config, routes)
        assert result.links == []
        assert f"{BASE}/en/home" not in session.requested

    def test_off_origin_seed_redirect_not_followed(self, config):
        routes = {BASE: redirect("https://other.com/")}
        result, session = crawl(config, routes)
        assert result.links == []
        assert result.errors[0]['url'] == BASE
        assert "https://other.com/" not in session.requested


class TestHomeOrdering:

    def test_slow_home_still_harvested_after_redirect_to_it(self, config):
        session = FakeSession(
            {
                f"{BASE}/about": ok("/", "/old"),
                f"{BASE}/old": redirect("/"),
                f"{BASE}/": ok("/products"),
            },
            delays={f"{BASE}/": 0.2},
        )
        orchestrator = CrawlOrchestrator(config, fetcher=PageFetcher(config, session=session))
        result = asyncio.run(orchestrator.crawl(f"{BASE}/about"))

        assert result.links == [f"{BASE}/", f"{BASE}/old", f"{BASE}/products"]
        assert result.stats['pages_skipped'] == 1
        assert result.stats['home_page_seen'] is True
