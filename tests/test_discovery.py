"""Tests for URL discovery: sitemap, homepage crawler, and the collector."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vrt.discovery.collector import collect_urls, run_strategies
from vrt.discovery.crawler import CrawlStrategy, normalize_links
from vrt.discovery.sitemap import SitemapStrategy, parse_sitemap
from vrt.models.config import VrtConfig
from vrt.models.discovery import StrategyFailure, StrategyResult

BASE = "https://production.example.com"

URLSET = f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>{BASE}/</loc></url>
  <url><loc>{BASE}/about</loc></url>
  <url><loc><![CDATA[{BASE}/search?q=a&amp;page=2]]></loc></url>
</urlset>"""

SITEMAP_INDEX = f"""<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>{BASE}/sitemap-pages.xml</loc></sitemap>
  <sitemap><loc>{BASE}/sitemap-broken.xml</loc></sitemap>
</sitemapindex>"""


def _playwright_cm(p):
    """Mimic ``async_playwright()`` as an async context manager yielding ``p``."""
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=p)
    cm.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=cm)


def _response(status=200, text=""):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status = status
    resp.text = AsyncMock(return_value=text)
    return resp


def _request_context(responses: dict):
    """APIRequestContext mock serving ``responses`` keyed by URL (404 otherwise)."""
    request = MagicMock()
    request.get = AsyncMock(side_effect=lambda url, timeout=None: responses.get(url, _response(404)))
    request.dispose = AsyncMock()
    p = MagicMock()
    p.request.new_context = AsyncMock(return_value=request)
    return p, request


# ============================================================================
# Sitemap
# ============================================================================


class TestParseSitemap:
    """Tests for parse_sitemap."""

    def test_urlset(self):
        locs, is_index = parse_sitemap(URLSET)
        assert is_index is False
        assert locs == [f"{BASE}/", f"{BASE}/about", f"{BASE}/search?q=a&page=2"]

    def test_index(self):
        locs, is_index = parse_sitemap(SITEMAP_INDEX)
        assert is_index is True
        assert len(locs) == 2

    def test_no_locs(self):
        assert parse_sitemap("<html><body>Not found</body></html>") == ([], False)


class TestSitemapStrategy:
    """Tests for SitemapStrategy.discover with the request context mocked."""

    @pytest.mark.asyncio
    async def test_urlset(self):
        p, request = _request_context({f"{BASE}/sitemap.xml": _response(text=URLSET)})
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            result = await SitemapStrategy().discover(BASE, VrtConfig())

        assert isinstance(result, StrategyResult)
        assert result.source == "sitemap"
        assert len(result.urls) == 3
        request.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_custom_sitemap_path(self):
        p, request = _request_context({f"{BASE}/custom/map.xml": _response(text=URLSET)})
        config = VrtConfig(sitemap_path="/custom/map.xml")
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            result = await SitemapStrategy().discover(BASE, config)
        assert isinstance(result, StrategyResult)

    @pytest.mark.asyncio
    async def test_index_follows_children_and_skips_failures(self):
        p, request = _request_context({
            f"{BASE}/sitemap.xml": _response(text=SITEMAP_INDEX),
            f"{BASE}/sitemap-pages.xml": _response(text=URLSET),
        })
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            result = await SitemapStrategy().discover(BASE, VrtConfig())

        assert isinstance(result, StrategyResult)
        assert result.urls[1] == f"{BASE}/about"
        assert request.get.await_count == 3

    @pytest.mark.asyncio
    async def test_http_error_is_failure(self):
        p, _ = _request_context({})
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            result = await SitemapStrategy().discover(BASE, VrtConfig())
        assert isinstance(result, StrategyFailure)
        assert "404" in result.reason

    @pytest.mark.asyncio
    async def test_empty_sitemap_is_failure(self):
        p, _ = _request_context({f"{BASE}/sitemap.xml": _response(text="<urlset></urlset>")})
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            result = await SitemapStrategy().discover(BASE, VrtConfig())
        assert isinstance(result, StrategyFailure)

    @pytest.mark.asyncio
    async def test_ignores_https_errors_for_local_hosts(self):
        local = "https://mysite.ddev.site"
        p, _ = _request_context({f"{local}/sitemap.xml": _response(text=URLSET)})
        with patch("vrt.discovery.sitemap.async_playwright", _playwright_cm(p)):
            await SitemapStrategy().discover(local, VrtConfig())
        p.request.new_context.assert_awaited_once_with(ignore_https_errors=True)


# ============================================================================
# Crawler
# ============================================================================


class TestNormalizeLinks:
    """Tests for normalize_links."""

    def test_resolves_relative_and_filters_hosts(self):
        hrefs = ["/about/", "https://other.com/x", "contact", "mailto:a@b.c"]
        assert normalize_links(hrefs, f"{BASE}/") == [f"{BASE}/about", f"{BASE}/contact"]

    def test_strips_fragments(self):
        assert normalize_links([f"{BASE}/page#section"], BASE) == [f"{BASE}/page"]

    def test_keeps_trailing_slash_when_disabled(self):
        assert normalize_links(["/about/"], BASE, remove_trailing_slash=False) == [f"{BASE}/about/"]

    def test_root_keeps_slash(self):
        assert normalize_links(["/"], BASE) == [f"{BASE}/"]


class TestCrawlStrategy:
    """Tests for CrawlStrategy.discover with the browser mocked."""

    @pytest.mark.asyncio
    async def test_collects_homepage_links(self):
        page = MagicMock()
        page.url = f"{BASE}/#hero"
        page.goto = AsyncMock()
        page.evaluate = AsyncMock(return_value=[
            f"{BASE}/about/", f"{BASE}/about#team", "https://other.com/x", f"{BASE}/contact",
        ])
        context = MagicMock()
        context.new_page = AsyncMock(return_value=page)
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        browser.close = AsyncMock()

        with patch("vrt.discovery.crawler.async_playwright", _playwright_cm(MagicMock())), \
             patch("vrt.discovery.crawler.launch_browser", AsyncMock(return_value=browser)):
            result = await CrawlStrategy().discover(BASE, VrtConfig())

        assert result.source == "crawl"
        assert result.urls == [f"{BASE}/", f"{BASE}/about", f"{BASE}/contact"]
        page.goto.assert_awaited_once()
        assert page.goto.await_args.kwargs["wait_until"] == "networkidle"
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_falls_back_to_base_url(self):
        with patch("vrt.discovery.crawler.async_playwright", _playwright_cm(MagicMock())), \
             patch("vrt.discovery.crawler.launch_browser", AsyncMock(side_effect=RuntimeError("no browser"))):
            result = await CrawlStrategy().discover(BASE, VrtConfig())

        assert isinstance(result, StrategyResult)
        assert result.urls == [BASE]


# ============================================================================
# Collector
# ============================================================================


class TestRunStrategies:
    """Tests for ordered strategy execution."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self, fake_strategy):
        first = fake_strategy("sitemap", urls=[f"{BASE}/a"])
        second = fake_strategy("crawl", urls=[f"{BASE}/b"])
        result = await run_strategies([first, second], BASE, VrtConfig())
        assert result.source == "sitemap"
        assert second.calls == []

    @pytest.mark.asyncio
    async def test_failure_moves_to_next(self, fake_strategy):
        first = fake_strategy("sitemap", failure="HTTP 404")
        second = fake_strategy("crawl", urls=[f"{BASE}/b"])
        result = await run_strategies([first, second], BASE, VrtConfig())
        assert result == StrategyResult(source="crawl", urls=[f"{BASE}/b"])

    @pytest.mark.asyncio
    async def test_exception_is_contained(self, fake_strategy):
        first = fake_strategy("sitemap", exc=RuntimeError("boom"))
        second = fake_strategy("crawl", urls=[f"{BASE}/b"])
        result = await run_strategies([first, second], BASE, VrtConfig())
        assert result.source == "crawl"

    @pytest.mark.asyncio
    async def test_all_fail_returns_base_url(self, fake_strategy):
        strategies = [
            fake_strategy("sitemap", failure="HTTP 500"),
            fake_strategy("crawl", exc=RuntimeError("boom")),
        ]
        result = await run_strategies(strategies, BASE, VrtConfig())
        assert result == StrategyResult(source="crawl", urls=[BASE])


class TestCollectUrls:
    """Tests for collect_urls filtering, deduplication and truncation."""

    @pytest.mark.asyncio
    async def test_pipeline_order(self, fake_strategy, vrt_config):
        urls = [f"{BASE}/p{i}" for i in range(12)]
        urls += [f"{BASE}/p0", f"{BASE}/admin/x", "https://elsewhere.com/p1"]
        config = vrt_config.model_copy(update={"exclude": ["/admin/*"], "max_urls": 5})

        result = await collect_urls(config, [fake_strategy("sitemap", urls=urls)])

        assert result.source == "sitemap"
        assert result.total_before_filter == 15
        assert result.count_after_filter_before_limit == 12
        assert result.urls == [f"{BASE}/p{i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_discovers_from_reference(self, fake_strategy, vrt_config):
        strategy = fake_strategy("sitemap", urls=[f"{BASE}/a"])
        await collect_urls(vrt_config, [strategy])
        assert strategy.calls == [vrt_config.reference_url]

    @pytest.mark.asyncio
    async def test_everything_filtered_out(self, fake_strategy, vrt_config):
        config = vrt_config.model_copy(update={"include": ["/blog/*"]})
        result = await collect_urls(config, [fake_strategy("sitemap", urls=[f"{BASE}/shop"])])
        assert result.urls == []
        assert result.total_before_filter == 1
