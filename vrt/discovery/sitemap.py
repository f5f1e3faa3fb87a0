"""Sitemap discovery: fetches sitemap.xml (and one level of sitemap indexes)."""

from __future__ import annotations

import html
import logging
import re
from urllib.parse import urljoin

from playwright.async_api import APIRequestContext, async_playwright
from playwright.async_api import Error as PlaywrightError

from vrt.models.config import VrtConfig
from vrt.models.discovery import StrategyFailure, StrategyResult
from vrt.utils.browser import should_ignore_https_errors

from .strategy import DiscoveryStrategy

logger = logging.getLogger(__name__)

SITEMAP_TIMEOUT_MS = 15000

_LOC_RE = re.compile(
    r"<loc>\s*(?:<!\[CDATA\[)?\s*(.*?)\s*(?:\]\]>)?\s*</loc>", re.IGNORECASE | re.DOTALL
)


class SitemapError(Exception):
    """The sitemap could not be fetched or contained no URLs."""


def parse_sitemap(xml_text: str) -> tuple[list[str], bool]:
    """Extract ``<loc>`` entries from a sitemap document.

    Returns the locations and whether the document is a sitemap index
    (in which case the locations are child sitemaps, not pages).
    """
    is_index = re.search(r"<sitemapindex[\s>]", xml_text, re.IGNORECASE) is not None
    locs = [html.unescape(m) for m in _LOC_RE.findall(xml_text) if m.strip()]
    return locs, is_index


class SitemapStrategy(DiscoveryStrategy):
    source = "sitemap"

    def __init__(self, timeout_ms: int = SITEMAP_TIMEOUT_MS):
        self.timeout_ms = timeout_ms

    async def discover(
        self, base_url: str, config: VrtConfig
    ) -> StrategyResult | StrategyFailure:
        sitemap_url = urljoin(base_url, config.sitemap_path or "/sitemap.xml")
        logger.info("Fetching sitemap %s", sitemap_url)
        try:
            async with async_playwright() as p:
                request = await p.request.new_context(
                    ignore_https_errors=should_ignore_https_errors(base_url),
                )
                try:
                    urls = await self._collect(request, sitemap_url)
                finally:
                    await request.dispose()
        except (PlaywrightError, SitemapError) as e:
            return StrategyFailure(source=self.source, reason=str(e))

        if not urls:
            return StrategyFailure(source=self.source, reason="No URLs found in sitemap")
        return StrategyResult(source=self.source, urls=urls)

    async def _collect(self, request: APIRequestContext, sitemap_url: str) -> list[str]:
        locs, is_index = parse_sitemap(await self._fetch(request, sitemap_url))
        if not is_index:
            return locs

        logger.debug("Sitemap index with %d child sitemaps", len(locs))
        urls: list[str] = []
        for child in locs:
            try:
                child_locs, _ = parse_sitemap(await self._fetch(request, child))
            except (PlaywrightError, SitemapError) as e:
                logger.debug("Skipping child sitemap %s: %s", child, e)
                continue
            urls.extend(child_locs)
        return urls

    async def _fetch(self, request: APIRequestContext, url: str) -> str:
        resp = await request.get(url, timeout=self.timeout_ms)
        if not resp.ok:
            raise SitemapError(f"HTTP {resp.status} for {url}")
        return await resp.text()
