"""Homepage crawler: collects same-host links from the reference target's landing page."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from playwright.async_api import Page, async_playwright

from vrt.models.config import VrtConfig
from vrt.models.discovery import StrategyFailure, StrategyResult
from vrt.url_utils import dedupe, hostname, strip_fragment, strip_trailing_slash
from vrt.utils.browser import launch_browser, should_ignore_https_errors

from .strategy import DiscoveryStrategy

logger = logging.getLogger(__name__)

CRAWL_TIMEOUT_MS = 30000


def normalize_links(
    hrefs: list[str], base_url: str, remove_trailing_slash: bool = True
) -> list[str]:
    """Resolve hrefs against ``base_url`` and keep same-host http(s) links.

    Fragments are always stripped; trailing slashes are stripped (root
    path excepted) when ``remove_trailing_slash`` is set.
    """
    base_host = hostname(base_url)
    links = []
    for href in hrefs:
        try:
            url = urljoin(base_url, href)
            parsed = urlparse(url)
        except ValueError:
            continue
        if parsed.scheme not in ("http", "https") or parsed.hostname != base_host:
            continue
        url = strip_fragment(url)
        if remove_trailing_slash:
            url = strip_trailing_slash(url)
        links.append(url)
    return links


class CrawlStrategy(DiscoveryStrategy):
    """Loads the landing page once and harvests its anchors.

    Only links present on the landing page are followed, whatever
    ``crawlOptions.maxDepth`` says. Errors are absorbed: the result always
    contains at least the reference target itself.
    """

    source = "crawl"

    def __init__(self, timeout_ms: int = CRAWL_TIMEOUT_MS):
        self.timeout_ms = timeout_ms

    async def discover(
        self, base_url: str, config: VrtConfig
    ) -> StrategyResult | StrategyFailure:
        logger.info("Using crawler (homepage links only) on %s", base_url)
        remove_slash = config.crawl_options.remove_trailing_slash
        urls: list[str] = []

        try:
            async with async_playwright() as p:
                browser = await launch_browser(p, headless=True)
                try:
                    context = await browser.new_context(
                        ignore_https_errors=should_ignore_https_errors(base_url),
                    )
                    page = await context.new_page()
                    await page.goto(base_url, wait_until="networkidle", timeout=self.timeout_ms)
                    urls.append(strip_fragment(page.url))
                    hrefs = await self._extract_anchor_links(page)
                    urls.extend(normalize_links(hrefs, base_url, remove_slash))
                finally:
                    await browser.close()
            logger.info("Found %d URLs from homepage", len(dedupe(urls)))
        except Exception as e:
            logger.error("Crawler error: %s", e)

        if not urls:
            urls.append(base_url)
        return StrategyResult(source=self.source, urls=dedupe(urls))

    async def _extract_anchor_links(self, page: Page) -> list[str]:
        """Return the resolved href of every anchor on the page."""
        return await page.evaluate("""() => {
            return Array.from(document.querySelectorAll('a[href]'))
                .map(a => a.href)
                .filter(h =>
                    h &&
                    !h.startsWith('javascript:') &&
                    !h.startsWith('mailto:') &&
                    !h.startsWith('tel:')
                );
        }""")
