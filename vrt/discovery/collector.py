"""URL collection: runs discovery strategies in order, then filters, dedupes and truncates."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from vrt.models.config import VrtConfig
from vrt.models.discovery import DiscoveryResult, StrategyFailure, StrategyResult
from vrt.url_utils import dedupe, filter_urls, truncate

from .crawler import CrawlStrategy
from .sitemap import SitemapStrategy
from .strategy import DiscoveryStrategy

logger = logging.getLogger(__name__)


def default_strategies() -> list[DiscoveryStrategy]:
    return [SitemapStrategy(), CrawlStrategy()]


async def run_strategies(
    strategies: Sequence[DiscoveryStrategy], base_url: str, config: VrtConfig
) -> StrategyResult:
    """Return the first successful strategy's URLs.

    Never raises: if every strategy fails, the reference target alone is
    returned under the last strategy's source tag.
    """
    last_source = strategies[-1].source if strategies else "crawl"
    for strategy in strategies:
        try:
            outcome = await strategy.discover(base_url, config)
        except Exception as e:
            outcome = StrategyFailure(source=strategy.source, reason=str(e))

        if isinstance(outcome, StrategyResult) and outcome.urls:
            return outcome

        reason = outcome.reason if isinstance(outcome, StrategyFailure) else "no URLs"
        logger.warning("%s discovery failed (%s), trying next strategy", strategy.source, reason)

    logger.warning("All discovery strategies failed, testing %s only", base_url)
    return StrategyResult(source=last_source, urls=[base_url])


async def collect_urls(
    config: VrtConfig, strategies: Optional[Sequence[DiscoveryStrategy]] = None
) -> DiscoveryResult:
    """Discover the URL set for a run from the reference target."""
    base_url = config.reference_url or config.test_url or ""
    found = await run_strategies(
        strategies if strategies is not None else default_strategies(), base_url, config
    )

    total = len(found.urls)
    urls = filter_urls(found.urls, base_url, config.include, config.exclude)
    urls = dedupe(urls)
    filtered_count = len(urls)
    urls = truncate(urls, config.max_urls)

    logger.debug(
        "Discovery via %s: %d found, %d after filtering, %d kept",
        found.source, total, filtered_count, len(urls),
    )
    return DiscoveryResult(
        urls=urls,
        source=found.source,
        total_before_filter=total,
        count_after_filter_before_limit=filtered_count,
    )
