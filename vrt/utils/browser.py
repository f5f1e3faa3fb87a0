"""Browser helpers: consistent Chromium launch and context settings for capture."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Playwright

# Hosts that commonly serve self-signed certificates during local development.
_LOCAL_HOST_SUFFIXES = ("ddev.site", "localhost")


def should_ignore_https_errors(base_url: str) -> bool:
    host = urlparse(base_url).hostname or ""
    return host.endswith(_LOCAL_HOST_SUFFIXES)


async def launch_browser(
    playwright: Playwright, headless: bool = True, slow_mo: Optional[float] = None
) -> Browser:
    """Launch Chromium for discovery or capture."""
    return await playwright.chromium.launch(
        headless=headless,
        slow_mo=slow_mo,
        args=[
            "--disable-blink-features=AutomationControlled",
            "--hide-scrollbars",
        ],
    )


async def create_capture_context(
    browser: Browser,
    viewport: dict,
    ignore_https_errors: bool = False,
) -> BrowserContext:
    """Create a browser context with deterministic rendering settings.

    Locale, timezone and device scale factor are pinned so baseline and
    candidate captures render identically apart from the host.
    """
    return await browser.new_context(
        viewport=viewport,
        device_scale_factor=1,
        locale="en-US",
        timezone_id="UTC",
        ignore_https_errors=ignore_https_errors,
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
