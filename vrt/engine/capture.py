"""Capture engine: screenshots every URL per project and compares against baselines."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from urllib.parse import urljoin

from playwright.async_api import Browser, Page, async_playwright

from vrt.models.capture import CaptureMode, CaptureOutcome, CaptureRequest, EngineReport
from vrt.models.config import ViewportConfig
from vrt.url_utils import path_and_query, snapshot_key
from vrt.utils.browser import create_capture_context, launch_browser, should_ignore_https_errors

from .comparator import compare_images
from .definition import STYLESHEET_PATH

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30000
SCREENSHOT_TIMEOUT_MS = 10000
SETTLE_MS = 500


def target_url(base_url: str, url: str) -> str:
    """The URL's path+query on ``base_url``'s host."""
    return urljoin(base_url, path_and_query(url))


async def settle_and_screenshot(page: Page, url: str, dest: Path, style: str) -> None:
    """Load a page, let it settle, and save a full-page screenshot."""
    await page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)

    # Fonts, one animation frame, then a short pause for lazy-loaded content
    await page.evaluate("() => document.fonts.ready.then(() => true)")
    await page.evaluate("() => new Promise(resolve => requestAnimationFrame(() => resolve(true)))")
    await page.wait_for_timeout(SETTLE_MS)

    dest.parent.mkdir(parents=True, exist_ok=True)
    await page.screenshot(
        path=str(dest),
        full_page=True,
        animations="disabled",
        caret="hide",
        style=style,
        timeout=SCREENSHOT_TIMEOUT_MS,
    )


class CaptureEngine:
    """Runs one capture request (update or compare) to completion."""

    def __init__(self, request: CaptureRequest):
        self.request = request
        self.snapshot_dir = Path(request.snapshot_dir)
        self.artifacts_dir = Path(request.artifacts_dir)
        self.style = STYLESHEET_PATH.read_text() if STYLESHEET_PATH.exists() else ""

    async def run(self) -> EngineReport:
        req = self.request
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        start = time.time()
        logger.info(
            "%s: %d URLs x %d projects against %s",
            req.mode.value, len(req.urls), len(req.projects), req.base_url,
        )

        async with async_playwright() as p:
            browser = await launch_browser(p, headless=not req.headed, slow_mo=100 if req.headed else None)
            semaphore = asyncio.Semaphore(max(1, req.workers))

            async def _run_one(url: str, project: ViewportConfig) -> CaptureOutcome:
                async with semaphore:
                    return await self._run_test(browser, url, project)

            tests = await asyncio.gather(*[
                _run_one(url, project) for project in req.projects for url in req.urls
            ])
            await browser.close()

        return EngineReport(
            mode=req.mode,
            base_url=req.base_url,
            started_at=started_at,
            duration_seconds=round(time.time() - start, 2),
            tests=list(tests),
        )

    async def _run_test(self, browser: Browser, url: str, project: ViewportConfig) -> CaptureOutcome:
        start = time.time()
        key = snapshot_key(url)
        baseline = self.snapshot_dir / project.name / f"{key}.png"
        attempts_allowed = 1 if self.request.mode == CaptureMode.UPDATE else 1 + self.request.retries

        outcome = None
        for attempt in range(1, attempts_allowed + 1):
            outcome = await self._attempt(browser, url, project, key, baseline)
            outcome.attempts = attempt
            if outcome.status in ("passed", "updated"):
                break
            logger.debug("[%s] %s attempt %d: %s", project.name, url, attempt, outcome.message)

        outcome.duration_seconds = round(time.time() - start, 2)
        logger.info("[%s] %s %s", outcome.status.upper(), project.name, url)
        return outcome

    async def _attempt(
        self, browser: Browser, url: str, project: ViewportConfig, key: str, baseline: Path
    ) -> CaptureOutcome:
        req = self.request
        update = req.mode == CaptureMode.UPDATE
        actual = baseline if update else self.artifacts_dir / project.name / f"{key}-actual.png"

        context = None
        try:
            context = await create_capture_context(
                browser,
                viewport={"width": project.width, "height": project.height},
                ignore_https_errors=should_ignore_https_errors(req.base_url),
            )
            page = await context.new_page()
            await settle_and_screenshot(page, target_url(req.base_url, url), actual, self.style)
        except Exception as e:
            return CaptureOutcome(
                url=url, project=project.name, status="error",
                message=f"Capture failed: {e}", baseline_path=str(baseline),
            )
        finally:
            if context is not None:
                await context.close()

        if update:
            return CaptureOutcome(
                url=url, project=project.name, status="updated",
                message="Baseline written", baseline_path=str(baseline),
            )

        if not baseline.exists():
            return CaptureOutcome(
                url=url, project=project.name, status="failed",
                message="A baseline snapshot does not exist",
                baseline_path=str(baseline), actual_path=str(actual),
            )

        diff = self.artifacts_dir / project.name / f"{key}-diff.png"
        try:
            result = compare_images(baseline, actual, req.threshold, diff_path=diff)
        except (OSError, ValueError) as e:
            return CaptureOutcome(
                url=url, project=project.name, status="error",
                message=f"Comparison failed: {e}",
                baseline_path=str(baseline), actual_path=str(actual),
            )
        return CaptureOutcome(
            url=url,
            project=project.name,
            status="passed" if result.passed else "failed",
            diff_pixels=result.diff_pixels,
            diff_ratio=result.diff_ratio,
            message=result.message,
            baseline_path=str(baseline),
            actual_path=str(actual),
            diff_path=str(diff) if not result.passed and diff.exists() else None,
        )
