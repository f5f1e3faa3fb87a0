"""Two-phase run coordinator: baseline capture from the reference, comparison on the test target."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from vrt.cache.snapshot_store import SnapshotStore
from vrt.models.capture import CaptureMode, CaptureRequest
from vrt.models.config import ViewportConfig, VrtConfig
from vrt.models.run_result import RunResult
from vrt.reporter.results_parser import RESULTS_FILE, parse_results

from .engine_process import EngineLauncher

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 3


def default_retries() -> int:
    return 2 if os.environ.get("CI") else 1


class RunCoordinator:
    """Sequences the optional baseline phase and the mandatory comparison phase.

    Both phases are built from one request template, so they always share
    the URL list, projects and thresholds; only the host and mode differ.
    """

    def __init__(
        self,
        config: VrtConfig,
        store: SnapshotStore,
        output_dir: Path,
        tmp_dir: Path,
        projects: list[ViewportConfig],
        launcher: Optional[EngineLauncher] = None,
        headed: bool = False,
        workers: int = DEFAULT_WORKERS,
        retries: Optional[int] = None,
    ):
        self.config = config
        self.store = store
        self.output_dir = output_dir
        self.tmp_dir = tmp_dir
        self.projects = projects
        self.launcher = launcher or EngineLauncher()
        self.headed = headed
        self.workers = workers
        self.retries = default_retries() if retries is None else retries

    def build_request(self, mode: CaptureMode, base_url: str, urls: list[str]) -> CaptureRequest:
        return CaptureRequest(
            mode=mode,
            base_url=base_url,
            urls=list(urls),
            projects=list(self.projects),
            threshold=self.config.threshold,
            snapshot_dir=str(self.store.snapshot_dir),
            output_dir=str(self.output_dir),
            artifacts_dir=str(self.tmp_dir / "artifacts" / mode.value),
            headed=self.headed,
            workers=self.workers,
            retries=self.retries,
        )

    async def _launch(self, request: CaptureRequest) -> int:
        request_path = self.tmp_dir / f"capture-request-{request.mode.value}.json"
        request.write(request_path)
        return await self.launcher.run(request_path)

    async def capture_baseline(self, urls: list[str]) -> None:
        """Phase 1: capture baseline images from the reference target.

        Always succeeds once the engine has run; a nonzero exit only means
        some pages could not be captured, which the comparison will show.
        """
        project_names = [p.name for p in self.projects]
        self.store.clear_baselines(project_names)
        request = self.build_request(CaptureMode.UPDATE, self.config.reference_url, urls)
        exit_code = await self._launch(request)
        if exit_code != 0:
            logger.warning("Baseline capture exited with %d", exit_code)

    async def compare(self, urls: list[str]) -> RunResult:
        """Phase 2: capture the test target and compare against the baselines."""
        # Drop results left by an earlier run or the baseline phase.
        (self.output_dir / RESULTS_FILE).unlink(missing_ok=True)
        request = self.build_request(CaptureMode.COMPARE, self.config.test_url, urls)
        exit_code = await self._launch(request)
        # Exit status alone cannot tell differences from engine failures.
        return parse_results(self.output_dir, engine_exit_code=exit_code)

    async def run(
        self,
        urls: list[str],
        capture_baseline: bool,
        on_baseline: Optional[Callable[[], None]] = None,
    ) -> RunResult:
        """Run both phases. ``on_baseline`` is called after a baseline capture, before comparing."""
        if capture_baseline:
            logger.info("Creating baseline snapshots from %s", self.config.reference_url)
            await self.capture_baseline(urls)
            logger.info("Baseline created")
            if on_baseline is not None:
                on_baseline()
        else:
            logger.info("Using existing baseline snapshots")

        logger.info("Testing %s", self.config.test_url)
        return await self.compare(urls)
