"""Run orchestrator: cache check, baseline policy, URL set, then the two capture phases."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from vrt.cache.oracle import CacheOracle
from vrt.cache.snapshot_store import SnapshotStore
from vrt.config_resolver import ResolvedConfig
from vrt.discovery.collector import collect_urls
from vrt.discovery.strategy import DiscoveryStrategy
from vrt.errors import ConfigError, NoUrlsError
from vrt.executor.coordinator import RunCoordinator
from vrt.executor.engine_process import EngineLauncher
from vrt.models.cache import CacheCheck
from vrt.models.config import ViewportConfig, VrtConfig
from vrt.models.run_result import RunResult
from vrt.policy import BaselineDecision, decide_baseline

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_DIR = Path("vrt-snapshots")
DEFAULT_OUTPUT_DIR = Path("vrt-report")
DEFAULT_TMP_DIR = Path("vrt-tmp")


@dataclass
class RunOptions:
    output_dir: Path = DEFAULT_OUTPUT_DIR
    snapshot_dir: Path = DEFAULT_SNAPSHOT_DIR
    tmp_dir: Path = DEFAULT_TMP_DIR
    project: Optional[str] = None
    headed: bool = False
    verbose: bool = False
    update_baseline: bool = False


def select_projects(config: VrtConfig, project: Optional[str]) -> list[ViewportConfig]:
    """All viewports, or the single one named by ``project``."""
    if not project:
        return list(config.viewports)
    selected = [vp for vp in config.viewports if vp.name == project]
    if not selected:
        raise ConfigError(
            f"Unknown project '{project}'. Available: {', '.join(config.viewport_names())}"
        )
    return selected


def clean_artifacts(dirs: Sequence[Path]) -> list[Path]:
    """Remove persisted snapshots, reports and temp files. Returns what was removed."""
    removed = []
    for d in dirs:
        if d.exists():
            shutil.rmtree(d)
            removed.append(d)
            logger.debug("Removed %s", d)
    return removed


class Orchestrator:
    """Coordinates one visual regression run."""

    def __init__(
        self,
        resolved: ResolvedConfig,
        options: RunOptions,
        launcher: Optional[EngineLauncher] = None,
        strategies: Optional[Sequence[DiscoveryStrategy]] = None,
    ):
        self.resolved = resolved
        self.config = resolved.config
        self.options = options
        self.projects = select_projects(self.config, options.project)
        self.store = SnapshotStore(options.snapshot_dir.resolve())
        self.oracle = CacheOracle(self.store)
        self.launcher = launcher or EngineLauncher(stream_output=options.verbose)
        self.strategies = strategies

    def run(self) -> RunResult:
        """Execute the full run and return the aggregated result."""
        return asyncio.run(self._run())

    async def _run(self) -> RunResult:
        logger.info("Reference: %s", self.config.reference_url)
        logger.info("Test: %s", self.config.test_url)

        # Policy is settled before anything touches the network.
        cache = self.oracle.check(self.config, [p.name for p in self.projects])
        decision = decide_baseline(
            has_explicit_reference=self.resolved.has_explicit_reference,
            cache_valid=cache.is_valid,
            force_update=self.options.update_baseline,
        )
        logger.debug("Cache %s (%s), decision: %s", cache.status.value, cache.reason, decision.value)

        urls = await self._url_set(decision, cache)
        if self.options.verbose:
            logger.info("URLs to test:")
            for i, url in enumerate(urls, 1):
                logger.info("  %d. %s", i, url)

        self._prepare_tmp_dir()
        regenerate = decision == BaselineDecision.REGENERATE
        coordinator = RunCoordinator(
            config=self.config,
            store=self.store,
            output_dir=self.options.output_dir.resolve(),
            tmp_dir=self.options.tmp_dir.resolve(),
            projects=self.projects,
            launcher=self.launcher,
            headed=self.options.headed,
        )
        return await coordinator.run(
            urls,
            capture_baseline=regenerate,
            on_baseline=lambda: self.oracle.write_manifest(self.config),
        )

    async def _url_set(self, decision: BaselineDecision, cache: CacheCheck) -> list[str]:
        if decision == BaselineDecision.REUSE:
            urls = self.store.load_urls()
            logger.info("Using cached URLs from previous run (%d URLs)", len(urls))
            return urls

        if self.options.update_baseline:
            logger.info("Updating baseline (regenerating URLs)...")
        elif cache.manifest is not None:
            logger.info("Cache invalid (%s), regenerating URLs...", cache.reason)
        else:
            logger.info("Collecting URLs (first run)...")

        discovery = await collect_urls(self.config, self.strategies)
        logger.info(
            "Found %d URLs, filtered to %d, using top %d (source: %s)",
            discovery.total_before_filter,
            discovery.count_after_filter_before_limit,
            len(discovery.urls),
            discovery.source,
        )
        if not discovery.urls:
            raise NoUrlsError("No URLs found to test")

        self.store.save_urls(discovery.urls)
        return discovery.urls

    def _prepare_tmp_dir(self) -> None:
        tmp_dir = self.options.tmp_dir
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)
        tmp_dir.mkdir(parents=True, exist_ok=True)
