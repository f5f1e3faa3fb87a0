"""Cache validity oracle: decides whether persisted URLs and baselines can be reused."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pydantic import ValidationError

from vrt.engine.definition import COMPARISON_DEFINITION_FILES
from vrt.models.cache import CacheCheck, CacheManifest, CacheStatus
from vrt.models.config import VrtConfig

from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def fingerprint_config(config: VrtConfig) -> str:
    """SHA-256 over the key-sorted JSON form of the effective configuration."""
    canonical = json.dumps(
        config.model_dump(by_alias=True), sort_keys=True, separators=(",", ":")
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


def fingerprint_test_spec(files: Sequence[Path] = COMPARISON_DEFINITION_FILES) -> str:
    """SHA-256 over the packaged comparison definition.

    Changes whenever an upgrade alters how pages are captured or compared.
    A missing file contributes empty content.
    """
    digest = hashlib.sha256()
    for path in files:
        digest.update(path.name.encode())
        digest.update(b"\0")
        if path.exists():
            digest.update(path.read_bytes())
        digest.update(b"\0")
    return digest.hexdigest()


class CacheOracle:
    """Compares the stored manifest with the current fingerprints."""

    def __init__(
        self,
        store: SnapshotStore,
        spec_files: Sequence[Path] = COMPARISON_DEFINITION_FILES,
    ):
        self.store = store
        self.spec_files = spec_files

    def read_manifest(self) -> CacheCheck:
        """Load the manifest; never raises."""
        path = self.store.manifest_path
        if not path.exists():
            return CacheCheck(status=CacheStatus.INVALID, reason="no cache manifest")
        try:
            with open(path) as f:
                manifest = CacheManifest.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Cache manifest %s is unreadable, regenerating: %s", path, e)
            return CacheCheck(status=CacheStatus.ERROR, reason=f"unreadable manifest: {e}")
        logger.debug("Cache timestamp: %s", manifest.timestamp)
        return CacheCheck(status=CacheStatus.VALID, manifest=manifest)

    def check(
        self, config: VrtConfig, projects: Optional[Iterable[str]] = None
    ) -> CacheCheck:
        """Decide whether the persisted URL set and baselines are still usable."""
        result = self.read_manifest()
        if result.status != CacheStatus.VALID:
            return result
        manifest = result.manifest

        if manifest.config_fingerprint != fingerprint_config(config):
            return CacheCheck(
                status=CacheStatus.INVALID, reason="configuration changed", manifest=manifest
            )
        if manifest.test_spec_fingerprint != fingerprint_test_spec(self.spec_files):
            return CacheCheck(
                status=CacheStatus.INVALID, reason="comparison definition changed", manifest=manifest
            )

        try:
            self.store.load_urls()
        except (OSError, ValueError) as e:
            logger.warning("Cached URL list is unreadable: %s", e)
            return CacheCheck(
                status=CacheStatus.INVALID, reason="cached URL list unreadable", manifest=manifest
            )

        projects = list(projects) if projects is not None else config.viewport_names()
        if not self.store.has_baseline_images(projects):
            return CacheCheck(
                status=CacheStatus.INVALID, reason="baseline images missing", manifest=manifest
            )

        return CacheCheck(status=CacheStatus.VALID, manifest=manifest)

    def is_valid(self, config: VrtConfig, projects: Optional[Iterable[str]] = None) -> bool:
        return self.check(config, projects).is_valid

    def write_manifest(self, config: VrtConfig) -> CacheManifest:
        """Persist the current fingerprints. Call only after a successful regeneration."""
        manifest = CacheManifest(
            config_fingerprint=fingerprint_config(config),
            test_spec_fingerprint=fingerprint_test_spec(self.spec_files),
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )
        self.store.ensure()
        with open(self.store.manifest_path, "w") as f:
            json.dump(manifest.model_dump(by_alias=True), f, indent=2)
        logger.debug("Saved cache manifest to %s", self.store.manifest_path)
        return manifest
