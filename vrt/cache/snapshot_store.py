"""Snapshot store: the persisted URL list, cache manifest and baseline images."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Iterable

from vrt.url_utils import snapshot_key

logger = logging.getLogger(__name__)

URLS_FILE = "urls.json"
MANIFEST_FILE = ".cache-manifest.json"


class SnapshotStore:
    """Owns the layout of the snapshot directory.

    ``urls.json`` and ``.cache-manifest.json`` live at the top level;
    baseline images live under ``<project>/<snapshot key>.png`` and are
    written by the capture engine.
    """

    def __init__(self, snapshot_dir: Path):
        self.snapshot_dir = snapshot_dir

    @property
    def urls_path(self) -> Path:
        return self.snapshot_dir / URLS_FILE

    @property
    def manifest_path(self) -> Path:
        return self.snapshot_dir / MANIFEST_FILE

    def ensure(self) -> None:
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def load_urls(self) -> list[str]:
        """Read the persisted URL list. Raises OSError/ValueError if unreadable."""
        with open(self.urls_path) as f:
            data = json.load(f)
        if not isinstance(data, list) or not all(isinstance(u, str) for u in data):
            raise ValueError(f"{self.urls_path} does not contain a list of URLs")
        return data

    def save_urls(self, urls: list[str]) -> None:
        self.ensure()
        with open(self.urls_path, "w") as f:
            json.dump(urls, f, indent=2)
        logger.debug("Saved %d URLs to %s", len(urls), self.urls_path)

    def baseline_path(self, project: str, url: str) -> Path:
        return self.snapshot_dir / project / f"{snapshot_key(url)}.png"

    def has_baseline_images(self, projects: Iterable[str]) -> bool:
        """True when every listed project has at least one baseline image."""
        projects = list(projects)
        if not projects:
            return False
        for project in projects:
            project_dir = self.snapshot_dir / project
            if not project_dir.is_dir() or not any(project_dir.rglob("*.png")):
                return False
        return True

    def clear_baselines(self, projects: Iterable[str]) -> None:
        for project in projects:
            project_dir = self.snapshot_dir / project
            if project_dir.exists():
                shutil.rmtree(project_dir)
                logger.debug("Removed stale baselines in %s", project_dir)
