"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from vrt.cache.snapshot_store import SnapshotStore
from vrt.discovery.strategy import DiscoveryStrategy
from vrt.models.capture import CaptureMode, CaptureOutcome, CaptureRequest, EngineReport
from vrt.models.config import ViewportConfig, VrtConfig
from vrt.models.discovery import StrategyFailure, StrategyResult


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def viewport_config() -> ViewportConfig:
    """Create a test viewport configuration."""
    return ViewportConfig(name="desktop", width=1280, height=720)


@pytest.fixture
def vrt_config(viewport_config: ViewportConfig) -> VrtConfig:
    """Create a config with distinct reference and test targets."""
    return VrtConfig(
        reference_url="https://production.example.com",
        test_url="https://staging.example.com",
        max_urls=10,
        viewports=[viewport_config],
    )


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Write a camelCase config file and return its path."""
    config_file = tmp_path / "vrt.config.json"
    config_file.write_text(json.dumps({
        "testUrl": "https://staging.example.com",
        "referenceUrl": "https://production.example.com",
        "maxUrls": 5,
        "exclude": ["/admin/*"],
        "threshold": {"maxDiffPixels": 50},
    }))
    return config_file


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def snapshot_store(tmp_path: Path) -> SnapshotStore:
    """Create an empty snapshot store under the temp dir."""
    return SnapshotStore(tmp_path / "vrt-snapshots")


@pytest.fixture
def spec_files(tmp_path: Path) -> list[Path]:
    """Stand-in comparison definition files."""
    spec_dir = tmp_path / "definition"
    spec_dir.mkdir()
    files = []
    for name, content in (("capture.py", "# capture v1\n"), ("vrt.css", "* { caret-color: transparent; }\n")):
        path = spec_dir / name
        path.write_text(content)
        files.append(path)
    return files


@pytest.fixture
def make_png():
    """Factory that writes a solid-color PNG."""

    def _make(path: Path, color=(255, 255, 255), size=(20, 10)) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path)
        return path

    return _make


# ============================================================================
# Fake collaborators
# ============================================================================


class FakeStrategy(DiscoveryStrategy):
    """Discovery strategy returning canned URLs, a failure, or raising."""

    def __init__(self, source: str, urls: Optional[list[str]] = None,
                 failure: Optional[str] = None, exc: Optional[Exception] = None):
        self.source = source
        self.urls = urls or []
        self.failure = failure
        self.exc = exc
        self.calls: list[str] = []

    async def discover(self, base_url, config):
        self.calls.append(base_url)
        if self.exc:
            raise self.exc
        if self.failure:
            return StrategyFailure(source=self.source, reason=self.failure)
        return StrategyResult(source=self.source, urls=list(self.urls))


class FakeLauncher:
    """Stands in for the engine process.

    Update requests write a baseline PNG per URL and project. Compare
    requests write results.json with ``compare_status`` for every test,
    unless ``write_results`` is off.
    """

    def __init__(self, compare_status: str = "passed", exit_code: Optional[int] = None,
                 write_results: bool = True):
        self.compare_status = compare_status
        self.exit_code = exit_code
        self.write_results = write_results
        self.requests: list[CaptureRequest] = []

    async def run(self, request_path: Path) -> int:
        request = CaptureRequest.read(request_path)
        self.requests.append(request)
        if request.mode == CaptureMode.UPDATE:
            return self._update(request)
        return self._compare(request)

    @property
    def modes(self) -> list[CaptureMode]:
        return [r.mode for r in self.requests]

    def _update(self, request: CaptureRequest) -> int:
        store = SnapshotStore(Path(request.snapshot_dir))
        for project in request.projects:
            for url in request.urls:
                path = store.baseline_path(project.name, url)
                path.parent.mkdir(parents=True, exist_ok=True)
                Image.new("RGB", (4, 4), "white").save(path)
        return 0 if self.exit_code is None else self.exit_code

    def _compare(self, request: CaptureRequest) -> int:
        if self.write_results:
            report = EngineReport(
                mode=request.mode,
                base_url=request.base_url,
                started_at="2026-01-01T00:00:00Z",
                tests=[
                    CaptureOutcome(url=url, project=p.name, status=self.compare_status)
                    for p in request.projects
                    for url in request.urls
                ],
            )
            output_dir = Path(request.output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / "results.json").write_text(
                json.dumps(report.model_dump(by_alias=True, mode="json"))
            )
        if self.exit_code is not None:
            return self.exit_code
        return 0 if self.compare_status == "passed" else 1


@pytest.fixture
def fake_strategy():
    """Factory for canned discovery strategies."""
    return FakeStrategy


@pytest.fixture
def fake_launcher():
    """Factory for fake engine launchers."""
    return FakeLauncher
