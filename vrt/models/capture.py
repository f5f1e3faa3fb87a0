"""Capture engine request and result structures.

The coordinator hands the engine a ``CaptureRequest`` file; the engine
answers with an ``EngineReport`` written to ``results.json``.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field

from .config import ThresholdConfig, ViewportConfig, _CamelModel


class CaptureMode(str, Enum):
    UPDATE = "update"
    COMPARE = "compare"


class CaptureRequest(_CamelModel):
    mode: CaptureMode
    base_url: str
    urls: list[str]
    projects: list[ViewportConfig]
    threshold: ThresholdConfig = Field(default_factory=ThresholdConfig)
    snapshot_dir: str
    output_dir: str
    artifacts_dir: str
    headed: bool = False
    workers: int = 3
    retries: int = 1

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(by_alias=True, mode="json"), f, indent=2)

    @classmethod
    def read(cls, path: str | Path) -> "CaptureRequest":
        with open(path) as f:
            return cls.model_validate(json.load(f))


class CaptureOutcome(_CamelModel):
    url: str
    project: str
    status: str  # passed, failed, updated, error
    diff_pixels: int = 0
    diff_ratio: float = 0.0
    message: str = ""
    baseline_path: Optional[str] = None
    actual_path: Optional[str] = None
    diff_path: Optional[str] = None
    attempts: int = 1
    duration_seconds: float = 0.0


class EngineReport(_CamelModel):
    mode: CaptureMode
    base_url: str
    started_at: str
    duration_seconds: float = 0.0
    tests: list[CaptureOutcome] = Field(default_factory=list)
