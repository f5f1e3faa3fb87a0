"""Configuration models for the visual regression runner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vrt.errors import ConfigError, ConfigFileNotFoundError


class _CamelModel(BaseModel):
    # Config files use camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ViewportConfig(_CamelModel):
    name: str
    width: int
    height: int


class CrawlOptions(_CamelModel):
    max_depth: int = 1
    remove_trailing_slash: bool = True


class ThresholdConfig(_CamelModel):
    max_diff_pixels: int = 100
    max_diff_pixel_ratio: float = 0.01


class VrtConfig(_CamelModel):
    # Targets
    reference_url: Optional[str] = None
    test_url: Optional[str] = None

    # URL discovery
    sitemap_path: str = "/sitemap.xml"
    max_urls: int = 25
    exclude: list[str] = Field(default_factory=list)
    include: list[str] = Field(default_factory=lambda: ["*"])
    crawl_options: CrawlOptions = Field(default_factory=CrawlOptions)

    # Capture and comparison
    viewports: list[ViewportConfig] = Field(
        default_factory=lambda: [ViewportConfig(name="desktop", width=1920, height=1080)]
    )
    threshold: ThresholdConfig = Field(default_factory=ThresholdConfig)

    @classmethod
    def load_raw(cls, path: str | Path) -> dict:
        """Read a config file into a plain dict without applying defaults."""
        path = Path(path)
        if not path.exists():
            raise ConfigFileNotFoundError(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        return data

    def viewport_names(self) -> list[str]:
        return [vp.name for vp in self.viewports]
