"""Config resolution: merges defaults, the config file, and call-site overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from vrt.errors import ConfigError
from vrt.models.config import VrtConfig

logger = logging.getLogger(__name__)


@dataclass
class ResolvedConfig:
    """The effective configuration plus how its reference target was chosen."""

    config: VrtConfig
    has_explicit_reference: bool
    source_path: Optional[Path] = None

    @property
    def reference_url(self) -> str:
        return self.config.reference_url or ""

    @property
    def test_url(self) -> str:
        return self.config.test_url or ""


def deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into ``base`` key by key, recursing into nested dicts.

    Lists and scalars in ``override`` replace the base value whole.
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _user_keys(data: dict, origin: str) -> dict:
    """Normalize user-supplied keys to aliases, keeping only what was actually set."""
    try:
        partial = VrtConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {origin}: {e}") from e
    return partial.model_dump(by_alias=True, exclude_unset=True)


def _is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_config(config: VrtConfig) -> None:
    """Raise ConfigError if the effective configuration cannot drive a run."""
    if not config.test_url:
        raise ConfigError("testUrl is required")
    if not config.reference_url:
        raise ConfigError("referenceUrl is required")

    for field_name, value in (("referenceUrl", config.reference_url), ("testUrl", config.test_url)):
        if not _is_valid_url(value):
            raise ConfigError(f"Invalid URL format in {field_name}: {value}")

    if not config.viewports:
        raise ConfigError("At least one viewport must be defined")
    for vp in config.viewports:
        if not vp.name or vp.width <= 0 or vp.height <= 0:
            raise ConfigError(f"Invalid viewport configuration: {vp.model_dump(by_alias=True)}")

    ratio = config.threshold.max_diff_pixel_ratio
    if ratio < 0 or ratio > 1:
        raise ConfigError("maxDiffPixelRatio must be between 0 and 1")

    if config.max_urls <= 0:
        raise ConfigError("maxUrls must be a positive integer")


def resolve_config(
    config_path: str | Path | None = None,
    test_url: str | None = None,
    reference_url: str | None = None,
    max_urls: int | None = None,
) -> ResolvedConfig:
    """Build and validate the effective configuration for one invocation.

    Precedence, lowest first: built-in defaults, the config file, then the
    explicit arguments. Nested sections merge per field. When no reference
    target is named anywhere the test target doubles as the reference
    ("implicit reference" mode).
    """
    merged: dict[str, Any] = VrtConfig().model_dump(by_alias=True)
    source_path = None

    if config_path:
        source_path = Path(config_path).resolve()
        raw = VrtConfig.load_raw(source_path)
        merged = deep_merge(merged, _user_keys(raw, str(source_path)))
        logger.debug("Loaded config file %s", source_path)

    overrides: dict[str, Any] = {}
    if test_url:
        overrides["testUrl"] = test_url
    if reference_url:
        overrides["referenceUrl"] = reference_url
    if max_urls is not None:
        overrides["maxUrls"] = max_urls
    merged = deep_merge(merged, overrides)

    has_explicit_reference = bool(merged.get("referenceUrl"))
    if not has_explicit_reference and merged.get("testUrl"):
        merged["referenceUrl"] = merged["testUrl"]
        logger.debug("No reference URL given, using test URL as implicit reference")

    try:
        config = VrtConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    validate_config(config)
    return ResolvedConfig(
        config=config,
        has_explicit_reference=has_explicit_reference,
        source_path=source_path,
    )
