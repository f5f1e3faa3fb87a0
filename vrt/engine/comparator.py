"""Pixel comparison of a capture against its baseline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageChops

from vrt.models.config import ThresholdConfig

# A pixel differs when any channel moves by more than this share of full scale.
CHANNEL_THRESHOLD = 0.2


@dataclass
class ComparisonResult:
    passed: bool
    diff_pixels: int
    diff_ratio: float
    message: str


def allowed_diff_pixels(threshold: ThresholdConfig, total_pixels: int) -> int:
    """Both limits apply; the stricter one wins."""
    by_ratio = int(threshold.max_diff_pixel_ratio * total_pixels)
    return min(threshold.max_diff_pixels, by_ratio)


def compare_images(
    baseline_path: Path,
    actual_path: Path,
    threshold: ThresholdConfig,
    diff_path: Optional[Path] = None,
) -> ComparisonResult:
    """Compare two screenshots and optionally write a diff image on failure."""
    with Image.open(baseline_path) as b, Image.open(actual_path) as a:
        baseline = b.convert("RGB")
        actual = a.convert("RGB")

    if baseline.size != actual.size:
        return ComparisonResult(
            passed=False,
            diff_pixels=0,
            diff_ratio=1.0,
            message=(
                f"Expected an image {baseline.width}px by {baseline.height}px, "
                f"received {actual.width}px by {actual.height}px"
            ),
        )

    total = baseline.width * baseline.height
    if total == 0:
        return ComparisonResult(True, 0, 0.0, "Empty images")

    cutoff = int(255 * CHANNEL_THRESHOLD)
    channels = ImageChops.difference(baseline, actual).split()
    mask = channels[0].point(lambda v: 255 if v > cutoff else 0)
    for channel in channels[1:]:
        mask = ImageChops.lighter(mask, channel.point(lambda v: 255 if v > cutoff else 0))

    diff_pixels = mask.histogram()[255]
    diff_ratio = diff_pixels / total
    allowed = allowed_diff_pixels(threshold, total)
    passed = diff_pixels <= allowed
    message = f"{diff_pixels} pixels differ ({diff_ratio:.2%}), allowed {allowed}"

    if not passed and diff_path is not None:
        write_diff_image(baseline, mask, diff_path)

    return ComparisonResult(passed, diff_pixels, diff_ratio, message)


def write_diff_image(baseline: Image.Image, mask: Image.Image, diff_path: Path) -> None:
    """Faded baseline with differing pixels painted red."""
    diff_path.parent.mkdir(parents=True, exist_ok=True)
    faded = Image.blend(baseline.convert("L").convert("RGB"), Image.new("RGB", baseline.size, "white"), 0.7)
    red = Image.new("RGB", baseline.size, (255, 0, 0))
    Image.composite(red, faded, mask).save(diff_path)
