"""Files that define how pages are captured and compared.

Their combined hash is the test-spec fingerprint stored in the cache
manifest; editing any of them invalidates existing baselines.
"""

from __future__ import annotations

from pathlib import Path

ENGINE_DIR = Path(__file__).parent
STYLESHEET_PATH = ENGINE_DIR / "vrt.css"

COMPARISON_DEFINITION_FILES = (
    ENGINE_DIR / "capture.py",
    ENGINE_DIR / "comparator.py",
    STYLESHEET_PATH,
)
