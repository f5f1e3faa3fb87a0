"""Engine report output: results.json plus a self-contained HTML report."""

from __future__ import annotations

import base64
import html
import json
import logging
from pathlib import Path
from typing import Optional

from vrt.models.capture import CaptureOutcome, EngineReport

logger = logging.getLogger(__name__)

RESULTS_FILE = "results.json"
REPORT_FILE = "index.html"

_STATUS_COLORS = {"passed": "#22c55e", "failed": "#ef4444", "updated": "#6366f1", "error": "#f97316"}


def write_results(report: EngineReport, output_dir: Path) -> Path:
    """Write the machine-readable results file."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / RESULTS_FILE
    with open(path, "w") as f:
        json.dump(report.model_dump(by_alias=True, mode="json"), f, indent=2)
    return path


def _embed_image(path: Optional[str]) -> str:
    """Read a PNG and return a data URI, or an empty string if it is unavailable."""
    if not path:
        return ""
    p = Path(path)
    try:
        if not p.exists() or p.stat().st_size == 0:
            return ""
        data = base64.b64encode(p.read_bytes()).decode()
    except OSError:
        return ""
    return f"data:image/png;base64,{data}"


def _figure(label: str, path: Optional[str]) -> str:
    data_uri = _embed_image(path)
    if not data_uri:
        return ""
    return f'<figure><img src="{data_uri}" alt="{label}"><figcaption>{label}</figcaption></figure>'


def _outcome_section(t: CaptureOutcome) -> str:
    # Failures start expanded so the diff is visible without a click.
    is_open = " open" if t.status in ("failed", "error") else ""
    color = _STATUS_COLORS.get(t.status, "#94a3b8")
    figures = "".join(
        _figure(label, p)
        for label, p in (("Baseline", t.baseline_path), ("Actual", t.actual_path), ("Diff", t.diff_path))
    )
    note = f"<p>{html.escape(t.message)}</p>" if t.message else ""
    return (
        f'<details class="outcome" data-status="{t.status}" style="border-color: {color}"{is_open}>'
        f'<summary><b style="color: {color}">{t.status}</b> '
        f'{html.escape(t.project)} {html.escape(t.url)} '
        f'<small>{t.diff_pixels} px, attempt {t.attempts}, {t.duration_seconds:.1f}s</small></summary>'
        f'{note}<div class="shots">{figures}</div></details>\n'
    )


def generate_html_report(report: EngineReport, output_dir: Path) -> Path:
    """Write ``index.html`` with one expandable section per outcome and its screenshots inlined."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / REPORT_FILE
    counts = ", ".join(
        f"{sum(1 for t in report.tests if t.status == s)} {s}" for s in _STATUS_COLORS
    )
    sections = "".join(_outcome_section(t) for t in report.tests)

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Visual Regression Report: {html.escape(report.base_url)}</title>
<style>
  body {{ font: 14px/1.5 system-ui, sans-serif; margin: 2rem auto; max-width: 1200px; color: #222; }}
  header small {{ color: #666; }}
  .outcome {{ border-left: 4px solid; margin: 0.4rem 0; padding: 0.3rem 0.8rem; background: #fafafa; }}
  .outcome summary {{ cursor: pointer; }}
  .outcome b {{ text-transform: uppercase; }}
  .shots {{ display: flex; gap: 0.8rem; overflow-x: auto; }}
  .shots figure {{ margin: 0; flex: 1 1 0; min-width: 240px; }}
  .shots img {{ width: 100%; border: 1px solid #ddd; }}
  .shots figcaption {{ text-align: center; color: #666; font-size: 12px; }}
</style>
</head>
<body>
<header>
  <h1>Visual Regression Report</h1>
  <small>{report.mode.value} against {html.escape(report.base_url)}, started {html.escape(report.started_at)}, took {report.duration_seconds}s</small>
  <p>{len(report.tests)} total: {counts}</p>
</header>
<main>
{sections}</main>
</body>
</html>
'''

    with open(path, "w", encoding="utf-8") as f:
        f.write(report_html)
    logger.info("HTML report: %s", path)
    return path
