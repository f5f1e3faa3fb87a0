"""Result aggregation: turns the engine's results.json into pass/fail counts."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from vrt.engine.report import REPORT_FILE, RESULTS_FILE
from vrt.models.capture import EngineReport
from vrt.models.run_result import RunResult, UrlOutcome

logger = logging.getLogger(__name__)


def parse_results(output_dir: Path, engine_exit_code: int = 0) -> RunResult:
    """Aggregate per-test outcomes from ``<output_dir>/results.json``.

    A missing or malformed file yields zero counts with ``results_error``
    set, so the caller can still report and exit with an error status.
    """
    results_path = output_dir / RESULTS_FILE
    report_path = output_dir / REPORT_FILE
    try:
        with open(results_path) as f:
            report = EngineReport.model_validate(json.load(f))
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("Could not read results from %s: %s", results_path, e)
        return RunResult(
            engine_exit_code=engine_exit_code,
            results_error=str(e),
            report_path=str(report_path) if report_path.exists() else None,
        )

    outcomes = [
        UrlOutcome(
            url=t.url,
            project=t.project,
            passed=t.status == "passed",
            status=t.status,
            message=t.message,
        )
        for t in report.tests
    ]
    passed = sum(1 for o in outcomes if o.passed)
    return RunResult(
        passed=passed,
        failed=len(outcomes) - passed,
        total=len(outcomes),
        outcomes=outcomes,
        engine_exit_code=engine_exit_code,
        report_path=str(report_path),
    )
