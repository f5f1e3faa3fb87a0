"""Capture engine entry point: ``python -m vrt.engine --request <file>``.

Exit status: 0 after an update run or a clean comparison, 1 when a
comparison test did not pass.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from vrt.models.capture import CaptureMode, CaptureRequest

from .capture import CaptureEngine
from .report import generate_html_report, write_results

console = Console(stderr=True)


@click.command()
@click.option("--request", "request_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Capture request JSON written by the coordinator")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(request_path: str, verbose: bool) -> None:
    """Capture screenshots for every URL and project in a request."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    request = CaptureRequest.read(request_path)
    report = asyncio.run(CaptureEngine(request).run())

    output_dir = Path(request.output_dir)
    write_results(report, output_dir)
    generate_html_report(report, output_dir)

    if request.mode == CaptureMode.COMPARE and any(t.status != "passed" for t in report.tests):
        sys.exit(1)


if __name__ == "__main__":
    main()
