"""CLI entry point for the visual regression runner."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from vrt.config_resolver import resolve_config
from vrt.errors import BaselineAmbiguityError, VrtError
from vrt.models.run_result import EXIT_ERROR, EXIT_OK
from vrt.orchestrator import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SNAPSHOT_DIR,
    DEFAULT_TMP_DIR,
    Orchestrator,
    RunOptions,
    clean_artifacts,
)
from vrt.reporter.summary import print_results

console = Console()

RUN_EPILOG = """\b
Examples:
  # Compare staging against itself (first run needs --update-baseline)
  vrt run --test https://staging.example.com --update-baseline

\b
  # Compare staging against production
  vrt run --reference https://production.com --test https://staging.com

\b
  # Config file only (contains testUrl and referenceUrl)
  vrt run --config ./vrt.config.json

\b
  # Config file plus a URL override
  vrt run --test https://preview-123.staging.com --config ./vrt.config.json

\b
Directories:
  vrt-snapshots/  Baseline snapshots, URL list and cache manifest (cache this!)
  vrt-report/     HTML report and results.json
  vrt-tmp/        Temporary capture artifacts (cleared on each run)
"""


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
def cli() -> None:
    """Visual regression testing against a reference site."""


@cli.command(epilog=RUN_EPILOG)
@click.option("--reference", help="Reference URL (defaults to the test URL or config)")
@click.option("--test", "test_url", help="Test URL")
@click.option("--config", "-c", "config_path", help="Path to config file with testUrl/referenceUrl")
@click.option("--output", "-o", default=str(DEFAULT_OUTPUT_DIR), show_default=True,
              help="Output directory for the report")
@click.option("--max-urls", type=int, help="Override config maxUrls")
@click.option("--project", help="Viewport project to run (default: all)")
@click.option("--verbose", "-v", is_flag=True, help="Detailed logging")
@click.option("--headed", is_flag=True, help="Run the browser in headed mode (visible)")
@click.option("--update-baseline", is_flag=True, help="Force regenerate URLs and baseline snapshots")
@click.option("--clean", is_flag=True, help="Remove snapshots, reports and temp files, then exit")
def run(
    reference: str | None,
    test_url: str | None,
    config_path: str | None,
    output: str,
    max_urls: int | None,
    project: str | None,
    verbose: bool,
    headed: bool,
    update_baseline: bool,
    clean: bool,
) -> None:
    """Capture a baseline from the reference and compare the test site against it."""
    setup_logging(verbose)

    if clean:
        removed = clean_artifacts([DEFAULT_SNAPSHOT_DIR, Path(output), DEFAULT_TMP_DIR])
        for path in removed:
            console.print(f"  Removed: {path}/")
        console.print("[green]Clean complete[/green]")
        sys.exit(EXIT_OK)

    if not config_path and not test_url:
        raise click.UsageError("Either --config or --test is required")

    try:
        resolved = resolve_config(
            config_path=config_path,
            test_url=test_url,
            reference_url=reference,
            max_urls=max_urls,
        )
        options = RunOptions(
            output_dir=Path(output),
            project=project,
            headed=headed,
            verbose=verbose,
            update_baseline=update_baseline,
        )
        console.print("[bold]Starting Visual Regression Testing[/bold]")
        if verbose:
            console.print(f"  Snapshots: {options.snapshot_dir.resolve()}")
            console.print(f"  Output: {options.output_dir.resolve()}")
        result = Orchestrator(resolved, options).run()
    except BaselineAmbiguityError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        console.print("  Either:")
        for i, option in enumerate(e.remediations, 1):
            console.print(f"  {i}. {escape(option)}")
        sys.exit(EXIT_ERROR)
    except VrtError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(EXIT_ERROR)
    except Exception as e:
        # Exit 1 means visual differences; anything unexpected is an execution error.
        console.print(f"\n[red]Unexpected error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(EXIT_ERROR)

    print_results(result, console, verbose=verbose)
    sys.exit(result.exit_code)


if __name__ == "__main__":
    cli()
