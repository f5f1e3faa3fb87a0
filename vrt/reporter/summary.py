"""Console summary of a run."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vrt.models.run_result import RunResult


def print_results(result: RunResult, console: Console, verbose: bool = False) -> None:
    table = Table(title="Test Results")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Total", str(result.total))
    table.add_row("Passed", f"[green]{result.passed}[/green]")
    table.add_row("Failed", f"[red]{result.failed}[/red]")
    console.print(table)

    if result.results_error:
        console.print(f"[yellow]Could not read test results: {escape(result.results_error)}[/yellow]")
    elif result.failed > 0:
        console.print(f"\n[red]{result.failed} visual difference(s) detected[/red]")
        if verbose:
            for o in result.outcomes:
                if not o.passed:
                    line = escape(f"[{o.project}] {o.url}: {o.message}")
                    console.print(f"  [red]✗[/red] {line}")
    elif result.total > 0:
        console.print("\n[green]All visual tests passed[/green]")

    if result.report_path:
        console.print(f"\nReport: [blue]{escape(result.report_path)}[/blue]")
