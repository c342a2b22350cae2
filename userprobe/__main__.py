"""CLI for userprobe.

Usage:
    python -m userprobe list                                   # Show available suites
    python -m userprobe run user_api                           # Run against the default target
    python -m userprobe run user_api -u http://a:3333 -u http://b:3333
    python -m userprobe score user_api                         # Compare latest runs per target
    python -m userprobe results                                # List all stored runs
    python -m userprobe report                                 # Generate RESULTS.md history
    python -m userprobe note <timestamp> <text>                # Annotate a run
"""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from userprobe.config import load_settings
from userprobe.runner import run_suite, run_targets
from userprobe.scorer import generate_report, list_all_results, load_scorecard, render_scorecard, save_note
from userprobe.suites import list_suites, load_suite

app = typer.Typer(
    name="userprobe",
    help="Black-box probes for a user-management HTTP API",
    no_args_is_help=True,
)
console = Console(stderr=True)


@app.command("list")
def cmd_list() -> None:
    """Show available suites."""
    suites = list_suites()
    if not suites:
        console.print("[yellow]No suites found.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Available Suites", show_header=True, header_style="bold")
    table.add_column("Name", style="green", min_width=15)
    table.add_column("Description", min_width=30)
    table.add_column("Probes", justify="right")
    table.add_column("Timeout", justify="right")

    for s in suites:
        table.add_row(s.name, s.description, str(s.total_tests), f"{s.timeout_s}s")

    console.print()
    console.print(table)
    console.print()


@app.command("run")
def cmd_run(
    suite: str = typer.Argument(help="Suite name (e.g., 'user_api')"),
    base_url: Optional[List[str]] = typer.Option(
        None, "--base-url", "-u", help="Target API root; repeat to probe several targets",
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-request timeout in seconds"),
    skip_preflight: bool = typer.Option(False, "--skip-preflight", help="Skip the reachability check"),
) -> None:
    """Run a suite against one or more targets."""
    if not load_suite(suite):
        console.print(f"[red]Unknown suite: {suite}[/red]. See `userprobe list`.")
        raise typer.Exit(1)
    try:
        load_settings(timeout=timeout)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if base_url and len(base_url) > 1:
        run_targets(suite, base_url, console, timeout=timeout, preflight=not skip_preflight)
        console.print("\n[bold]--- Final Scorecard ---[/bold]")
        render_scorecard(load_scorecard(suite), console)
        return

    run = run_suite(
        suite, console,
        base_url=base_url[0] if base_url else None,
        timeout=timeout,
        preflight=not skip_preflight,
    )
    if not run.tally or run.tally.verdict != "pass":
        raise typer.Exit(1)


@app.command("score")
def cmd_score(
    suite: str = typer.Argument(help="Suite name (e.g., 'user_api')"),
) -> None:
    """Compare latest results for a suite across targets."""
    card = load_scorecard(suite)
    render_scorecard(card, console)


@app.command("results")
def cmd_results() -> None:
    """List all stored results."""
    list_all_results(console)


@app.command("report")
def cmd_report() -> None:
    """Generate RESULTS.md with full history matrix and notes."""
    path = generate_report()
    console.print(f"Report written to {path}")


@app.command("note")
def cmd_note(
    timestamp: str = typer.Argument(help="Run timestamp (e.g., '20261019T024533.123456Z')"),
    text: str = typer.Argument(help="Note text to attach to the run"),
) -> None:
    """Annotate a run with a note (appears in report)."""
    try:
        run = save_note(timestamp, text)
    except LookupError as e:
        console.print(f"[red]{e}[/red]. See `userprobe results`.")
        raise typer.Exit(1)
    console.print(f"Note saved for {timestamp} ({run.suite} → {run.target})")


if __name__ == "__main__":
    app()
