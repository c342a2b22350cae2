"""Userprobe scorer — loads results, renders Rich tables, generates markdown reports.

Finds the latest run for each target and displays a side-by-side comparison
table showing verdict, probes passed, wall clock, and per-case status.

Also generates persistent RESULTS.md with full history matrix and run notes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from userprobe.config import results_root
from userprobe.models import ProbeRun, ScoreCard

_STATUS_STYLES = {
    "PASSED": "green",
    "XFAIL": "green",
    "SKIPPED": "dim",
    "FAILED": "red",
    "ERROR": "red",
    "XPASS": "yellow",
}


def _find_latest_result(suite: str, target: str) -> ProbeRun | None:
    """Find the most recent run for a suite/target combination.

    Results are stored as results/<suite>/<target>/<timestamp>/metrics.json.
    The latest timestamp (lexicographic sort) wins.
    """
    target_dir = results_root() / suite / target
    if not target_dir.is_dir():
        return None

    # Timestamps are ISO8601 and sort lexicographically
    for run_dir in sorted(target_dir.iterdir(), reverse=True):
        result = ProbeRun.load(run_dir)
        if result:
            return result
    return None


def _discover_targets(suite: str) -> list[str]:
    """All target slugs that have results for a suite, sorted."""
    suite_dir = results_root() / suite
    if not suite_dir.is_dir():
        return []
    return sorted(d.name for d in suite_dir.iterdir() if d.is_dir())


def load_scorecard(suite: str) -> ScoreCard:
    """Load the latest runs for all targets of a suite."""
    card = ScoreCard(suite=suite)
    for target in _discover_targets(suite):
        result = _find_latest_result(suite, target)
        if result:
            card.results[target] = result
    return card


def _fmt_status(status: str) -> str:
    style = _STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.lower()}[/{style}]"


def render_scorecard(card: ScoreCard, console: Console) -> None:
    """Render a Rich comparison table for a suite's results."""
    if not card.results:
        console.print(f"[yellow]No results found for suite: {card.suite}[/yellow]")
        return

    table = Table(
        title=f"Probes: {card.suite}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Metric", style="dim", min_width=16)

    targets = list(card.results.keys())
    for target in targets:
        table.add_column(target, justify="right", min_width=12)

    def _row(label: str, getter) -> None:
        """Add a row by extracting a value from each target's run."""
        table.add_row(label, *(getter(card.results[t]) for t in targets))

    def verdict(r: ProbeRun) -> str:
        if not r.tally:
            return "[dim]--[/dim]"
        v = r.tally.verdict
        color = {"pass": "green", "partial": "yellow", "fail": "red"}.get(v, "white")
        return f"[{color}]{v}[/{color}]"
    _row("Verdict", verdict)

    _row("Probes passed", lambda r: f"{r.tally.passed}/{r.tally.total}" if r.tally else "--")
    _row("Wall clock", lambda r: f"{r.wall_clock_s}s" if r.wall_clock_s else "--")

    def exitcode(r: ProbeRun) -> str:
        if r.exit_code == 0:
            return "[green]0[/green]"
        if r.exit_code == -1:
            return "[red]aborted[/red]"
        return f"[red]{r.exit_code}[/red]"
    _row("Exit code", exitcode)

    _row("Run time", lambda r: r.timestamp or "--")

    # One row per probe case, in first-seen order across targets
    case_names: list[str] = []
    for r in card.results.values():
        for c in r.cases:
            if c.name not in case_names:
                case_names.append(c.name)

    if case_names:
        table.add_section()
    for name in case_names:
        def case_status(r: ProbeRun, name: str = name) -> str:
            for c in r.cases:
                if c.name == name:
                    return _fmt_status(c.status)
            return "[dim]--[/dim]"
        _row(escape(name), case_status)

    console.print()
    console.print(table)
    console.print()


def list_all_results(console: Console) -> None:
    """List all available results across all suites and targets."""
    root = results_root()
    if not root.is_dir():
        console.print("[yellow]No results yet. Run a suite first.[/yellow]")
        return

    for suite_dir in sorted(root.iterdir()):
        if not suite_dir.is_dir():
            continue
        console.print(f"\n[bold]{suite_dir.name}[/bold]")
        for target_dir in sorted(suite_dir.iterdir()):
            if not target_dir.is_dir():
                continue
            for run_dir in sorted(target_dir.iterdir(), reverse=True):
                result = ProbeRun.load(run_dir)
                if result:
                    t = result.tally
                    verdict = t.verdict if t else "?"
                    probes = f"{t.passed}/{t.total}" if t else "?"
                    console.print(
                        f"  {target_dir.name:20s} {run_dir.name}  "
                        f"{verdict:8s} {probes:6s} {result.wall_clock_s:>6.1f}s"
                    )


# ---------------------------------------------------------------------------
# Notes system
# ---------------------------------------------------------------------------

def _notes_path() -> Path:
    return results_root() / "notes.md"


def load_notes() -> dict[str, str]:
    """Load run notes keyed by timestamp.

    Notes file format: lines of `TIMESTAMP: note text`
    """
    path = _notes_path()
    if not path.exists():
        return {}
    notes: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if ": " in line:
            ts, text = line.split(": ", 1)
            notes[ts.strip()] = text.strip()
    return notes


def find_run(timestamp: str) -> ProbeRun | None:
    """The recorded run with this timestamp, across all suites and targets."""
    root = results_root()
    if not root.is_dir():
        return None
    for suite_dir in sorted(root.iterdir()):
        if not suite_dir.is_dir():
            continue
        for target_dir in sorted(suite_dir.iterdir()):
            run_dir = target_dir / timestamp
            if target_dir.is_dir() and run_dir.is_dir():
                result = ProbeRun.load(run_dir)
                if result:
                    return result
    return None


def save_note(timestamp: str, text: str) -> ProbeRun:
    """Append a note for a recorded run.

    Raises:
        LookupError: If no run was recorded at that timestamp.
    """
    run = find_run(timestamp)
    if run is None:
        raise LookupError(f"No run recorded at {timestamp}")
    path = _notes_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{timestamp}: {text}\n")
    return run


# ---------------------------------------------------------------------------
# History loading
# ---------------------------------------------------------------------------

def _load_all_runs(suite: str) -> list[ProbeRun]:
    """Load every run for a suite across all targets, sorted by timestamp."""
    root = results_root() / suite
    if not root.is_dir():
        return []
    runs: list[ProbeRun] = []
    for target_dir in root.iterdir():
        if not target_dir.is_dir():
            continue
        for run_dir in sorted(target_dir.iterdir()):
            result = ProbeRun.load(run_dir)
            if result:
                runs.append(result)
    runs.sort(key=lambda r: r.timestamp)
    return runs


# ---------------------------------------------------------------------------
# Markdown report generation
# ---------------------------------------------------------------------------

def _report_path() -> Path:
    return results_root() / "RESULTS.md"


def generate_report() -> Path:
    """Generate RESULTS.md with full history matrix per suite.

    Returns the path to the generated file.
    """
    root = results_root()
    suites = sorted(d.name for d in root.iterdir() if d.is_dir()) if root.is_dir() else []
    notes = load_notes()

    lines: list[str] = []
    lines.append("# Probe Results")
    lines.append("")
    lines.append(f"*Generated {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    out = _report_path()
    out.parent.mkdir(parents=True, exist_ok=True)

    if not suites:
        lines.append("No results yet.")
        out.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return out

    for suite in suites:
        lines.append(f"## {suite}")
        lines.append("")

        runs = _load_all_runs(suite)
        if not runs:
            lines.append("No runs recorded.")
            lines.append("")
            continue

        lines.append("| # | Timestamp | Target | Verdict | Probes | Wall Clock | Exit | Failed cases | Notes |")
        lines.append("|---|-----------|--------|---------|--------|------------|------|--------------|-------|")

        for i, r in enumerate(runs, 1):
            t = r.tally
            verdict = t.verdict if t else "--"
            probes = f"{t.passed}/{t.total}" if t else "--"
            exitcode = str(r.exit_code) if r.exit_code != -1 else "aborted"
            failed = ", ".join(c.name for c in r.cases if c.status in ("FAILED", "ERROR"))
            note = notes.get(r.timestamp, "")

            lines.append(
                f"| {i} | `{r.timestamp}` | {r.target} | **{verdict}** | {probes} "
                f"| {r.wall_clock_s}s | {exitcode} | {failed} | {note} |"
            )

        lines.append("")

        lines.append("### Latest by Target")
        lines.append("")
        latest: dict[str, ProbeRun] = {}
        for r in runs:
            latest[r.target] = r  # last one wins since sorted by time
        active = sorted(latest)

        lines.append("| Metric | " + " | ".join(active) + " |")
        lines.append("|--------| " + " | ".join("---" for _ in active) + " |")

        def _metric_row(label: str, fn) -> str:
            vals = [fn(latest[t]) for t in active]
            return f"| {label} | " + " | ".join(vals) + " |"

        lines.append(_metric_row("Verdict", lambda r: f"**{r.tally.verdict}**" if r.tally else "--"))
        lines.append(_metric_row("Probes", lambda r: f"{r.tally.passed}/{r.tally.total}" if r.tally else "--"))
        lines.append(_metric_row("Wall clock", lambda r: f"{r.wall_clock_s}s"))
        lines.append("")

    out.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return out
