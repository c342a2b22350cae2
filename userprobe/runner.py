"""Userprobe runner — orchestrates setup → pytest probes → metrics.

Data flow per run:
1. Resolve settings and the target slug from the base URL
2. Create result_dir/ for this run
3. Preflight: check the target answers HTTP (warning only)
4. Build the env dict carrying the target settings
5. Run the suite's pytest probes in a subprocess
6. Capture output, exit code, wall clock time
7. Parse the pytest summary and per-case outcomes
8. Assemble ProbeRun, save as metrics.json
"""

from __future__ import annotations

import re
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from rich.console import Console

from userprobe.client import UserApiClient
from userprobe.config import Settings, build_suite_env, load_settings, results_root
from userprobe.models import CaseOutcome, ProbeRun, SuiteTally
from userprobe.suites import SuiteInfo, load_suite

# "tests/test_user_api.py::test_get_all_users PASSED   [100%]"
_CASE_RE = re.compile(r"^(\S+::\S+)\s+(PASSED|FAILED|ERROR|SKIPPED|XFAIL|XPASS)\b", re.MULTILINE)
# "===== 1 failed, 6 passed in 0.87s =====", optionally "in 65.12s (0:01:05)"
_SUMMARY_RE = re.compile(r"^=+ (.+?) in [\d.]+s(?: \([^)]*\))? =+\s*$", re.MULTILINE)
_COUNT_RE = re.compile(r"(\d+) (\w+)")


def target_slug(base_url: str) -> str:
    """Normalize a base URL for use in directory paths.

    'http://3.73.86.8:3333' → 'http-3.73.86.8-3333', 'https://api.test/v1' → 'https-api.test-v1'
    """
    parts = urlsplit(base_url)
    if parts.netloc:
        slug = f"{parts.scheme}-{parts.netloc}{parts.path}"
    else:
        slug = base_url
    slug = re.sub(r"[^A-Za-z0-9._-]+", "-", slug.strip("/")).strip("-")
    return slug or "default"


def run_timestamp() -> str:
    """UTC run id, unique per run and lexicographically sortable.

    '20261019T024533.123456Z'
    """
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S.%fZ")


def _preflight(settings: Settings, console: Console) -> None:
    """Report whether the target answers HTTP before the clock starts."""
    with UserApiClient(settings.base_url, timeout=settings.timeout) as client:
        if client.ping():
            console.print(f"  [dim]Target reachable: {settings.base_url}[/dim]")
        else:
            console.print(f"  [yellow]Target unreachable: {settings.base_url}[/yellow]")


def _project_root() -> Path:
    """Directory holding the userprobe package, so `python -m pytest` can import it."""
    return Path(__file__).resolve().parent.parent


def _ensure_result_dir(suite: str, target: str, timestamp: str) -> Path:
    result_dir = results_root() / suite / target / timestamp
    result_dir.mkdir(parents=True, exist_ok=True)
    return result_dir


def parse_summary(output: str) -> SuiteTally:
    """Parse pytest's final summary line: "X passed, Y failed, Z errors".

    Only the last "==== ... in N.NNs ====" line counts. Failure output above
    it can echo response bodies that contain their own "N errors".
    """
    counts: dict[str, int] = {}
    lines = _SUMMARY_RE.findall(output)
    if lines:
        for n, word in _COUNT_RE.findall(lines[-1]):
            counts[word] = int(n)

    passed = counts.get("passed", 0)
    failed = counts.get("failed", 0)
    errors = counts.get("error", 0) + counts.get("errors", 0)
    skipped = counts.get("skipped", 0)

    return SuiteTally(
        passed=passed,
        failed=failed,
        errors=errors,
        skipped=skipped,
        total=passed + failed + errors,
        output=output,
    )


def parse_cases(output: str) -> list[CaseOutcome]:
    """Per-case outcomes from pytest -v output, in execution order.

    A case that fails in teardown shows up twice (PASSED, then ERROR); the
    last status wins.
    """
    outcomes: dict[str, str] = {}
    for m in _CASE_RE.finditer(output):
        outcomes[m.group(1)] = m.group(2)
    return [CaseOutcome(nodeid=k, status=v) for k, v in outcomes.items()]


def _run_probes(
    suite: SuiteInfo,
    env: dict[str, str],
    result_dir: Path,
) -> tuple[int, float, str]:
    """Run the suite's pytest probes and capture output.

    Returns (exit_code, wall_clock_s, output).
    """
    cmd = [
        sys.executable, "-m", "pytest", str(suite.tests_dir),
        "-v", "--tb=short", "--no-header",
        "-p", "no:cacheprovider",
    ]

    start = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=_project_root(),
            env=env,
            capture_output=True,
            text=True,
            timeout=suite.timeout_s,
        )
        elapsed = time.monotonic() - start
        output = proc.stdout + "\n" + proc.stderr
        exit_code = proc.returncode
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start
        output = f"TIMEOUT after {suite.timeout_s}s"
        exit_code = -1
    except FileNotFoundError:
        elapsed = time.monotonic() - start
        output = "pytest not found"
        exit_code = -1

    (result_dir / "pytest-output.txt").write_text(output, encoding="utf-8")
    return exit_code, elapsed, output


def run_suite(
    suite_name: str,
    console: Console,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    preflight: bool = True,
) -> ProbeRun:
    """Execute a single run of one suite against one target.

    Args:
        suite_name: Name of the suite (e.g., 'user_api').
        console: Rich Console for status output.
        base_url: Target override; falls back to USERPROBE_BASE_URL, then the default.
        timeout: Per-request timeout override in seconds.
        preflight: Ping the target before running the probes.

    Returns:
        ProbeRun with all metrics populated.
    """
    suite = load_suite(suite_name)
    if not suite:
        console.print(f"[red]Error:[/red] Unknown suite: {suite_name}")
        return ProbeRun(suite=suite_name, target="", timestamp="")

    settings = load_settings(base_url=base_url, timeout=timeout)
    target = target_slug(settings.base_url)
    timestamp = run_timestamp()

    console.print(f"\n[bold]Running:[/bold] {suite.name} → {settings.base_url}")
    console.print(f"  Timeout: {suite.timeout_s}s (requests: {settings.timeout}s)")

    result_dir = _ensure_result_dir(suite.name, target, timestamp)
    console.print(f"  Result dir: {result_dir}")

    if preflight:
        _preflight(settings, console)

    console.print("  Running probes...")
    exit_code, wall_clock, output = _run_probes(suite, build_suite_env(settings), result_dir)

    if exit_code == -1:
        console.print(f"  [red]ABORTED[/red] {output}")
        tally = SuiteTally(output=output)
        cases: list[CaseOutcome] = []
    else:
        tally = parse_summary(output)
        cases = parse_cases(output)

    color = {"pass": "green", "partial": "yellow"}.get(tally.verdict, "red")
    console.print(
        f"  Probes: {tally.passed}/{tally.total} passed "
        f"([{color}]{tally.verdict}[/{color}]) in {wall_clock:.1f}s"
    )

    run = ProbeRun(
        suite=suite.name,
        target=target,
        timestamp=timestamp,
        base_url=settings.base_url,
        wall_clock_s=round(wall_clock, 1),
        exit_code=exit_code,
        output_path=str(result_dir / "pytest-output.txt"),
        tally=tally,
        cases=cases,
    )
    run.save(result_dir)

    console.print(f"  [bold green]Done.[/bold green] Metrics saved to {result_dir / 'metrics.json'}")
    return run


def run_targets(
    suite_name: str,
    base_urls: list[str],
    console: Console,
    timeout: Optional[float] = None,
    preflight: bool = True,
) -> list[ProbeRun]:
    """Run a suite against each target in turn.

    Returns list of ProbeRuns in execution order.
    """
    return [
        run_suite(suite_name, console, base_url=url, timeout=timeout, preflight=preflight)
        for url in base_urls
    ]
