"""Tests for userprobe.runner with the pytest subprocess stubbed out."""

import subprocess

import pytest
from rich.console import Console

from userprobe import runner
from userprobe.models import ProbeRun
from userprobe.runner import (
    parse_cases,
    parse_summary,
    run_suite,
    run_targets,
    run_timestamp,
    target_slug,
)

NODE = "userprobe/suites/user_api/tests/test_user_api.py"

PYTEST_OUTPUT = f"""\
{NODE}::test_create_user_success PASSED                           [ 14%]
{NODE}::test_create_user_without_required_fields[missing-username] PASSED [ 28%]
{NODE}::test_create_user_without_required_fields[missing-email] PASSED [ 42%]
{NODE}::test_create_user_without_required_fields[missing-password] PASSED [ 57%]
{NODE}::test_create_user_without_required_fields[all-missing] PASSED [ 71%]
{NODE}::test_create_user_with_duplicate_username FAILED           [ 85%]
{NODE}::test_get_all_users PASSED                                 [100%]

=================================== FAILURES ===================================
___________________ test_create_user_with_duplicate_username ___________________
E   userprobe.checks.ContractViolation: expected HTTP 400, got 200: '...'
=========================== short test summary info ============================
FAILED {NODE}::test_create_user_with_duplicate_username - userprobe.checks.ContractViolation
========================= 1 failed, 6 passed in 0.87s ==========================
"""


@pytest.fixture
def console():
    return Console(record=True, width=200)


@pytest.fixture
def fake_pytest(monkeypatch):
    """Replace subprocess.run; records the calls it receives."""
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 1, stdout=PYTEST_OUTPUT, stderr="")

    monkeypatch.setattr(runner.subprocess, "run", fake_run)
    return calls


@pytest.mark.parametrize("url,slug", [
    ("http://3.73.86.8:3333", "http-3.73.86.8-3333"),
    ("https://api.example.com/v1/", "https-api.example.com-v1"),
    ("http://localhost:8080", "http-localhost-8080"),
    ("https://localhost:8080", "https-localhost-8080"),
])
def test_target_slug(url, slug):
    assert target_slug(url) == slug


def test_parse_summary():
    tally = parse_summary(PYTEST_OUTPUT)
    assert (tally.passed, tally.failed, tally.errors, tally.total) == (6, 1, 0, 7)
    assert tally.verdict == "partial"


def test_parse_summary_errors_and_skips():
    tally = parse_summary("==== 2 failed, 1 passed, 1 skipped, 3 errors in 1.0s ====")
    assert (tally.passed, tally.failed, tally.errors, tally.skipped, tally.total) == (1, 2, 3, 1, 6)


def test_parse_summary_ignores_counts_in_failure_text():
    output = (
        f"{NODE}::test_create_user_success FAILED [100%]\n"
        "E   userprobe.checks.ContractViolation: expected HTTP 200, got 500: "
        "'{\"message\": \"3 errors, 4 skipped, 9 passed\"}'\n"
        "========================= 1 failed, 6 passed in 0.10s =========================\n"
    )
    tally = parse_summary(output)
    assert (tally.passed, tally.failed, tally.errors, tally.skipped, tally.total) == (6, 1, 0, 0, 7)


def test_parse_summary_long_run_and_warnings():
    output = "=========== 7 passed, 2 warnings in 65.12s (0:01:05) ===========\n"
    tally = parse_summary(output)
    assert (tally.passed, tally.total) == (7, 7)
    assert tally.verdict == "pass"


def test_parse_summary_without_summary_line():
    tally = parse_summary("ImportError: No module named 'userprobe'\n2 errors found\n")
    assert tally.total == 0
    assert tally.verdict == "no-tests"


def test_run_suite_counts_from_summary_only(results_dir, console, monkeypatch):
    output = PYTEST_OUTPUT.replace(
        "'...'", "'{\"message\": \"2 errors found\"}'"
    )

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout=output, stderr="")

    monkeypatch.setattr(runner.subprocess, "run", fake_run)
    run = run_suite("user_api", console, base_url="http://target.test", preflight=False)
    assert (run.tally.passed, run.tally.failed, run.tally.errors, run.tally.total) == (6, 1, 0, 7)


def test_run_timestamp_sortable_and_sub_second():
    first, second = run_timestamp(), run_timestamp()
    assert first.endswith("Z")
    assert "." in first
    assert first <= second


def test_parse_cases():
    cases = parse_cases(PYTEST_OUTPUT)
    assert len(cases) == 7
    assert cases[1].name == "test_create_user_without_required_fields[missing-username]"
    assert cases[5].status == "FAILED"
    assert cases[6].name == "test_get_all_users"


def test_parse_cases_teardown_error_wins():
    output = f"{NODE}::test_get_all_users PASSED\n{NODE}::test_get_all_users ERROR\n"
    cases = parse_cases(output)
    assert [(c.name, c.status) for c in cases] == [("test_get_all_users", "ERROR")]


def test_run_suite(results_dir, console, fake_pytest):
    run = run_suite("user_api", console, base_url="http://target.test:3333", timeout=2, preflight=False)

    assert run.suite == "user_api"
    assert run.target == "http-target.test-3333"
    assert run.base_url == "http://target.test:3333"
    assert run.exit_code == 1
    assert run.tally.passed == 6
    assert len(run.cases) == 7

    cmd, kwargs = fake_pytest[0]
    assert cmd[1:3] == ["-m", "pytest"]
    assert cmd[3].endswith("tests")
    assert kwargs["env"]["USERPROBE_BASE_URL"] == "http://target.test:3333"
    assert kwargs["env"]["USERPROBE_TIMEOUT"] == "2.0"
    assert kwargs["timeout"] == 120

    run_dir = results_dir / "user_api" / "http-target.test-3333" / run.timestamp
    assert (run_dir / "pytest-output.txt").read_text(encoding="utf-8") == PYTEST_OUTPUT + "\n"
    saved = ProbeRun.load(run_dir)
    assert saved.tally.verdict == "partial"
    assert "partial" in console.export_text()


def test_run_suite_unknown(results_dir, console, fake_pytest):
    run = run_suite("no_such_suite", console, preflight=False)
    assert run.timestamp == ""
    assert fake_pytest == []
    assert "Unknown suite" in console.export_text()


def test_run_suite_timeout(results_dir, console, monkeypatch):
    def hang(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(runner.subprocess, "run", hang)
    run = run_suite("user_api", console, base_url="http://slow.test", preflight=False)
    assert run.exit_code == -1
    assert run.tally.verdict == "no-tests"
    assert run.cases == []


def test_run_suite_preflight_warns(results_dir, console, fake_pytest, monkeypatch):
    monkeypatch.setattr(runner.UserApiClient, "ping", lambda self: False)
    run_suite("user_api", console, base_url="http://down.test")
    assert "Target unreachable: http://down.test" in console.export_text()
    assert len(fake_pytest) == 1


def test_run_targets_in_order(results_dir, console, fake_pytest):
    runs = run_targets("user_api", ["http://a.test", "http://b.test"], console, preflight=False)
    assert [r.target for r in runs] == ["http-a.test", "http-b.test"]
    assert [c[1]["env"]["USERPROBE_BASE_URL"] for c in fake_pytest] == ["http://a.test", "http://b.test"]


def test_back_to_back_runs_keep_separate_results(results_dir, console, fake_pytest):
    runs = run_targets("user_api", ["http://same.test", "http://same.test"], console, preflight=False)
    assert runs[0].timestamp != runs[1].timestamp
    assert len(list((results_dir / "user_api" / "http-same.test").iterdir())) == 2


def test_scheme_keeps_targets_apart(results_dir, console, fake_pytest):
    runs = run_targets("user_api", ["http://h.test:1", "https://h.test:1"], console, preflight=False)
    assert runs[0].target != runs[1].target
    assert len(list((results_dir / "user_api").iterdir())) == 2
