"""Suite discovery and loading for userprobe.

Each suite is a subdirectory of userprobe/suites/ containing:
    __init__.py  : NAME, DESCRIPTION, TIMEOUT_S, TOTAL_TESTS constants
    tests/       : pytest probes run against the target by the runner
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class SuiteInfo:
    """Metadata about a discovered suite."""

    name: str
    description: str
    timeout_s: int
    total_tests: int
    path: Path
    tests_dir: Path


def _suites_root() -> Path:
    """Absolute path to the suites/ directory."""
    return Path(__file__).parent


def list_suites() -> list[SuiteInfo]:
    """Discover all available suites.

    Scans subdirectories of userprobe/suites/ for packages that have both
    an __init__.py and a tests/ directory.
    """
    suites = []
    for child in sorted(_suites_root().iterdir()):
        if not child.is_dir():
            continue
        if not (child / "__init__.py").exists() or not (child / "tests").is_dir():
            continue
        info = load_suite(child.name)
        if info:
            suites.append(info)
    return suites


def load_suite(name: str) -> Optional[SuiteInfo]:
    """Load a single suite by name.

    Args:
        name: Directory name under userprobe/suites/ (e.g., 'user_api').

    Returns:
        SuiteInfo if the suite exists and is valid, None otherwise.
    """
    suite_dir = _suites_root() / name
    tests_dir = suite_dir / "tests"
    if not suite_dir.is_dir() or not tests_dir.is_dir():
        return None

    try:
        mod = importlib.import_module(f"userprobe.suites.{name}")
    except ImportError:
        return None

    return SuiteInfo(
        name=getattr(mod, "NAME", name),
        description=getattr(mod, "DESCRIPTION", ""),
        timeout_s=getattr(mod, "TIMEOUT_S", 120),
        total_tests=getattr(mod, "TOTAL_TESTS", 0),
        path=suite_dir,
        tests_dir=tests_dir,
    )
