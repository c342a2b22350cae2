"""Settings resolution for userprobe runs.

Explicit arguments win over USERPROBE_* environment variables, which win
over the built-in defaults. The suite subprocess reads the same variables,
so build_suite_env() is how a run's settings reach the probes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "http://3.73.86.8:3333"
DEFAULT_TIMEOUT_S = 10.0

ENV_BASE_URL = "USERPROBE_BASE_URL"
ENV_TIMEOUT = "USERPROBE_TIMEOUT"
ENV_RESULTS_DIR = "USERPROBE_RESULTS_DIR"

# Vars that change pytest's console output and break summary parsing.
_PYTEST_OUTPUT_VARS = ("PYTEST_ADDOPTS", "PYTEST_PLUGINS")


@dataclass(frozen=True)
class Settings:
    """Target and transport settings for one run."""

    base_url: str
    timeout: float


def _parse_timeout(raw: str | float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timeout: {raw!r}") from None
    if value <= 0:
        raise ValueError(f"Timeout must be positive, got {value}")
    return value


def load_settings(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Settings:
    """Resolve settings from arguments, then environment, then defaults.

    Args:
        base_url: Target API root, e.g. 'http://localhost:3333'.
        timeout: Per-request timeout in seconds.

    Raises:
        ValueError: If the timeout is not a positive number.
    """
    url = base_url or os.environ.get(ENV_BASE_URL) or DEFAULT_BASE_URL
    raw_timeout = timeout if timeout is not None else os.environ.get(ENV_TIMEOUT, DEFAULT_TIMEOUT_S)
    return Settings(base_url=url.rstrip("/"), timeout=_parse_timeout(raw_timeout))


def results_root() -> Path:
    """Absolute path to the results directory."""
    override = os.environ.get(ENV_RESULTS_DIR)
    if override:
        return Path(override).resolve()
    return Path(__file__).parent / "results"


def build_suite_env(settings: Settings) -> dict[str, str]:
    """Build the env dict for the pytest subprocess that runs a suite."""
    env = os.environ.copy()
    for key in _PYTEST_OUTPUT_VARS:
        env.pop(key, None)
    env.update({
        ENV_BASE_URL: settings.base_url,
        ENV_TIMEOUT: str(settings.timeout),
    })
    return env
