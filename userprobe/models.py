"""Data models for userprobe.

Request/record payloads for the user API, plus the run records that flow
through runner → scorer → CLI.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

# Field order matches the listing endpoint's records.
USER_FIELDS = ("id", "username", "email", "password", "created_at", "updated_at")


@dataclass
class UserCreateRequest:
    """Body of POST /user/create. Any field may be None for negative probes."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    def to_payload(self) -> dict[str, Optional[str]]:
        """JSON body; missing values go out as null, never dropped."""
        return {
            "username": self.username,
            "email": self.email,
            "password": self.password,
        }


@dataclass
class UserRecord:
    """One entry of GET /user/get."""

    id: Any
    username: str
    email: str
    password: str
    created_at: str
    updated_at: str

    @classmethod
    def from_dict(cls, d: dict) -> UserRecord:
        return cls(**{name: d.get(name) for name in USER_FIELDS})


@dataclass
class SuiteTally:
    """Pytest judge counts for a single run."""

    passed: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0
    total: int = 0
    output: str = ""

    @property
    def verdict(self) -> str:
        if self.total == 0:
            return "no-tests"
        if self.passed == self.total:
            return "pass"
        if self.passed > 0:
            return "partial"
        return "fail"


@dataclass
class CaseOutcome:
    """Status of one probe case, e.g. ('tests/test_user_api.py::test_get_all_users', 'PASSED')."""

    nodeid: str
    status: str

    @property
    def name(self) -> str:
        """Test name without the file prefix."""
        return self.nodeid.split("::", 1)[-1]


@dataclass
class ProbeRun:
    """Complete result of a single suite run against one target."""

    suite: str
    target: str
    timestamp: str
    base_url: str = ""
    wall_clock_s: float = 0.0
    exit_code: int = -1
    output_path: str = ""

    tally: Optional[SuiteTally] = None
    cases: list[CaseOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        d = {
            "suite": self.suite,
            "target": self.target,
            "timestamp": self.timestamp,
            "base_url": self.base_url,
            "wall_clock_s": self.wall_clock_s,
            "exit_code": self.exit_code,
            "output_path": self.output_path,
            "cases": [{"nodeid": c.nodeid, "status": c.status} for c in self.cases],
        }
        if self.tally:
            d["tally"] = {
                "passed": self.tally.passed,
                "failed": self.tally.failed,
                "errors": self.tally.errors,
                "skipped": self.tally.skipped,
                "total": self.tally.total,
                "verdict": self.tally.verdict,
            }
        return d

    @classmethod
    def from_dict(cls, d: dict) -> ProbeRun:
        """Deserialize from a JSON dict (metrics.json)."""
        t = d.get("tally")
        tally = None
        if t:
            tally = SuiteTally(
                passed=t.get("passed", 0),
                failed=t.get("failed", 0),
                errors=t.get("errors", 0),
                skipped=t.get("skipped", 0),
                total=t.get("total", 0),
            )
        return cls(
            suite=d.get("suite", ""),
            target=d.get("target", ""),
            timestamp=d.get("timestamp", ""),
            base_url=d.get("base_url", ""),
            wall_clock_s=d.get("wall_clock_s", 0.0),
            exit_code=d.get("exit_code", -1),
            output_path=d.get("output_path", ""),
            tally=tally,
            cases=[
                CaseOutcome(nodeid=c.get("nodeid", ""), status=c.get("status", ""))
                for c in d.get("cases", [])
            ],
        )

    def save(self, result_dir: Path) -> None:
        """Write metrics.json to the result directory."""
        result_dir.mkdir(parents=True, exist_ok=True)
        (result_dir / "metrics.json").write_text(
            json.dumps(self.to_dict(), indent=2), encoding="utf-8"
        )

    @classmethod
    def load(cls, result_dir: Path) -> Optional[ProbeRun]:
        """Load metrics.json from a result directory."""
        p = result_dir / "metrics.json"
        if not p.exists():
            return None
        try:
            return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, OSError):
            return None


@dataclass
class ScoreCard:
    """Latest ProbeRun per target for a single suite."""

    suite: str
    results: dict[str, ProbeRun] = field(default_factory=dict)
