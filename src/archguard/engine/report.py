"""Failure aggregation and run-result formatting."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

REPORT_PREFIX = "Architecture violations found in"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FailureRecord:
    """One failed check, or one rule that could not be run."""

    check_name: str
    message: str


class FailureAggregator:
    """Accumulates failure records for a whole run, in the order they occur."""

    def __init__(self) -> None:
        self._records: list[FailureRecord] = []

    def record(self, check_name: str, message: str) -> None:
        self._records.append(FailureRecord(check_name, message))

    def has_failures(self) -> bool:
        return bool(self._records)

    @property
    def records(self) -> list[FailureRecord]:
        return list(self._records)

    def build_report(self) -> str:
        """Return the consolidated report, or an empty string when nothing failed.

        The first line names every failed check; each record follows as a
        ``[check_name]`` block, blocks separated by a blank line.
        """
        return build_report(self._records)


def build_report(records: list[FailureRecord]) -> str:
    if not records:
        return ""
    names = ", ".join(r.check_name for r in records)
    lines = [f"{REPORT_PREFIX} {len(records)} check(s): {names}"]
    for record in records:
        lines.append("")
        lines.append(f"[{record.check_name}]")
        lines.append(record.message)
    return "\n".join(lines)


@dataclass
class RunResult:
    """Result of one run."""

    records: list[FailureRecord] = field(default_factory=list)
    rules_evaluated: int = 0
    checks_run: int = 0
    unmatched_checks: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def passed(self) -> bool:
        return not self.records

    @property
    def report(self) -> str:
        return build_report(self.records)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: RunResult) -> str:
    """Format a RunResult as human-readable text.

    Example output with failures::

        Rules: 2 evaluated, 3 checks run

        ✗ no_print
          Rule 'classes should not call print' was violated (1 times):
          Class <app.Service> calls <print> in (src/app.py:12)

        1 check failed (0.4s)
    """
    lines: list[str] = [
        f"Rules: {result.rules_evaluated} evaluated, {result.checks_run} checks run",
        "",
    ]
    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    for name in result.unmatched_checks:
        lines.append(f"! unknown check '{name}' skipped")
    if result.unmatched_checks:
        lines.append("")

    if result.records:
        for record in result.records:
            lines.append(f"✗ {record.check_name}")
            lines.extend(f"  {line}" for line in record.message.splitlines())
            lines.append("")
        count = len(result.records)
        noun = "check" if count == 1 else "checks"
        lines.append(f"{count} {noun} failed ({elapsed_str})")
    else:
        lines.append(f"✓ No architecture violations found ({elapsed_str})")

    return "\n".join(lines)


def format_json(result: RunResult) -> str:
    output: dict[str, object] = {
        "failures": [
            {"check_name": r.check_name, "message": r.message} for r in result.records
        ],
        "summary": {
            "passed": result.passed,
            "rules_evaluated": result.rules_evaluated,
            "checks_run": result.checks_run,
            "failures_count": len(result.records),
            "unmatched_checks": list(result.unmatched_checks),
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: RunResult) -> str:
    """One line per failure: ``check_name<TAB>first line of the message``.

    Returns an empty string when there are no failures.
    """
    lines: list[str] = []
    for record in result.records:
        first = record.message.splitlines()[0] if record.message else ""
        lines.append(f"{record.check_name}\t{first}")
    return "\n".join(lines)
