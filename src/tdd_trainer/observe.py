"""Minimal observation surface for saved session reports.

Read-only. No interactivity.
"""

import json
from pathlib import Path
from typing import Callable, Optional

from tdd_trainer.tracking import slugify


def find_reports(exercise: str, reports_dir: Path) -> list[dict]:
    """Find all session reports for an exercise, most recent first."""
    reports = []

    if not reports_dir.exists():
        return reports

    for f in reports_dir.glob(f"{slugify(exercise)}_*.json"):
        try:
            data = json.loads(f.read_text())
        except (json.JSONDecodeError, OSError):
            continue
        data["_report_file"] = str(f)
        reports.append(data)

    reports.sort(key=lambda r: r.get("finished_at", ""), reverse=True)
    return reports


def format_duration(seconds: float) -> str:
    """Format duration in human-readable form."""
    if seconds < 1:
        return f"{seconds*1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.0f}s"


def print_summary(
    exercise: str,
    reports_dir: Optional[Path] = None,
    print_fn: Callable[[str], None] = print,
) -> None:
    """Print a human-readable summary of an exercise's practice history."""
    if reports_dir is None:
        reports_dir = Path("execution/reports")

    reports = find_reports(exercise, reports_dir)

    print_fn("=" * 60)
    print_fn(f"EXERCISE SUMMARY: {exercise}")
    print_fn("=" * 60)
    print_fn("")

    if not reports:
        print_fn("No session reports found.")
        print_fn(f"  Searched: {reports_dir}")
        return

    latest = reports[0]
    entries = latest.get("entries", [])
    print_fn("LATEST SESSION")
    print_fn("-" * 40)
    print_fn(f"  Finished:    {latest['finished_at'][:19]}")
    print_fn(f"  Duration:    {format_duration(latest['duration_seconds'])}")
    print_fn(f"  Checks:      {len(entries)}")
    print_fn(f"  Valid:       {sum(1 for e in entries if e['valid'])}")
    print_fn("")

    print_fn("TIME PER PHASE")
    print_fn("-" * 40)
    for phase, bucket in latest.get("summary", {}).items():
        print_fn(
            f"  {phase.upper():<9} {format_duration(bucket['seconds']):>8}"
            f"  ({bucket['attempts']} checks, {bucket['valid']} valid)"
        )
    print_fn("")

    # A valid REFACTOR check followed by a RED one closes a cycle
    completed = sum(
        1 for prev, cur in zip(entries, entries[1:])
        if prev["phase"] == "refactor" and prev["valid"] and cur["phase"] == "red"
    )
    if len(reports) > 1 or completed:
        print_fn("HISTORY")
        print_fn("-" * 40)
        print_fn(f"  Sessions:          {len(reports)}")
        print_fn(f"  Cycles (latest):   {completed}")
        for r in reports[:5]:
            checks = len(r.get("entries", []))
            print_fn(f"    {r['finished_at'][:16]} - {checks} checks")
        if len(reports) > 5:
            print_fn(f"    ... and {len(reports) - 5} more")
        print_fn("")
