"""Session tracking: every check is recorded and can be written as a report."""

import json
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import click

from tdd_trainer.exercise import Exercise
from tdd_trainer.phases import PHASE_ORDER, PhaseStatus


@dataclass
class TrackingEntry:
    """One recorded check."""
    timestamp: datetime
    exercise: str
    phase: str
    valid: bool
    failed_tests: int
    compile_errors: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


def slugify(name: str) -> str:
    """File-name friendly form of an exercise name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "session"


class TrackingManager:
    """Records checks for the current exercise."""

    def __init__(
        self,
        now: Callable[[], datetime] = datetime.now,
        print_fn: Callable[[str], None] = click.echo,
    ):
        self._now = now
        self._print = print_fn
        self.entries: List[TrackingEntry] = []
        self.exercise_name: Optional[str] = None
        self.started_at = now()

    def track(self, exercise: Exercise, status: PhaseStatus) -> None:
        self.exercise_name = exercise.name
        self.entries.append(
            TrackingEntry(
                timestamp=self._now(),
                exercise=exercise.name,
                phase=status.phase.value,
                valid=status.valid,
                failed_tests=status.failed_tests,
                compile_errors=status.compile_error_count,
            )
        )

    def reset(self) -> None:
        self.entries = []
        self.exercise_name = None
        self.started_at = self._now()

    def summary(self) -> Dict[str, Dict[str, float]]:
        """
        Per-phase totals.

        The time since the previous check (or since the session started) is
        charged to the phase the check was made in.

        Returns:
            {phase: {"attempts": n, "valid": n, "seconds": s}} for every phase
        """
        totals = {
            phase.value: {"attempts": 0, "valid": 0, "seconds": 0.0}
            for phase in PHASE_ORDER
        }
        previous = self.started_at
        for entry in self.entries:
            bucket = totals[entry.phase]
            bucket["attempts"] += 1
            if entry.valid:
                bucket["valid"] += 1
            bucket["seconds"] += max(0.0, (entry.timestamp - previous).total_seconds())
            previous = entry.timestamp
        return totals

    def display_in_new_window(self) -> None:
        """Render the summary. The terminal stands in for a separate window."""
        from tdd_trainer.observe import format_duration

        self._print("=" * 40)
        self._print(f"TRACKING: {self.exercise_name or 'no checks yet'}")
        self._print("=" * 40)
        for phase, bucket in self.summary().items():
            self._print(
                f"  {phase.upper():<9} attempts={bucket['attempts']:<3} "
                f"valid={bucket['valid']:<3} time={format_duration(bucket['seconds'])}"
            )
        if self.entries:
            self._print("")
            self._print("  Recent checks:")
            for entry in self.entries[-5:]:
                icon = "✓" if entry.valid else "✗"
                self._print(
                    f"    {icon} {entry.timestamp:%H:%M:%S} {entry.phase:<8} "
                    f"failed={entry.failed_tests} compile_errors={entry.compile_errors}"
                )

    def write_report(self, output_dir: Path) -> Path:
        """
        Write the session as JSON.

        Filename: {exercise_slug}_{timestamp}.json
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        finished_at = self._now()
        name = self.exercise_name or "session"
        report_path = output_dir / f"{slugify(name)}_{finished_at:%Y%m%d_%H%M%S}.json"

        report = {
            "exercise": name,
            "started_at": self.started_at.isoformat(),
            "finished_at": finished_at.isoformat(),
            "duration_seconds": (finished_at - self.started_at).total_seconds(),
            "entries": [entry.to_dict() for entry in self.entries],
            "summary": self.summary(),
        }
        report_path.write_text(json.dumps(report, indent=2))
        return report_path
