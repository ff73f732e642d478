"""Interactive practice session: the single actor that drives the engine.

Every learner command and every babystep expiry goes through this loop,
one at a time, so the engine only ever sees serial calls.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import click

from tdd_trainer.engine import PhaseEngine, ResetResult
from tdd_trainer.events import ExecutionStatusEvent, ExerciseSelectedEvent
from tdd_trainer.exercise import Exercise
from tdd_trainer.phases import Phase, PhaseStatus

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]

PHASE_HINTS = {
    Phase.RED: "Write one failing test.",
    Phase.GREEN: "Make all tests pass.",
    Phase.REFACTOR: "Clean up while staying green.",
}

QUIT_COMMANDS = {"q", "quit", "exit"}


class Workspace:
    """Directory the learner edits. Mirrors exercise-selected events onto disk."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def write(self, exercise: Exercise) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        for source in exercise.files:
            target = self.root / source.name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source.content, encoding="utf-8")
        logger.debug("Wrote %d file(s) to %s", len(exercise.files), self.root)

    def on_exercise_selected(self, event: ExerciseSelectedEvent) -> None:
        self.write(event.exercise)

    def read_submission(self, exercise: Exercise) -> Exercise:
        """Current workspace contents as a submission of `exercise`. Missing files read as empty."""
        contents: Dict[str, str] = {}
        for name in exercise.file_names():
            path = self.root / name
            contents[name] = path.read_text(encoding="utf-8") if path.exists() else ""
        return exercise.with_contents(contents)


def format_status(status: PhaseStatus) -> list[str]:
    """Human-readable lines for a check result."""
    icon = "✓" if status.valid else "✗"
    verdict = "valid" if status.valid else "not valid"
    lines = [f"{icon} {verdict} - phase {status.phase.name}: {PHASE_HINTS[status.phase]}"]

    outcome = status.outcome
    if outcome is None:
        return lines

    for diagnostic in outcome.compile_errors:
        where = diagnostic.file_name
        if diagnostic.line is not None:
            where += f":{diagnostic.line}"
        lines.append(f"  compile error {where}: {diagnostic.message}")

    if outcome.test_result is not None:
        result = outcome.test_result
        lines.append(
            f"  tests: {result.tests_run} run, {result.failed_tests} failed, "
            f"{result.skipped_tests} skipped"
        )
        for failure in result.failures:
            lines.append(f"    {failure.test_id}: {failure.message}")
    return lines


class PracticeSession:
    """Command loop around one PhaseEngine."""

    def __init__(
        self,
        engine: PhaseEngine,
        workspace: Workspace,
        print_fn: PrintFn = click.echo,
    ):
        self.engine = engine
        self.workspace = workspace
        self._print = print_fn

        engine.bus.subscribe(ExerciseSelectedEvent, workspace.on_exercise_selected)
        engine.bus.subscribe(ExecutionStatusEvent, self._on_status)

    def _on_status(self, event: ExecutionStatusEvent) -> None:
        for line in format_status(event.status):
            self._print(line)

    # --- Commands ---

    def handle_timer_expiry(self) -> bool:
        """
        Roll back if the babystep budget ran out.

        Returns:
            True if the session was rolled back to the last valid exercise
        """
        timer = self.engine.timer
        if not timer.expired:
            return False

        if self.engine.phase == Phase.REFACTOR:
            return False

        self._print("Time is up! Rolling back to the last valid state.")
        self.engine.reset_phase()
        return True

    def check(self, advance: bool) -> Optional[PhaseStatus]:
        if self.handle_timer_expiry():
            return None

        exercise = self.engine.original_exercise
        if exercise is None:
            self._print("Select an exercise first.")
            return None

        submission = self.workspace.read_submission(exercise)
        return self.engine.check_phase(submission, advance=advance)

    def reset(self) -> ResetResult:
        if self.handle_timer_expiry():
            return ResetResult(accepted=True, phase=self.engine.phase)

        result = self.engine.reset_phase()
        if result.accepted:
            self._print(f"Back to {result.phase.name}. Workspace restored to the last valid state.")
        else:
            self._print(f"Error: {result.reason}")
        return result

    def select(self) -> Optional[Exercise]:
        exercise = self.engine.select_exercise()
        if exercise is None:
            self._print("No exercise selected.")
            return None
        self._print(f"Exercise: {exercise.name}")
        if exercise.description:
            self._print(exercise.description)
        self._print(f"Files written to {self.workspace.root}")
        return exercise

    def stats(self) -> None:
        self.handle_timer_expiry()
        self.engine.display_tracking()

    # --- Loop ---

    def header(self) -> str:
        phase = self.engine.phase
        parts = [f"[{phase.name}]"]
        remaining = self.engine.timer.remaining()
        if remaining is not None:
            mins, secs = divmod(int(remaining), 60)
            parts.append(f"{mins:02d}:{secs:02d} left")
        return " ".join(parts)

    def run(self, input_fn: InputFn) -> int:
        """Run until the learner quits. Returns an exit code."""
        if self.engine.original_exercise is None and self.select() is None:
            return 0

        while True:
            self._print("")
            self._print(self.header())
            self._print("c) Check   n) Check and next phase   r) Reset   s) Select exercise   t) Tracking   q) Quit")
            choice = input_fn("Choose").strip().lower()

            if choice == "c":
                self.check(advance=False)
            elif choice == "n":
                self.check(advance=True)
            elif choice == "r":
                self.reset()
            elif choice == "s":
                self.select()
            elif choice == "t":
                self.stats()
            elif choice in QUIT_COMMANDS:
                return 0
            else:
                self._print("Invalid choice.")
