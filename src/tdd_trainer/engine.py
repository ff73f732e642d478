"""Phase engine: decides whether a submission is valid and moves the cycle on.

RED      - exactly one failing test, or only "not written yet" compile errors
GREEN    - everything compiles and passes
REFACTOR - everything compiles and passes

Valid submissions may advance RED -> GREEN -> REFACTOR -> RED.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from tdd_trainer.babysteps import BabystepTimer
from tdd_trainer.catalog import ExerciseSelector
from tdd_trainer.constants import METHOD_TOKEN, MISSING_SYMBOL_TOKEN
from tdd_trainer.events import EventBus, ExecutionStatusEvent, ExerciseSelectedEvent
from tdd_trainer.execution_state import CompileDiagnostic, ExecutionOutcome
from tdd_trainer.exercise import Exercise
from tdd_trainer.phases import Phase, PhaseStatus, next_phase
from tdd_trainer.step_runner import Executor
from tdd_trainer.tracking import TrackingManager

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    """Everything the engine mutates. Owned by exactly one PhaseEngine."""
    phase: Phase = Phase.RED
    original_exercise: Optional[Exercise] = None
    last_valid_exercise: Optional[Exercise] = None
    last_status: PhaseStatus = field(
        default_factory=lambda: PhaseStatus(valid=False, outcome=None, phase=Phase.RED)
    )


@dataclass(frozen=True)
class ResetResult:
    """Outcome of reset_phase(). Callers must check `accepted`."""
    accepted: bool
    phase: Phase
    reason: Optional[str] = None


# --- Validity rules ---

def is_allowed_compile_error(diagnostic: CompileDiagnostic) -> bool:
    """
    True for errors caused by code that is referenced but not written yet.

    Messages containing "method" cover void-return mismatches, missing
    return types and static/non-static misuse.
    """
    return MISSING_SYMBOL_TOKEN in diagnostic.message or METHOD_TOKEN in diagnostic.message


def compile_errors_are_allowed(outcome: ExecutionOutcome) -> bool:
    return all(is_allowed_compile_error(d) for d in outcome.compile_errors)


def is_valid_red(outcome: ExecutionOutcome) -> bool:
    if outcome.has_compile_errors:
        return compile_errors_are_allowed(outcome)
    return outcome.failed_tests == 1


def is_all_green(outcome: ExecutionOutcome) -> bool:
    return not outcome.has_compile_errors and outcome.failed_tests == 0


def is_valid_for_phase(phase: Phase, outcome: ExecutionOutcome) -> bool:
    if phase == Phase.RED:
        return is_valid_red(outcome)
    return is_all_green(outcome)


# --- Engine ---

class PhaseEngine:
    """
    Drives one practice session.

    All mutation happens inside check_phase, reset_phase and select_exercise,
    which are expected to be called by a single actor, one at a time.
    """

    def __init__(
        self,
        executor: Executor,
        tracker: TrackingManager,
        selector: ExerciseSelector,
        bus: EventBus,
        timer: Optional[BabystepTimer] = None,
    ):
        self.executor = executor
        self.tracker = tracker
        self.selector = selector
        self.bus = bus
        self.timer = timer if timer is not None else BabystepTimer()
        self._state = EngineState()

    # --- Accessors ---

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def original_exercise(self) -> Optional[Exercise]:
        return self._state.original_exercise

    @property
    def last_valid_exercise(self) -> Optional[Exercise]:
        return self._state.last_valid_exercise

    @property
    def last_status(self) -> PhaseStatus:
        return self._state.last_status

    # --- Operations ---

    def check_phase(self, submission: Exercise, advance: bool = False) -> PhaseStatus:
        """
        Evaluate a submission against the current phase.

        Args:
            submission: The exercise as the learner currently has it
            advance: Move on to the next phase if the submission is valid

        Returns:
            The PhaseStatus that is also published as ExecutionStatusEvent.
            Invalid submissions are reported through `valid`, never raised.
        """
        state = self._state
        outcome = self.executor.evaluate(submission)

        checked_in = state.phase
        valid = is_valid_for_phase(checked_in, outcome)
        self._track(submission, PhaseStatus(valid=valid, outcome=outcome, phase=checked_in))

        if valid:
            if advance:
                self._advance()
            state.last_valid_exercise = submission

        status = PhaseStatus(valid=valid, outcome=outcome, phase=state.phase)
        state.last_status = status
        self.bus.publish(ExecutionStatusEvent(status))
        return status

    def _track(self, submission: Exercise, status: PhaseStatus) -> None:
        # Tracking never decides a check
        try:
            self.tracker.track(submission, status)
        except Exception:
            logger.exception("Tracker failed to record check of %s", submission.name)

    def _advance(self) -> None:
        state = self._state
        previous = state.phase
        state.phase = next_phase(previous)
        logger.info("Phase %s -> %s", previous.name, state.phase.name)

        if state.phase == Phase.REFACTOR:
            self.timer.stop()
        elif state.phase == Phase.GREEN:
            self._start_timer(code=True)
        else:
            self._start_timer(code=False)

    def _start_timer(self, code: bool) -> None:
        original = self._state.original_exercise
        if original is None:
            return
        if code:
            self.timer.start(original.baby_steps_code_time)
        else:
            self.timer.start(original.baby_steps_test_time)

    def reset_phase(self) -> ResetResult:
        """
        Roll back to RED and republish the last valid exercise.

        Rejected in REFACTOR, where there is no red/green checkpoint to
        return to; state is left untouched in that case.
        """
        state = self._state
        if state.phase == Phase.REFACTOR:
            logger.warning("Reset rejected during REFACTOR")
            return ResetResult(
                accepted=False,
                phase=state.phase,
                reason="Reset not permitted during refactor.",
            )

        if state.phase == Phase.GREEN:
            state.phase = Phase.RED
            logger.info("Phase GREEN -> RED (reset)")

        if state.last_valid_exercise is not None:
            self._start_timer(code=False)
            self.bus.publish(ExerciseSelectedEvent(state.last_valid_exercise))

        return ResetResult(accepted=True, phase=state.phase)

    def select_exercise(self) -> Optional[Exercise]:
        """
        Ask the selector for an exercise and start over with it.

        Returns:
            The selected exercise, or None if nothing was selected (no-op)
        """
        exercise = self.selector.select_exercise()
        if exercise is None:
            return None

        if exercise.baby_steps_activated:
            self.timer.enable()
        else:
            self.timer.disable()

        state = self._state
        state.phase = Phase.RED
        state.original_exercise = exercise
        state.last_valid_exercise = exercise
        state.last_status = PhaseStatus(valid=False, outcome=None, phase=Phase.RED)
        logger.info("Selected exercise %s", exercise.name)

        self.bus.publish(ExerciseSelectedEvent(exercise))
        self.tracker.reset()
        self._start_timer(code=False)
        return exercise

    def display_tracking(self) -> None:
        self.tracker.display_in_new_window()
