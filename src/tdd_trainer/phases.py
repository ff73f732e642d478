"""Cycle phases and the status snapshot published after every check."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tdd_trainer.execution_state import ExecutionOutcome


class Phase(Enum):
    RED = "red"
    GREEN = "green"
    REFACTOR = "refactor"


# Order for "next phase"; wraps around after REFACTOR
PHASE_ORDER = [
    Phase.RED,
    Phase.GREEN,
    Phase.REFACTOR,
]


def next_phase(phase: Phase) -> Phase:
    """Return the phase that follows `phase` in the cycle."""
    i = PHASE_ORDER.index(phase)
    return PHASE_ORDER[(i + 1) % len(PHASE_ORDER)]


@dataclass(frozen=True)
class PhaseStatus:
    """Result of one check: validity, the outcome behind it, and the phase afterwards."""
    valid: bool
    outcome: Optional[ExecutionOutcome]
    phase: Phase

    @property
    def failed_tests(self) -> int:
        if self.outcome is None:
            return 0
        return self.outcome.failed_tests

    @property
    def compile_error_count(self) -> int:
        if self.outcome is None:
            return 0
        return len(self.outcome.compile_errors)
