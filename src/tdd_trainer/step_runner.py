"""Executor interface and the pytest-backed implementation.

Runs one submission through the compile and test steps and returns an
ExecutionOutcome. No retries, no state between calls.
"""

import logging
from abc import ABC, abstractmethod

from tdd_trainer.constants import DEFAULT_EXECUTION_TIMEOUT_S
from tdd_trainer.execution_loop import run_execution_loop
from tdd_trainer.execution_state import ExecutionOutcome, ExecutionState
from tdd_trainer.exercise import Exercise

logger = logging.getLogger(__name__)


class Executor(ABC):
    """Abstract interface for execution engines."""

    @abstractmethod
    def evaluate(self, exercise: Exercise) -> ExecutionOutcome:
        """
        Compile and test a submission.

        Args:
            exercise: The submission to evaluate

        Returns:
            ExecutionOutcome with compile diagnostics and test counts
        """
        pass


class PytestExecutor(Executor):
    """Syntax check with the built-in compiler, then run pytest in a subprocess."""

    def __init__(self, timeout_s: float = DEFAULT_EXECUTION_TIMEOUT_S, use_graph: bool = True):
        """
        Args:
            timeout_s: Upper bound for the pytest subprocess
            use_graph: If True, run through the LangGraph wrapper for tracing visibility
        """
        self.timeout_s = timeout_s
        self.use_graph = use_graph

    def evaluate(self, exercise: Exercise) -> ExecutionOutcome:
        logger.debug("Evaluating %s (graph=%s)", exercise.name, self.use_graph)

        if self.use_graph:
            from tdd_trainer.execution_graph import run_execution_graph
            return run_execution_graph(exercise, timeout_s=self.timeout_s)

        state = ExecutionState(exercise=exercise, timeout_s=self.timeout_s)
        return run_execution_loop(state).to_outcome()
