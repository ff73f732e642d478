"""Shared fakes for engine and session tests."""

from typing import List, Optional

import pytest

from tdd_trainer.babysteps import BabystepTimer
from tdd_trainer.catalog import ExerciseSelector
from tdd_trainer.engine import PhaseEngine
from tdd_trainer.events import EventBus
from tdd_trainer.execution_state import (
    CompilationResult,
    CompileDiagnostic,
    ExecutionOutcome,
    SuiteResult,
)
from tdd_trainer.exercise import Exercise, SourceFile
from tdd_trainer.step_runner import Executor
from tdd_trainer.tracking import TrackingManager


def make_outcome(failed: int = 0, run: Optional[int] = None, errors: tuple = ()) -> ExecutionOutcome:
    """Outcome with the given compile error messages, or a test run with `failed` failures."""
    if errors:
        diagnostics = tuple(CompileDiagnostic(file_name="kata.py", message=m) for m in errors)
        return ExecutionOutcome(
            compilation_results=(CompilationResult(file_name="kata.py", diagnostics=diagnostics),),
        )
    return ExecutionOutcome(
        compilation_results=(CompilationResult(file_name="kata.py"),),
        test_result=SuiteResult(tests_run=run if run is not None else max(failed, 1), failed_tests=failed),
    )


def make_exercise(name: str = "Kata", activated: bool = True) -> Exercise:
    return Exercise(
        name=name,
        code=(SourceFile("kata.py", "def answer():\n    return 42\n"),),
        tests=(SourceFile("test_kata.py", "from kata import answer\n"),),
        baby_steps_activated=activated,
        baby_steps_code_time=90,
        baby_steps_test_time=60,
    )


class FakeExecutor(Executor):
    """Returns queued outcomes; repeats the last one when the queue runs dry."""

    def __init__(self, *outcomes: ExecutionOutcome):
        self.outcomes = list(outcomes)
        self.submissions: List[Exercise] = []

    def evaluate(self, exercise: Exercise) -> ExecutionOutcome:
        self.submissions.append(exercise)
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


class FakeSelector(ExerciseSelector):
    def __init__(self, exercise: Optional[Exercise]):
        self.exercise = exercise
        self.calls = 0

    def select_exercise(self) -> Optional[Exercise]:
        self.calls += 1
        return self.exercise


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer(clock):
    return BabystepTimer(clock=clock)


@pytest.fixture
def exercise():
    return make_exercise()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def tracker():
    return TrackingManager(print_fn=lambda line: None)


@pytest.fixture
def executor():
    return FakeExecutor(make_outcome(failed=1))


@pytest.fixture
def engine(executor, tracker, exercise, bus, timer):
    return PhaseEngine(
        executor=executor,
        tracker=tracker,
        selector=FakeSelector(exercise),
        bus=bus,
        timer=timer,
    )
