"""Execution outcome types and the working state of one evaluation."""

from dataclasses import dataclass, field
from typing import List, Optional

from tdd_trainer.exercise import Exercise


# Pseudo file name for problems that belong to the run, not to a source file
EXECUTION_FILE = "<execution>"


@dataclass(frozen=True)
class CompileDiagnostic:
    file_name: str
    message: str
    line: Optional[int] = None


@dataclass(frozen=True)
class CompilationResult:
    """Diagnostics reported for one file."""
    file_name: str
    diagnostics: tuple[CompileDiagnostic, ...] = ()

    @property
    def has_errors(self) -> bool:
        return len(self.diagnostics) > 0


@dataclass(frozen=True)
class FailedTest:
    test_id: str
    message: str


@dataclass(frozen=True)
class SuiteResult:
    tests_run: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    duration_s: float = 0.0
    failures: tuple[FailedTest, ...] = ()

    @property
    def passed_tests(self) -> int:
        return self.tests_run - self.failed_tests - self.skipped_tests


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of compiling and running one submission.

    Tests are only run when compilation is clean, so `test_result` is None
    whenever `has_compile_errors` is True.
    """
    compilation_results: tuple[CompilationResult, ...] = ()
    test_result: Optional[SuiteResult] = None

    @property
    def has_compile_errors(self) -> bool:
        return any(cr.has_errors for cr in self.compilation_results)

    @property
    def compile_errors(self) -> List[CompileDiagnostic]:
        return [d for cr in self.compilation_results for d in cr.diagnostics]

    @property
    def failed_tests(self) -> int:
        if self.test_result is None:
            return 0
        return self.test_result.failed_tests


@dataclass
class ExecutionState:
    """Mutable state threaded through the compile and test steps."""
    exercise: Exercise
    timeout_s: float = 60.0
    compilation_results: List[CompilationResult] = field(default_factory=list)
    test_result: Optional[SuiteResult] = None
    exit_code: Optional[int] = None
    status: str = "PENDING"  # PENDING | COMPILED | COMPILE_FAILED | TESTED

    def to_outcome(self) -> ExecutionOutcome:
        return ExecutionOutcome(
            compilation_results=tuple(self.compilation_results),
            test_result=self.test_result,
        )
