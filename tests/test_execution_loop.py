"""Tests for the compile/test steps, report parsing and the pytest executor."""

import pytest

from tdd_trainer.execution_loop import (
    compile_node,
    merge_diagnostics,
    parse_junit_report,
    run_execution_loop,
)
from tdd_trainer.execution_state import (
    EXECUTION_FILE,
    CompilationResult,
    CompileDiagnostic,
    ExecutionState,
)
from tdd_trainer.exercise import Exercise, SourceFile
from tdd_trainer.step_runner import PytestExecutor


def kata(code: str, tests: str) -> Exercise:
    return Exercise(
        name="FizzBuzz",
        code=(SourceFile("fizzbuzz.py", code),),
        tests=(SourceFile("test_fizzbuzz.py", tests),),
    )


FIZZBUZZ = """
def fizzbuzz(n):
    if n % 3 == 0:
        return "Fizz"
    return str(n)
"""

PASSING_TESTS = """
from fizzbuzz import fizzbuzz


def test_one():
    assert fizzbuzz(1) == "1"


def test_three():
    assert fizzbuzz(3) == "Fizz"
"""

ONE_FAILING_TEST = PASSING_TESTS + """

def test_five():
    assert fizzbuzz(5) == "Buzz"
"""

MISSING_NAME_TESTS = """
from fizzbuzz import fizzbuzz, buzz


def test_buzz():
    assert buzz(5)
"""


# =============================================================================
# REPORT SAMPLES
# =============================================================================

REPORT_WITH_FAILURE = """<?xml version="1.0" encoding="utf-8"?>
<testsuites><testsuite name="pytest" errors="0" failures="1" skipped="1" tests="4" time="0.031">
<testcase classname="test_fizzbuzz" name="test_one" time="0.001" />
<testcase classname="test_fizzbuzz" name="test_three" time="0.001" />
<testcase classname="test_fizzbuzz" name="test_five" time="0.001">
<failure message="AssertionError: assert '5' == 'Buzz'">def test_five(): ...</failure>
</testcase>
<testcase classname="test_fizzbuzz" name="test_later" time="0.000">
<skipped type="pytest.skip" message="not yet">skipped</skipped>
</testcase>
</testsuite></testsuites>
"""

REPORT_WITH_COLLECTION_ERROR = """<?xml version="1.0" encoding="utf-8"?>
<testsuites><testsuite name="pytest" errors="1" failures="0" skipped="0" tests="1" time="0.050">
<testcase classname="" name="test_fizzbuzz" time="0.000">
<error message="collection failure">ImportError while importing test module '/tmp/tddt_x/test_fizzbuzz.py'.
Hint: make sure your test modules/packages have valid Python names.
Traceback:
/usr/lib/python3.12/importlib/__init__.py:90: in import_module
    return _bootstrap._gcd_import(name[level:], package, level)
test_fizzbuzz.py:2: in &lt;module&gt;
    from fizzbuzz import fizzbuzz, buzz
E   ImportError: cannot import name 'buzz' from 'fizzbuzz' (/tmp/tddt_x/fizzbuzz.py)</error>
</testcase>
</testsuite></testsuites>
"""

REPORT_WITH_OTHER_COLLECTION_ERROR = """<?xml version="1.0" encoding="utf-8"?>
<testsuite name="pytest" errors="1" failures="0" skipped="0" tests="1" time="0.020">
<testcase classname="" name="test_fizzbuzz" time="0.000">
<error message="collection failure">test_fizzbuzz.py:3: in &lt;module&gt;
    value = 1 / 0
E   ZeroDivisionError: division by zero</error>
</testcase>
</testsuite>
"""


REPORT_WITHOUT_LOCATION = """<?xml version="1.0" encoding="utf-8"?>
<testsuite name="pytest" errors="1" failures="0" skipped="0" tests="1" time="0.010">
<testcase classname="" name="test_kata" time="0.000">
<error message="collection failure">E   RuntimeError: boom</error>
</testcase>
</testsuite>
"""


class TestCompileNode:

    def test_clean_files(self):
        state = compile_node(ExecutionState(exercise=kata(FIZZBUZZ, PASSING_TESTS)))

        assert state.status == "COMPILED"
        assert [cr.file_name for cr in state.compilation_results] == ["fizzbuzz.py", "test_fizzbuzz.py"]
        assert not any(cr.has_errors for cr in state.compilation_results)

    def test_syntax_error_is_reported_per_file(self):
        state = compile_node(ExecutionState(exercise=kata("def fizzbuzz(n)\n    pass\n", PASSING_TESTS)))

        assert state.status == "COMPILE_FAILED"
        outcome = state.to_outcome()
        assert outcome.has_compile_errors
        assert len(outcome.compile_errors) == 1
        diagnostic = outcome.compile_errors[0]
        assert diagnostic.file_name == "fizzbuzz.py"
        assert diagnostic.line == 1

    def test_compile_failure_skips_tests(self):
        state = run_execution_loop(ExecutionState(exercise=kata(FIZZBUZZ, "def test_x(:\n")))

        assert state.status == "COMPILE_FAILED"
        assert state.test_result is None
        assert state.exit_code is None


class TestParseJunitReport:

    def test_counts_failures_and_skips(self):
        result, diagnostics = parse_junit_report(REPORT_WITH_FAILURE)

        assert diagnostics == []
        assert result.tests_run == 4
        assert result.failed_tests == 1
        assert result.skipped_tests == 1
        assert result.passed_tests == 2
        assert result.failures[0].test_id == "test_fizzbuzz::test_five"
        assert "Buzz" in result.failures[0].message

    def test_missing_name_becomes_missing_symbol(self):
        result, diagnostics = parse_junit_report(
            REPORT_WITH_COLLECTION_ERROR,
            file_names=["fizzbuzz.py", "test_fizzbuzz.py"],
        )

        assert result.tests_run == 0
        assert diagnostics == [
            CompileDiagnostic(file_name="test_fizzbuzz.py", message="cannot find symbol: buzz", line=2)
        ]

    def test_other_collection_error_keeps_error_line(self):
        _, diagnostics = parse_junit_report(
            REPORT_WITH_OTHER_COLLECTION_ERROR,
            file_names=["fizzbuzz.py", "test_fizzbuzz.py"],
        )

        assert len(diagnostics) == 1
        assert diagnostics[0].message == "ZeroDivisionError: division by zero"
        assert diagnostics[0].file_name == "test_fizzbuzz.py"

    def test_module_name_must_match_exactly(self):
        _, diagnostics = parse_junit_report(
            REPORT_WITHOUT_LOCATION,
            file_names=["kata.py", "test_kata.py"],
        )

        assert diagnostics == [
            CompileDiagnostic(file_name="test_kata.py", message="RuntimeError: boom", line=None)
        ]

    def test_unknown_file_goes_to_execution(self):
        _, diagnostics = parse_junit_report(REPORT_WITH_COLLECTION_ERROR, file_names=[])

        assert diagnostics[0].file_name == EXECUTION_FILE


class TestMergeDiagnostics:

    def test_attaches_to_existing_and_new_files(self):
        results = [CompilationResult("a.py"), CompilationResult("b.py")]
        merged = merge_diagnostics(results, [
            CompileDiagnostic("b.py", "x"),
            CompileDiagnostic(EXECUTION_FILE, "timed out"),
        ])

        assert [cr.file_name for cr in merged] == ["a.py", "b.py", EXECUTION_FILE]
        assert not merged[0].has_errors
        assert merged[1].diagnostics[0].message == "x"


# =============================================================================
# INTEGRATION - real pytest subprocess
# =============================================================================

@pytest.mark.parametrize("use_graph", [False, True])
class TestPytestExecutor:

    def test_all_passing(self, use_graph):
        outcome = PytestExecutor(timeout_s=60, use_graph=use_graph).evaluate(kata(FIZZBUZZ, PASSING_TESTS))

        assert not outcome.has_compile_errors
        assert outcome.test_result.tests_run == 2
        assert outcome.failed_tests == 0

    def test_one_failing(self, use_graph):
        outcome = PytestExecutor(timeout_s=60, use_graph=use_graph).evaluate(kata(FIZZBUZZ, ONE_FAILING_TEST))

        assert not outcome.has_compile_errors
        assert outcome.test_result.tests_run == 3
        assert outcome.failed_tests == 1

    def test_missing_name_is_a_compile_error(self, use_graph):
        outcome = PytestExecutor(timeout_s=60, use_graph=use_graph).evaluate(kata(FIZZBUZZ, MISSING_NAME_TESTS))

        assert outcome.has_compile_errors
        assert outcome.test_result is None
        assert [d.message for d in outcome.compile_errors] == ["cannot find symbol: buzz"]

    def test_syntax_error(self, use_graph):
        outcome = PytestExecutor(timeout_s=60, use_graph=use_graph).evaluate(kata("def broken(:\n", PASSING_TESTS))

        assert outcome.has_compile_errors
        assert outcome.compile_errors[0].file_name == "fizzbuzz.py"
