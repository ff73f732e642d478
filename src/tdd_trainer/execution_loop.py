"""Compile and test steps for one submission - standalone, no LangGraph."""

import logging
import re
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from xml.etree import ElementTree

from tdd_trainer.execution_state import (
    EXECUTION_FILE,
    CompilationResult,
    CompileDiagnostic,
    ExecutionState,
    FailedTest,
    SuiteResult,
)

logger = logging.getLogger(__name__)

REPORT_NAME = ".tddt_report.xml"

# Import-time failures that mean "this name does not exist yet"
MISSING_SYMBOL_PATTERNS = [
    re.compile(r"cannot import name '([^']+)'"),
    re.compile(r"No module named '([^']+)'"),
    re.compile(r"name '([^']+)' is not defined"),
    re.compile(r"has no attribute '([^']+)'"),
]

_TRACEBACK_LOCATION = re.compile(r"^([^\s:]+\.py):(\d+):", re.MULTILINE)


# --- Compile step ---

def compile_node(state: ExecutionState) -> ExecutionState:
    """
    Syntax-check every file of the submission with the built-in compiler.

    Records one CompilationResult per file. Sets status to COMPILE_FAILED if
    any file has diagnostics, else COMPILED. Never raises.
    """
    results = []
    for source in state.exercise.files:
        diagnostics = []
        try:
            compile(source.content, source.name, "exec")
        except SyntaxError as e:
            diagnostics.append(
                CompileDiagnostic(file_name=source.name, message=e.msg, line=e.lineno)
            )
        except ValueError as e:
            diagnostics.append(CompileDiagnostic(file_name=source.name, message=str(e)))
        results.append(CompilationResult(file_name=source.name, diagnostics=tuple(diagnostics)))

    state.compilation_results = results
    if any(cr.has_errors for cr in results):
        state.status = "COMPILE_FAILED"
    else:
        state.status = "COMPILED"
    return state


# --- Test step ---

def run_tests_node(state: ExecutionState) -> ExecutionState:
    """
    Run the submission's tests with pytest in a throwaway directory.

    Collection errors are folded into the compilation results; in that case
    no test result is recorded. Timeouts and runs without a report become a
    diagnostic on the <execution> pseudo file. Never raises.
    """
    with tempfile.TemporaryDirectory(prefix="tddt_") as tmp:
        workdir = Path(tmp)
        for source in state.exercise.files:
            target = workdir / source.name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source.content, encoding="utf-8")

        report_path = workdir / REPORT_NAME
        cmd = [
            sys.executable, "-m", "pytest", "-q",
            "-p", "no:cacheprovider",
            f"--junitxml={report_path}",
        ]
        logger.debug("Running %s in %s", " ".join(cmd), workdir)

        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                cwd=workdir,
                capture_output=True,
                text=True,
                timeout=state.timeout_s,
            )
        except subprocess.TimeoutExpired:
            _fail_execution(state, f"execution timed out after {state.timeout_s:g} seconds")
            return state
        logger.debug("pytest exited with %s after %.2fs", result.returncode, time.monotonic() - start)

        state.exit_code = result.returncode
        if not report_path.exists():
            output = (result.stderr or result.stdout or "").strip()
            tail = output.splitlines()[-1] if output else "no output"
            _fail_execution(state, f"pytest exited with code {result.returncode} without a report: {tail}")
            return state

        test_result, diagnostics = parse_junit_report(
            report_path.read_text(encoding="utf-8"),
            file_names=state.exercise.file_names(),
        )

    if diagnostics:
        state.compilation_results = merge_diagnostics(state.compilation_results, diagnostics)
        state.test_result = None
        state.status = "COMPILE_FAILED"
    else:
        state.test_result = test_result
        state.status = "TESTED"
    return state


def _fail_execution(state: ExecutionState, message: str) -> None:
    state.compilation_results = merge_diagnostics(
        state.compilation_results,
        [CompileDiagnostic(file_name=EXECUTION_FILE, message=message)],
    )
    state.test_result = None
    state.status = "COMPILE_FAILED"


def merge_diagnostics(
    results: Iterable[CompilationResult],
    diagnostics: Iterable[CompileDiagnostic],
) -> List[CompilationResult]:
    """Attach diagnostics to the result of their file, adding results for unknown files."""
    merged = {cr.file_name: list(cr.diagnostics) for cr in results}
    for d in diagnostics:
        merged.setdefault(d.file_name, []).append(d)
    return [
        CompilationResult(file_name=name, diagnostics=tuple(diags))
        for name, diags in merged.items()
    ]


# --- JUnit report parsing ---

def parse_junit_report(
    xml_text: str,
    file_names: Iterable[str] = (),
) -> Tuple[SuiteResult, List[CompileDiagnostic]]:
    """
    Parse a pytest JUnit XML report.

    Args:
        xml_text: Report contents
        file_names: Names of the submitted files, used to attribute
                    collection errors to a file

    Returns:
        (test_result, collection_diagnostics)
    """
    root = ElementTree.fromstring(xml_text)
    suites = [root] if root.tag == "testsuite" else list(root.iter("testsuite"))
    known_files = list(file_names)

    tests_run = 0
    skipped = 0
    duration = 0.0
    failures: List[FailedTest] = []
    diagnostics: List[CompileDiagnostic] = []

    for suite in suites:
        duration += float(suite.get("time") or 0)
        for case in suite.iter("testcase"):
            error = case.find("error")
            failure = case.find("failure")

            if error is not None and "collection failure" in (error.get("message") or ""):
                diagnostics.append(_collection_diagnostic(case, error, known_files))
                continue

            tests_run += 1
            if case.find("skipped") is not None:
                skipped += 1
                continue

            problem = failure if failure is not None else error
            if problem is not None:
                failures.append(FailedTest(test_id=_test_id(case), message=_problem_message(problem)))

    test_result = SuiteResult(
        tests_run=tests_run,
        failed_tests=len(failures),
        skipped_tests=skipped,
        duration_s=duration,
        failures=tuple(failures),
    )
    return test_result, diagnostics


def _test_id(case: ElementTree.Element) -> str:
    classname = case.get("classname") or ""
    name = case.get("name") or ""
    return f"{classname}::{name}" if classname else name


def _problem_message(problem: ElementTree.Element) -> str:
    message = problem.get("message")
    if message:
        return message
    text = (problem.text or "").strip()
    return text.splitlines()[-1] if text else ""


def _collection_diagnostic(
    case: ElementTree.Element,
    error: ElementTree.Element,
    known_files: List[str],
) -> CompileDiagnostic:
    """Turn an import-time failure into a compile diagnostic."""
    text = error.text or ""
    error_lines = [line[1:].strip() for line in text.splitlines() if line.startswith("E ")]
    searched = error_lines or text.splitlines()

    message = None
    for line in searched:
        for pattern in MISSING_SYMBOL_PATTERNS:
            match = pattern.search(line)
            if match:
                message = f"cannot find symbol: {match.group(1)}"
                break
        if message:
            break
    if message is None:
        message = error_lines[-1] if error_lines else (error.get("message") or "collection failure")

    file_name, line_no = _locate(text, case, known_files)
    return CompileDiagnostic(file_name=file_name, message=message, line=line_no)


def _locate(
    text: str,
    case: ElementTree.Element,
    known_files: List[str],
) -> Tuple[str, Optional[int]]:
    for match in _TRACEBACK_LOCATION.finditer(text):
        name = Path(match.group(1)).name
        if name in known_files:
            return name, int(match.group(2))

    # Fall back to the module the collector was working on
    case_name = (case.get("classname") or case.get("name") or "").replace(".", "/")
    for name in known_files:
        if case_name == Path(name).with_suffix("").as_posix():
            return name, None
    return EXECUTION_FILE, None


# --- Loop ---

def run_execution_loop(state: ExecutionState) -> ExecutionState:
    """
    Main execution loop.

    Logic:
    1. Call compile_node
    2. If COMPILE_FAILED -> return (tests are not run)
    3. Call run_tests_node
    4. Return final state

    No retries.
    """
    state = compile_node(state)
    if state.status == "COMPILE_FAILED":
        return state
    return run_tests_node(state)
