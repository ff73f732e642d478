"""LangGraph wrapper for the execution loop - trace harness only.

This wraps the compile and test steps in a LangGraph StateGraph so that
each step is visible as a node in LangGraph Studio.

Same semantics as run_execution_loop(), just structured visibility.
"""

from typing import List, Optional
from typing_extensions import TypedDict

from langgraph.graph import StateGraph, END

from tdd_trainer.execution_state import (
    CompilationResult,
    ExecutionOutcome,
    ExecutionState,
    SuiteResult,
)
from tdd_trainer.execution_loop import compile_node, run_tests_node
from tdd_trainer.exercise import Exercise


class ExecutionGraphState(TypedDict):
    """State for the execution graph - mirrors ExecutionState fields."""
    exercise: Exercise
    timeout_s: float
    compilation_results: List[CompilationResult]
    test_result: Optional[SuiteResult]
    exit_code: Optional[int]
    status: str


def state_to_execution_state(state: ExecutionGraphState) -> ExecutionState:
    """Convert graph state to ExecutionState dataclass."""
    return ExecutionState(
        exercise=state["exercise"],
        timeout_s=state["timeout_s"],
        compilation_results=list(state.get("compilation_results") or []),
        test_result=state.get("test_result"),
        exit_code=state.get("exit_code"),
        status=state["status"],
    )


def execution_state_to_dict(es: ExecutionState) -> ExecutionGraphState:
    """Convert ExecutionState back to graph state dict."""
    return {
        "exercise": es.exercise,
        "timeout_s": es.timeout_s,
        "compilation_results": es.compilation_results,
        "test_result": es.test_result,
        "exit_code": es.exit_code,
        "status": es.status,
    }


# --- Graph Nodes ---

def node_compile(state: ExecutionGraphState) -> ExecutionGraphState:
    """Syntax-check every submitted file."""
    es = compile_node(state_to_execution_state(state))
    return execution_state_to_dict(es)


def node_test(state: ExecutionGraphState) -> ExecutionGraphState:
    """Run the tests via pytest."""
    es = run_tests_node(state_to_execution_state(state))
    return execution_state_to_dict(es)


# --- Conditional Edges ---

def should_test(state: ExecutionGraphState) -> str:
    """Only run tests when compilation is clean."""
    if state["status"] == "COMPILE_FAILED":
        return "end"
    return "test"


# --- Graph Builder ---

def build_execution_graph() -> StateGraph:
    """
    Build the execution graph.

    Flow:
        compile -> (errors?) -> end
                -> (clean?) -> test -> end
    """
    graph = StateGraph(ExecutionGraphState)

    graph.add_node("compile", node_compile)
    graph.add_node("test", node_test)

    graph.set_entry_point("compile")

    graph.add_conditional_edges(
        "compile",
        should_test,
        {
            "end": END,
            "test": "test",
        }
    )
    graph.add_edge("test", END)

    return graph


def run_execution_graph(exercise: Exercise, timeout_s: float = 60.0) -> ExecutionOutcome:
    """
    Run the execution graph and return the outcome.

    This is the traced equivalent of run_execution_loop().
    """
    compiled = build_execution_graph().compile()

    initial_state: ExecutionGraphState = {
        "exercise": exercise,
        "timeout_s": timeout_s,
        "compilation_results": [],
        "test_result": None,
        "exit_code": None,
        "status": "PENDING",
    }

    final_state = compiled.invoke(initial_state)
    return state_to_execution_state(final_state).to_outcome()


# Pre-compiled graph for Studio discovery
execution_graph = build_execution_graph().compile()
