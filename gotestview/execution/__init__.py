"""Test execution: runs go test and streams its events."""

from gotestview.execution.executor import (
    OUTCOME_PASSED,
    OUTCOME_TESTS_FAILED,
    ExecutionError,
    GoTestExecutor,
    run_pattern,
)

__all__ = [
    "OUTCOME_PASSED",
    "OUTCOME_TESTS_FAILED",
    "ExecutionError",
    "GoTestExecutor",
    "run_pattern",
]
