"""Test Executor for the function-calling test runner.

This module provides the TestExecutor class that:
- Filters test cases by name
- Runs them one at a time against the Responses API
- Hands each response to the expectation matcher
- Aggregates results into a RunSummary

A failing API call fails only its own case; the run always continues.
"""

import json
import logging
import time
from typing import Any, Protocol

from .config import REQUEST_TIMEOUT, ToolStructure
from .exceptions import NoMatchingCasesError, TransportError
from .judge import MeaningChecker
from .matchers import evaluate
from .models import CaseContext, RunSummary, TestCase, TestResult
from .request_builder import build_primary_request


class ResponsesTransport(Protocol):
    """The part of the transport the executor needs."""

    def create_response(self, payload: dict[str, Any], timeout: float = ...) -> dict[str, Any]:
        ...


class RunObserver(Protocol):
    """Receives progress callbacks during a run (the console reporter implements this)."""

    def run_started(self, total: int, name_filter: str | None) -> None:
        ...

    def case_started(self, test_case: TestCase) -> None:
        ...

    def case_finished(self, result: TestResult) -> None:
        ...


def filter_cases(cases: list[TestCase], name_filter: str | None = None) -> list[TestCase]:
    """Select cases whose name contains ``name_filter`` (case-insensitive).

    Args:
        cases: All loaded cases.
        name_filter: Substring to look for; None selects everything.

    Returns:
        The selected cases, in their original order.

    Raises:
        NoMatchingCasesError: If nothing is selected.
    """
    if name_filter is None:
        selected = list(cases)
    else:
        needle = name_filter.lower()
        selected = [tc for tc in cases if needle in tc.name.lower()]

    if not selected:
        raise NoMatchingCasesError(name_filter, [tc.name for tc in cases])
    return selected


class TestExecutor:
    """Executor for running test cases against the model API."""

    __test__ = False

    def __init__(
        self,
        transport: ResponsesTransport,
        model: str,
        structure: ToolStructure,
        judge: MeaningChecker | None = None,
        system_prompt: str | None = None,
        request_timeout: float = REQUEST_TIMEOUT,
        observer: RunObserver | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the test executor.

        Args:
            transport: Transport for the Responses endpoint.
            model: Model under test.
            structure: Tool definitions and parallel tool call policy.
            judge: Meaning checker for message expectations with a meaning.
            system_prompt: Optional system prompt prepended to every request.
            request_timeout: Seconds before a primary call is abandoned.
            observer: Optional progress observer.
            logger: Logger instance.
        """
        self.transport = transport
        self.model = model
        self.structure = structure
        self.judge = judge
        self.system_prompt = system_prompt
        self.request_timeout = request_timeout
        self.observer = observer
        self.logger = logger or logging.getLogger(__name__)

    def run_test_case(self, test_case: TestCase) -> TestResult:
        """Run a single test case.

        Args:
            test_case: The test case to run.

        Returns:
            TestResult with the verdict and evidence.
        """
        self.logger.info("=" * 60)
        self.logger.info(f"Running test case: {test_case.name}")
        self.logger.info("=" * 60)

        result = TestResult(test_case_name=test_case.name)
        context = CaseContext(test_case=test_case)
        start_time = time.time()
        response = None

        try:
            payload = build_primary_request(
                test_case.messages,
                self.model,
                self.structure,
                system_prompt=self.system_prompt,
            )
            response = self.transport.create_response(payload, timeout=self.request_timeout)

            if "output" in response:
                result.evidence.append(f"Actual output: {json.dumps(response['output'])}")
            else:
                result.evidence.append("No output found in response")

            verdict = evaluate(response, test_case.expected_output, context, self.judge)
            result.passed = verdict.passed
            result.evidence.extend(verdict.evidence)

        except TransportError as e:
            self.logger.error(f"API call failed for {test_case.name}: {e}")
            result.passed = False
            result.error_message = str(e)
            result.evidence = [f"Error: {e}"]
            partial = response if response is not None else e.partial_response
            if partial is not None:
                result.evidence.append(f"Partial response: {json.dumps(partial)}")

        except Exception as e:
            # A broken case must never abort the run
            self.logger.exception(f"Exception during test execution: {test_case.name}")
            result.passed = False
            result.error_message = f"{type(e).__name__}: {e}"
            result.evidence.append(f"Error: {result.error_message}")
            if response is not None:
                result.evidence.append(f"Partial response: {json.dumps(response, default=str)}")

        result.duration_ms = int((time.time() - start_time) * 1000)

        self.logger.info(f"Test case {test_case.name}: {'PASSED' if result.passed else 'FAILED'}")
        return result

    def run(self, cases: list[TestCase], name_filter: str | None = None) -> RunSummary:
        """Run all selected cases sequentially.

        Args:
            cases: All loaded test cases.
            name_filter: Optional case-insensitive substring of case names.

        Returns:
            RunSummary with every result.

        Raises:
            NoMatchingCasesError: If no case is selected. No API call is made.
        """
        selected = filter_cases(cases, name_filter)

        self.logger.info(f"{'=' * 70}")
        self.logger.info(f"Running {len(selected)} of {len(cases)} test case(s)")
        self.logger.info(f"{'=' * 70}")

        summary = RunSummary(name_filter=name_filter)
        if self.observer:
            self.observer.run_started(len(selected), name_filter)

        for idx, test_case in enumerate(selected):
            self.logger.info(f"[{idx + 1}/{len(selected)}] Running: {test_case.name}")
            if self.observer:
                self.observer.case_started(test_case)

            test_result = self.run_test_case(test_case)
            summary.results.append(test_result)

            if self.observer:
                self.observer.case_finished(test_result)

        self.logger.info(
            f"Run completed: {summary.passed}/{summary.total} passed ({summary.success_rate}%)"
        )
        return summary
