"""Console reporter for the function-calling test runner.

Prints a header, one block per test case with PASS/FAIL and evidence lines,
and a summary with the success rate.
"""

import logging
import sys
from typing import TextIO

from .exceptions import NoMatchingCasesError
from .models import MessageExpectation, RunSummary, TestCase, TestResult, ToolCallExpectation


logger = logging.getLogger(__name__)

# ANSI color codes for console output
COLORS = {
    "green": "\033[32m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bold": "\033[1m",
    "reset": "\033[0m",
}

BANNER_WIDTH = 62


class ConsoleReporter:
    """Reporter that renders test progress and results to a console stream."""

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        """Initialize the reporter.

        Args:
            stream: Output stream; defaults to stdout.
            use_color: Force colors on or off; by default only on a TTY.
        """
        self.stream = stream or sys.stdout
        if use_color is None:
            use_color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.use_color = use_color

    def colorize(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        return f"{COLORS[color]}{text}{COLORS['reset']}"

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def _banner(self, title: str) -> None:
        self._print(self.colorize("╔" + "═" * BANNER_WIDTH + "╗", "cyan"))
        self._print(self.colorize("║" + title.center(BANNER_WIDTH) + "║", "cyan"))
        self._print(self.colorize("╚" + "═" * BANNER_WIDTH + "╝", "cyan"))
        self._print()

    def print_header(self) -> None:
        self._banner("OpenAI Function Calling Test")

    def run_started(self, total: int, name_filter: str | None) -> None:
        if name_filter is not None:
            self._print(self.colorize(f"Running tests matching: {name_filter}", "yellow"))
            self._print()
        self._print(self.colorize(f"Starting test suite with {total} test cases...", "blue"))
        self._print()

    def case_started(self, test_case: TestCase) -> None:
        self._print(self.colorize("Running test: ", "blue") + self.colorize(test_case.name, "bold"))

        expectation = test_case.expected_output
        if isinstance(expectation, ToolCallExpectation):
            self._print(self.colorize("Expected tool: ", "cyan") + expectation.tool)
        else:
            self._print(self.colorize("Expected type: ", "cyan") + expectation.type)
            if isinstance(expectation, MessageExpectation) and expectation.meaning:
                self._print(self.colorize("Expected meaning: ", "cyan") + expectation.meaning)

    def case_finished(self, result: TestResult) -> None:
        icon = "✓" if result.passed else "✗"
        color = "green" if result.passed else "red"
        status = "PASS" if result.passed else "FAIL"

        self._print(
            self.colorize(f"[{icon}] ", color)
            + self.colorize(result.test_case_name, "white")
            + " - "
            + self.colorize(status, color)
            + f" ({result.duration_ms} ms)"
        )
        for detail in result.evidence:
            self._print("    " + self.colorize(f"→ {detail}", "yellow"))
        self._print()

    def print_no_match(self, error: NoMatchingCasesError) -> None:
        """Report that a filter selected no cases, listing what is available."""
        self._print(self.colorize(str(error), "red"))
        if error.available:
            self._print(self.colorize("Available tests:", "yellow"))
            for name in error.available:
                self._print(self.colorize(f"  - {name}", "white"))

    def print_summary(self, summary: RunSummary) -> None:
        """Print the totals and success rate of a run.

        Args:
            summary: The completed run.
        """
        self._banner("Test Summary")

        if summary.all_passed:
            summary_color = "green"
        elif summary.passed > 0:
            summary_color = "yellow"
        else:
            summary_color = "red"

        self._print(self.colorize("Total Tests: ", "white") + str(summary.total))
        self._print(self.colorize("Passed: ", "green") + str(summary.passed))
        self._print(self.colorize("Failed: ", "red") + str(summary.failed))
        self._print(
            self.colorize("Success Rate: ", "white")
            + self.colorize(f"{summary.success_rate}%", summary_color)
        )
        self._print()

        if summary.all_passed:
            self._print(self.colorize("All tests passed!", "green"))
        elif summary.passed > 0:
            self._print(self.colorize("Some tests failed. Check the results above.", "yellow"))
        else:
            self._print(self.colorize("All tests failed. Please check your configuration.", "red"))

        logger.info(f"Summary printed: {summary.passed}/{summary.total} passed")

    def print_fatal(self, message: str) -> None:
        self._print(self.colorize(f"Fatal Error: {message}", "red"))
