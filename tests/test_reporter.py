"""Tests for the console reporter."""

import io

from fncheck.exceptions import NoMatchingCasesError
from fncheck.models import RunSummary, TestResult
from fncheck.reporter import COLORS, ConsoleReporter


def _reporter(use_color=False):
    stream = io.StringIO()
    return ConsoleReporter(stream=stream, use_color=use_color), stream


def _summary(*outcomes: bool) -> RunSummary:
    return RunSummary(results=[TestResult(test_case_name=f"t{i}", passed=p) for i, p in enumerate(outcomes)])


def test_string_stream_is_not_colored_by_default():
    assert ConsoleReporter(stream=io.StringIO()).use_color is False


def test_colorize():
    reporter, _ = _reporter(use_color=True)

    assert reporter.colorize("ok", "green") == f"{COLORS['green']}ok{COLORS['reset']}"


def test_header():
    reporter, stream = _reporter()

    reporter.print_header()

    assert "OpenAI Function Calling Test" in stream.getvalue()


def test_run_started_with_filter():
    reporter, stream = _reporter()

    reporter.run_started(2, "weather")

    output = stream.getvalue()
    assert "Running tests matching: weather" in output
    assert "Starting test suite with 2 test cases..." in output


def test_case_blocks(password_case, meaning_case):
    reporter, stream = _reporter()

    reporter.case_started(password_case)
    reporter.case_started(meaning_case)
    reporter.case_finished(
        TestResult(test_case_name="password_reminder_basic", passed=True, evidence=["Called tools: password_reminder"])
    )
    reporter.case_finished(TestResult(test_case_name="off_topic_meaning", passed=False))

    output = stream.getvalue()
    assert "Expected tool: password_reminder" in output
    assert "Expected type: message" in output
    assert "Expected meaning: Declines off-topic questions" in output
    assert "[✓] password_reminder_basic - PASS" in output
    assert "    → Called tools: password_reminder" in output
    assert "[✗] off_topic_meaning - FAIL" in output


def test_no_match_lists_available_tests():
    reporter, stream = _reporter()

    reporter.print_no_match(NoMatchingCasesError("xyz", ["basic_weather", "greeting"]))

    assert stream.getvalue().splitlines() == [
        "No tests found matching: xyz",
        "Available tests:",
        "  - basic_weather",
        "  - greeting",
    ]


def test_summary_all_passed():
    reporter, stream = _reporter()

    reporter.print_summary(_summary(True, True))

    output = stream.getvalue()
    assert "Total Tests: 2" in output
    assert "Success Rate: 100.0%" in output
    assert "All tests passed!" in output


def test_summary_partial():
    reporter, stream = _reporter()

    reporter.print_summary(_summary(True, True, True, False))

    output = stream.getvalue()
    assert "Passed: 3" in output
    assert "Failed: 1" in output
    assert "Success Rate: 75.0%" in output
    assert "Some tests failed. Check the results above." in output


def test_summary_all_failed():
    reporter, stream = _reporter()

    reporter.print_summary(_summary(False))

    assert "All tests failed. Please check your configuration." in stream.getvalue()


def test_fatal():
    reporter, stream = _reporter()

    reporter.print_fatal("API key not found")

    assert stream.getvalue() == "Fatal Error: API key not found\n"


def test_case_line_shows_duration():
    reporter, stream = _reporter()

    reporter.case_finished(TestResult(test_case_name="basic_weather", passed=True, duration_ms=42))

    assert stream.getvalue().splitlines()[0] == "[✓] basic_weather - PASS (42 ms)"
