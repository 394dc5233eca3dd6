"""Test Case Loader for the function-calling test runner.

This module loads test case definitions from JSON or YAML files and converts
them to Pydantic TestCase models. A case file is either a list of cases or a
mapping with a ``test_cases`` key:

    [
      {
        "name": "password_reminder",
        "messages": [{"role": "user", "content": "I forgot my password, a@b.com"}],
        "expected_output": {"type": "toolcall", "tool": "password_reminder",
                            "arguments": {"email": "a@b.com"}}
      }
    ]
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import read_document
from .exceptions import ConfigurationError
from .models import ChatMessage, TestCase, ToolCallExpectation


logger = logging.getLogger(__name__)


def load_test_cases(path: str | Path) -> list[TestCase]:
    """Load test cases from a JSON or YAML file.

    Args:
        path: Path to the case file.

    Returns:
        List of TestCase objects in file order.

    Raises:
        ConfigurationError: If the file is missing, malformed, contains an
            invalid case, or repeats a case name.
    """
    logger.info(f"Loading test cases from {path}")

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Failed to load {path}: file not found")

    data = read_document(file_path, "test cases")
    if data is None:
        raise ConfigurationError(f"Failed to parse {path}: file is empty")

    if isinstance(data, dict):
        test_cases_data = data.get("test_cases", data.get("cases"))
        if test_cases_data is None:
            raise ConfigurationError(f"No 'test_cases' list found in {path}")
    elif isinstance(data, list):
        test_cases_data = data
    else:
        raise ConfigurationError(f"Invalid structure in {path}: expected list or dict")

    if not isinstance(test_cases_data, list):
        raise ConfigurationError(f"Invalid structure in {path}: 'test_cases' must be a list")

    test_cases = []
    seen_names: set[str] = set()
    for idx, tc_data in enumerate(test_cases_data):
        test_case = _parse_test_case(tc_data, idx)

        if test_case.name in seen_names:
            raise ConfigurationError(f"Duplicate test case name '{test_case.name}' at index {idx}")
        seen_names.add(test_case.name)

        for issue in validate_test_case(test_case):
            logger.warning(issue)

        test_cases.append(test_case)
        logger.debug(f"Loaded test case: {test_case.name}")

    logger.info(f"Loaded {len(test_cases)} test case(s) from {path}")
    return test_cases


def _parse_test_case(data: Any, index: int) -> TestCase:
    """Parse a test case from a dictionary.

    Args:
        data: Dictionary containing test case data.
        index: Index of the case in the file, for error messages.

    Returns:
        TestCase object.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid test case at index {index}: expected a mapping")

    missing = [key for key in ("name", "messages", "expected_output") if key not in data]
    if missing:
        raise ConfigurationError(
            f"Invalid test case at index {index}: missing {', '.join(missing)}"
        )

    try:
        messages = [ChatMessage(**msg) for msg in data["messages"]]
        return TestCase(
            name=data["name"],
            messages=messages,
            expected_output=data["expected_output"],
        )
    except (TypeError, ValueError, ValidationError) as e:
        logger.error(f"Failed to parse test case at index {index}: {e}")
        raise ConfigurationError(f"Invalid test case at index {index}: {e}") from e


def validate_test_case(test_case: TestCase) -> list[str]:
    """Check a test case for common authoring mistakes.

    These are warnings, not errors: the case still runs.

    Args:
        test_case: The test case to validate.

    Returns:
        List of warnings.
    """
    issues = []

    if not test_case.messages:
        issues.append(f"Test case '{test_case.name}' has no messages")
    elif not any(m.role == "user" for m in test_case.messages):
        issues.append(f"Test case '{test_case.name}' has no user messages")

    expectation = test_case.expected_output
    if isinstance(expectation, ToolCallExpectation) and not expectation.tool.strip():
        issues.append(f"Test case '{test_case.name}' expects a tool call with an empty tool name")

    return issues
