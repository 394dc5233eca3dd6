"""Declarative function-calling test runner.

This package provides:
- Models for test cases, expectations and results
- A loader for JSON/YAML case files
- Request builders and an HTTP transport for the OpenAI API
- An expectation matcher with an AI meaning judge
- A sequential test executor and a console reporter
"""

from .config import Settings, ToolStructure, load_settings, load_structure, resolve_core_model
from .exceptions import ConfigurationError, FncheckError, NoMatchingCasesError, TransportError
from .executor import TestExecutor, filter_cases
from .judge import MeaningJudge
from .loader import load_test_cases, validate_test_case
from .matchers import evaluate
from .models import (
    CaseContext,
    ChatMessage,
    Expectation,
    MeaningCheck,
    MessageExpectation,
    RunSummary,
    TestCase,
    TestResult,
    ToolCallExpectation,
    Verdict,
    parse_expectation,
)
from .reporter import ConsoleReporter
from .request_builder import build_judge_request, build_primary_request
from .transport import ApiTransport

__all__ = [
    # Config
    "Settings",
    "ToolStructure",
    "load_settings",
    "load_structure",
    "resolve_core_model",
    # Errors
    "FncheckError",
    "ConfigurationError",
    "NoMatchingCasesError",
    "TransportError",
    # Models
    "ChatMessage",
    "Expectation",
    "ToolCallExpectation",
    "MessageExpectation",
    "parse_expectation",
    "TestCase",
    "CaseContext",
    "MeaningCheck",
    "Verdict",
    "TestResult",
    "RunSummary",
    # Engine
    "load_test_cases",
    "validate_test_case",
    "build_primary_request",
    "build_judge_request",
    "ApiTransport",
    "MeaningJudge",
    "evaluate",
    "TestExecutor",
    "filter_cases",
    "ConsoleReporter",
]
