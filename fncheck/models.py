"""
Data models for the function-calling test runner.

This module defines the Pydantic models that flow through a test run:

- ChatMessage / TestCase: the declarative test definitions loaded from disk
- Expectation and its subclasses: what a test case considers correct
- CaseContext: explicit per-execution context (originating user question)
- MeaningCheck: outcome and diagnostics of a judge call
- Verdict / TestResult / RunSummary: per-case and aggregated results

Key Design Principles:
- Test definitions are immutable once loaded
- Results are created fresh for every execution and never persisted
- Unknown expectation types survive loading so they can be reported per case
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# =============================================================================
# Enumerations
# =============================================================================


class ExpectationType(str, Enum):
    """
    Kinds of expectation a test case can declare.

    Attributes:
        TOOLCALL: The assistant must call a named function (optionally with arguments)
        MESSAGE: The assistant must answer with free text and call no function
    """
    TOOLCALL = "toolcall"
    MESSAGE = "message"


class OutputItemType(str, Enum):
    """Output item kinds the Responses API returns that the matcher inspects."""
    FUNCTION_CALL = "function_call"
    MESSAGE = "message"
    OUTPUT_TEXT = "output_text"


# =============================================================================
# Conversation Models
# =============================================================================


class ChatMessage(BaseModel):
    """
    A single message sent to the model as part of a test case.

    Attributes:
        role: Who authored the message
        content: The message text
    """
    role: Literal["user", "system", "assistant"]
    content: str

    model_config = ConfigDict(extra="forbid", frozen=True)


# =============================================================================
# Expectation Models
# =============================================================================


class Expectation(BaseModel):
    """
    Base expectation descriptor.

    Concrete expectations are ToolCallExpectation and MessageExpectation. A
    bare Expectation only exists when a case file names a type the runner does
    not know; the matcher reports it as a configuration error for that case.

    Attributes:
        type: The expectation tag as written in the case file
    """
    type: str

    model_config = ConfigDict(extra="allow", frozen=True)


class ToolCallExpectation(Expectation):
    """
    The assistant must call ``tool``.

    ``arguments`` is a subset constraint: each listed key must be present in
    the actual call with a strictly equal value. Extra keys in the actual call
    are ignored.

    Example:
        >>> ToolCallExpectation(tool="password_reminder", arguments={"email": "a@b.com"})
    """
    type: Literal["toolcall"] = "toolcall"
    tool: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("arguments", mode="before")
    @classmethod
    def _empty_arguments(cls, value: Any) -> Any:
        # JSON/YAML case files may write "no arguments" as [] or null
        if value is None or value == []:
            return {}
        return value


class MessageExpectation(Expectation):
    """
    The assistant must reply with text and must not call any function.

    When ``meaning`` is set, a judge model also has to confirm that the reply
    means the same thing.
    """
    type: Literal["message"] = "message"
    meaning: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


def parse_expectation(data: Any) -> Expectation:
    """Build the concrete expectation for a raw ``expected_output`` mapping.

    Args:
        data: Mapping from the case file, or an Expectation instance.

    Returns:
        ToolCallExpectation, MessageExpectation, or a bare Expectation for
        unrecognized types.

    Raises:
        ValueError: If ``data`` is not a mapping or lacks a ``type``.
    """
    if isinstance(data, Expectation):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"expected_output must be a mapping, got {type(data).__name__}")

    expectation_type = data.get("type")
    if not isinstance(expectation_type, str) or not expectation_type:
        raise ValueError("expected_output is missing a 'type'")

    match expectation_type:
        case ExpectationType.TOOLCALL.value:
            return ToolCallExpectation(**data)
        case ExpectationType.MESSAGE.value:
            return MessageExpectation(**data)
        case _:
            return Expectation(**data)


# =============================================================================
# Test Definition
# =============================================================================


class TestCase(BaseModel):
    """
    A single declarative test case.

    Attributes:
        name: Unique name within a run; used for filtering
        messages: Conversation sent to the model (system prompt excluded)
        expected_output: What counts as a correct response

    Example:
        >>> TestCase(
        ...     name="password_reminder_basic",
        ...     messages=[ChatMessage(role="user", content="I forgot my password, a@b.com")],
        ...     expected_output={"type": "toolcall", "tool": "password_reminder"},
        ... )
    """
    __test__ = False

    name: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(default_factory=list)
    expected_output: Expectation

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("expected_output", mode="before")
    @classmethod
    def _parse_expected_output(cls, value: Any) -> Expectation:
        return parse_expectation(value)

    def last_user_message(self) -> str:
        """Return the content of the last user message, or an empty string."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""


class CaseContext(BaseModel):
    """
    Per-execution context passed explicitly into the matcher and judge.

    Replaces any notion of a "current test case" stored on the runner, so
    evaluation stays a function of its arguments.
    """
    test_case: TestCase

    model_config = ConfigDict(frozen=True)

    @property
    def originating_question(self) -> str:
        return self.test_case.last_user_message()


# =============================================================================
# Results
# =============================================================================


class MeaningCheck(BaseModel):
    """
    Outcome of one semantic-equivalence judge call.

    Attributes:
        matched: True only when the judge answered exactly YES
        prompt: The user prompt sent to the judge
        raw_answer: The judge's unmodified reply text
        error: Why validation could not be completed, if it could not
    """
    matched: bool = False
    prompt: str | None = None
    raw_answer: str | None = None
    error: str | None = None


class Verdict(BaseModel):
    """
    Result of matching one response against one expectation.

    Attributes:
        passed: Whether the expectation was met
        evidence: Human-readable lines explaining the verdict
    """
    passed: bool
    evidence: list[str] = Field(default_factory=list)


class TestResult(BaseModel):
    """
    Result of executing a single test case.

    Attributes:
        test_case_name: Name of the executed case
        passed: Whether the case passed
        evidence: Evidence lines for the console report
        error_message: Transport or runtime error, if one ended the case
        duration_ms: Wall time of the case including judge calls
    """
    __test__ = False

    test_case_name: str
    passed: bool = False
    evidence: list[str] = Field(default_factory=list)
    error_message: str | None = None
    duration_ms: int = 0


class RunSummary(BaseModel):
    """
    Aggregated outcome of a run.

    Attributes:
        name_filter: Filter the run was started with, if any
        results: Per-case results in execution order
    """
    name_filter: str | None = None
    results: list[TestResult] = Field(default_factory=list)

    @computed_field
    @property
    def total(self) -> int:
        return len(self.results)

    @computed_field
    @property
    def passed(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @computed_field
    @property
    def failed(self) -> int:
        return self.total - self.passed

    @computed_field
    @property
    def success_rate(self) -> float:
        """Percentage of passed cases, rounded to one decimal place."""
        if self.total == 0:
            return 0.0
        return round(self.passed / self.total * 100, 1)

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.passed == self.total
