"""
Pytest configuration for the fncheck test suite.

Provides fake transports and judges so no test touches the network, plus
builders for Responses API bodies.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fncheck.config import ToolStructure
from fncheck.exceptions import TransportError
from fncheck.models import CaseContext, ChatMessage, MeaningCheck, TestCase


# =============================================================================
# Response builders
# =============================================================================

def function_call_item(name: str, arguments: Any = None) -> dict[str, Any]:
    """Build a ``function_call`` output item; dict arguments are JSON encoded."""
    if arguments is None:
        arguments = {}
    if isinstance(arguments, dict):
        arguments = json.dumps(arguments)
    return {
        "type": "function_call",
        "id": f"fc_{name}",
        "call_id": f"call_{name}",
        "name": name,
        "arguments": arguments,
    }


def message_item(*texts: str) -> dict[str, Any]:
    """Build a ``message`` output item with one ``output_text`` block per text."""
    return {
        "type": "message",
        "role": "assistant",
        "content": [{"type": "output_text", "text": text, "annotations": []} for text in texts],
    }


def response_body(*items: dict[str, Any]) -> dict[str, Any]:
    return {"id": "resp_test", "object": "response", "output": list(items)}


def chat_completion_body(content: Any) -> dict[str, Any]:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def make_case(name: str, expected_output: dict[str, Any], user_text: str = "Hi") -> TestCase:
    return TestCase(
        name=name,
        messages=[ChatMessage(role="user", content=user_text)],
        expected_output=expected_output,
    )


# =============================================================================
# Fakes
# =============================================================================

class FakeTransport:
    """Transport double that replays queued responses and records payloads.

    Queue entries are returned in order; an exception instance is raised
    instead of returned.
    """

    def __init__(self, responses: list[Any] | None = None, completions: list[Any] | None = None):
        self.responses = list(responses or [])
        self.completions = list(completions or [])
        self.response_calls: list[dict[str, Any]] = []
        self.completion_calls: list[dict[str, Any]] = []

    def _next(self, queue: list[Any]) -> dict[str, Any]:
        if not queue:
            raise TransportError("No fake response queued")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def create_response(self, payload: dict[str, Any], timeout: float = 30.0) -> dict[str, Any]:
        self.response_calls.append(payload)
        return self._next(self.responses)

    def create_chat_completion(self, payload: dict[str, Any], timeout: float = 15.0) -> dict[str, Any]:
        self.completion_calls.append(payload)
        return self._next(self.completions)


class FakeJudge:
    """Meaning checker with a fixed answer that records every call."""

    def __init__(self, matched: bool = True, raw_answer: str = "YES"):
        self.matched = matched
        self.raw_answer = raw_answer
        self.calls: list[tuple[str, str, str]] = []

    def check_meaning(self, actual_text: str, expected_meaning: str, originating_question: str) -> MeaningCheck:
        self.calls.append((actual_text, expected_meaning, originating_question))
        return MeaningCheck(
            matched=self.matched,
            prompt=f"question={originating_question}",
            raw_answer=self.raw_answer,
        )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def test_logger() -> logging.Logger:
    """Session-scoped logger fixture."""
    logger = logging.getLogger("fncheck_test")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def structure() -> ToolStructure:
    return ToolStructure(
        model="gpt-4.1-mini",
        parallel_tool_calls=False,
        tools=[
            {
                "type": "function",
                "name": "password_reminder",
                "parameters": {
                    "type": "object",
                    "properties": {"email": {"type": "string"}},
                    "required": ["email"],
                },
            },
            {
                "type": "function",
                "name": "transfer_operator",
                "parameters": {"type": "object", "properties": [], "required": []},
            },
        ],
    )


@pytest.fixture
def password_case() -> TestCase:
    return make_case(
        "password_reminder_basic",
        {"type": "toolcall", "tool": "password_reminder", "arguments": {"email": "a@b.com"}},
        user_text="I forgot my password, a@b.com",
    )


@pytest.fixture
def greeting_case() -> TestCase:
    return make_case("greeting_message", {"type": "message"})


@pytest.fixture
def meaning_case() -> TestCase:
    return make_case(
        "off_topic_meaning",
        {"type": "message", "meaning": "Declines off-topic questions"},
        user_text="What is the capital of France?",
    )


@pytest.fixture
def context(password_case: TestCase) -> CaseContext:
    return CaseContext(test_case=password_case)
