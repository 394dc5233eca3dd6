"""
Semantic equivalence judge.

Asks a classifier model whether the assistant's reply means what the test case
expects, given the user's question. The judge fails closed: anything other
than a clear YES (an error, an empty reply, a rambling answer) counts as a
mismatch, and no exception ever escapes ``check_meaning``.
"""

import logging
from typing import Any, Protocol

from .config import DEFAULT_JUDGE_MODEL, JUDGE_TIMEOUT
from .exceptions import TransportError
from .models import MeaningCheck
from .request_builder import build_judge_request


logger = logging.getLogger(__name__)

JUDGE_SYSTEM_PROMPT = (
    "You are a text meaning validator. Your job is to determine if the actual AI "
    "response matches the expected meaning in context of the user's original question. "
    'Respond with only "YES" if the meaning matches, or "NO" if it does not match.'
)

JUDGE_USER_TEMPLATE = (
    "User's original question: {question}\n\n"
    "Expected meaning of AI response: {expected_meaning}\n\n"
    "Actual AI response: {actual_text}\n\n"
    "Does the actual AI response match the expected meaning in context of the user's question?"
)


class ChatCompletionTransport(Protocol):
    """The part of the transport the judge needs."""

    def create_chat_completion(self, payload: dict[str, Any], timeout: float = ...) -> dict[str, Any]:
        ...


class MeaningChecker(Protocol):
    """Interface the matcher uses for meaning checks."""

    def check_meaning(
        self,
        actual_text: str,
        expected_meaning: str,
        originating_question: str,
    ) -> MeaningCheck:
        ...


def build_judge_prompt(
    actual_text: str,
    expected_meaning: str,
    originating_question: str,
) -> list[dict[str, str]]:
    """Build the system and user messages for a meaning check."""
    return [
        {"role": "system", "content": JUDGE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": JUDGE_USER_TEMPLATE.format(
                question=originating_question,
                expected_meaning=expected_meaning,
                actual_text=actual_text,
            ),
        },
    ]


def extract_judge_answer(body: Any) -> str | None:
    """Return ``choices[0].message.content`` from a completion body, if present."""
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def is_affirmative(answer: str) -> bool:
    """True iff the judge answered exactly YES, ignoring case and surrounding whitespace."""
    return answer.strip().upper() == "YES"


class MeaningJudge:
    """Judge that checks meaning through the Chat Completions endpoint."""

    def __init__(
        self,
        transport: ChatCompletionTransport,
        model: str | None = None,
        timeout: float = JUDGE_TIMEOUT,
    ):
        """Initialize the judge.

        Args:
            transport: Transport sharing the primary call's credential.
            model: Judge model; defaults to DEFAULT_JUDGE_MODEL.
            timeout: Seconds before the judge call is abandoned.
        """
        self.transport = transport
        self.model = model or DEFAULT_JUDGE_MODEL
        self.timeout = timeout

    def check_meaning(
        self,
        actual_text: str,
        expected_meaning: str,
        originating_question: str,
    ) -> MeaningCheck:
        """Ask the judge whether ``actual_text`` carries ``expected_meaning``.

        Args:
            actual_text: Text the assistant produced.
            expected_meaning: Meaning the test case expects.
            originating_question: Last user message of the test case.

        Returns:
            MeaningCheck with ``matched`` and the diagnostics for the report.
        """
        prompt = build_judge_prompt(actual_text, expected_meaning, originating_question)
        check = MeaningCheck(prompt=prompt[1]["content"])
        payload = build_judge_request(prompt, self.model)

        logger.info(f"Validating meaning with judge model {self.model}")
        try:
            body = self.transport.create_chat_completion(payload, timeout=self.timeout)
        except TransportError as e:
            if e.status_code is not None:
                check.error = f"HTTP Error: {e.status_code}"
            else:
                check.error = str(e)
            logger.warning(f"Meaning validation failed: {check.error}")
            return check
        except Exception as e:
            # Any judge failure is a mismatch, never a crash
            check.error = f"{type(e).__name__}: {e}"
            logger.exception("Unexpected error during meaning validation")
            return check

        answer = extract_judge_answer(body)
        if answer is None:
            check.error = "No content in AI validation response"
            logger.warning(check.error)
            return check

        check.raw_answer = answer
        check.matched = is_affirmative(answer)
        logger.info(f"Judge answered {answer.strip()!r}: {'MATCHED' if check.matched else 'NOT MATCHED'}")
        return check
