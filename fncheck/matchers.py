"""Expectation matchers for Responses API output.

This module decides PASS/FAIL for one raw API response against one
expectation descriptor and collects the evidence shown in the report.
Output items may arrive in any order and in any number, so every check scans
the whole ``output`` list.
"""

import json
import logging
from typing import Any

from .judge import MeaningChecker
from .models import (
    CaseContext,
    Expectation,
    MeaningCheck,
    MessageExpectation,
    OutputItemType,
    ToolCallExpectation,
    Verdict,
)


logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


# =============================================================================
# Output extraction
# =============================================================================


def get_output_items(response: Any) -> list[dict[str, Any]] | None:
    """Return the response's ``output`` items, or None if there is no output list."""
    if not isinstance(response, dict):
        return None
    output = response.get("output")
    if not isinstance(output, list):
        return None
    return [item for item in output if isinstance(item, dict)]


def _output_texts(item: dict[str, Any]) -> list[str]:
    content = item.get("content")
    if not isinstance(content, list):
        return []
    texts = []
    for block in content:
        if isinstance(block, dict) and block.get("type") == OutputItemType.OUTPUT_TEXT.value:
            text = block.get("text")
            texts.append(text if isinstance(text, str) else "")
    return texts


def called_tool_names(response: Any) -> list[str]:
    """Names of all function calls in the response, in output order."""
    names = []
    for item in get_output_items(response) or []:
        if item.get("type") == OutputItemType.FUNCTION_CALL.value:
            name = item.get("name")
            if isinstance(name, str):
                names.append(name)
    return names


def message_texts(response: Any) -> list[str]:
    """All non-empty ``output_text`` texts from message items, in output order."""
    texts = []
    for item in get_output_items(response) or []:
        if item.get("type") == OutputItemType.MESSAGE.value:
            texts.extend(text for text in _output_texts(item) if text)
    return texts


def preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Cap ``text`` at ``limit`` characters, marking truncation with '...'."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# =============================================================================
# Argument matching
# =============================================================================


def parse_arguments(raw: Any) -> dict[str, Any] | None:
    """Decode a function call's ``arguments`` into a mapping.

    Args:
        raw: JSON-encoded string from the API (a decoded mapping is accepted too).

    Returns:
        The mapping, or None if it is missing, unparsable or not an object.
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def strictly_equal(expected: Any, actual: Any) -> bool:
    """Type-and-value equality: ``1`` is not ``1.0``, ``True`` is not ``1``, ``"5"`` is not ``5``."""
    if type(expected) is not type(actual):
        return False
    if isinstance(expected, dict):
        return expected.keys() == actual.keys() and all(
            strictly_equal(value, actual[key]) for key, value in expected.items()
        )
    if isinstance(expected, list):
        return len(expected) == len(actual) and all(
            strictly_equal(e, a) for e, a in zip(expected, actual)
        )
    return expected == actual


def match_arguments(expected: dict[str, Any], actual: dict[str, Any]) -> list[str]:
    """Compare expected arguments against an actual call's arguments.

    Args:
        expected: Required key/value pairs.
        actual: Arguments the model passed.

    Returns:
        Names of the expected keys that are missing or differ; empty on a match.
    """
    mismatched = []
    for key, expected_value in expected.items():
        if key not in actual:
            logger.debug(f"Argument '{key}' missing from actual call")
            mismatched.append(key)
        elif not strictly_equal(expected_value, actual[key]):
            logger.debug(
                f"Argument '{key}' did not match: expected {expected_value!r}, got {actual[key]!r}"
            )
            mismatched.append(key)
    return mismatched


def match_tool_call(items: list[dict[str, Any]], expectation: ToolCallExpectation) -> bool:
    """Check whether any function call item satisfies a tool call expectation.

    A call with the right name but unparsable or mismatching arguments only
    rules out that call; scanning continues with the remaining items.

    Args:
        items: Output items of the response.
        expectation: The expected tool and arguments.

    Returns:
        True if some item matches the tool name and all expected arguments.
    """
    logger.info(f"Matching expected tool call '{expectation.tool}' against {len(items)} output item(s)")

    for idx, item in enumerate(items):
        if item.get("type") != OutputItemType.FUNCTION_CALL.value:
            continue
        if item.get("name") != expectation.tool:
            continue

        if not expectation.arguments:
            logger.info(f"Tool call '{expectation.tool}' MATCHED at index {idx}")
            return True

        actual_args = parse_arguments(item.get("arguments"))
        if actual_args is None:
            logger.warning(f"Tool call '{expectation.tool}' at index {idx} has unparsable arguments")
            continue

        mismatched = match_arguments(expectation.arguments, actual_args)
        if not mismatched:
            logger.info(
                f"Tool call '{expectation.tool}' MATCHED at index {idx} "
                f"with all {len(expectation.arguments)} argument(s)"
            )
            return True
        logger.warning(f"Tool call '{expectation.tool}' at index {idx} argument mismatch: {mismatched}")

    logger.warning(f"No matching call found for tool '{expectation.tool}'")
    return False


# =============================================================================
# Message matching
# =============================================================================


def classify_message_output(items: list[dict[str, Any]]) -> tuple[bool, bool, str]:
    """Scan output items for message text and function calls.

    Returns:
        ``(has_message, has_function_call, first_text)`` where ``first_text``
        is the text of the first ``output_text`` block found.
    """
    has_message = False
    has_function_call = False
    first_text = ""

    for item in items:
        item_type = item.get("type")
        if item_type == OutputItemType.FUNCTION_CALL.value:
            has_function_call = True
        elif item_type == OutputItemType.MESSAGE.value:
            texts = _output_texts(item)
            if texts and not has_message:
                has_message = True
                first_text = texts[0]

    return has_message, has_function_call, first_text


def _meaning_evidence(check: MeaningCheck) -> list[str]:
    evidence = [f"AI meaning validation: {'PASSED' if check.matched else 'FAILED'}"]
    if check.prompt:
        evidence.append(f"Validation prompt: {check.prompt}")
    if check.raw_answer is not None:
        evidence.append(f"AI validator response: {check.raw_answer}")
    if check.error:
        evidence.append(f"Validation error: {check.error}")
    return evidence


def match_message(
    items: list[dict[str, Any]],
    expectation: MessageExpectation,
    context: CaseContext,
    judge: MeaningChecker | None = None,
) -> tuple[bool, list[str]]:
    """Check a message expectation: text present, no function call, meaning if set.

    Args:
        items: Output items of the response.
        expectation: The message expectation.
        context: Context of the executing case (for the user's question).
        judge: Meaning checker, required when the expectation has a meaning.

    Returns:
        ``(passed, meaning_evidence)``.
    """
    has_message, has_function_call, text = classify_message_output(items)
    structural = has_message and not has_function_call
    logger.info(
        f"Structural message check: has_message={has_message}, "
        f"has_function_call={has_function_call} -> {'PASSED' if structural else 'FAILED'}"
    )

    if not expectation.meaning:
        return structural, []

    if not structural:
        return False, ["AI meaning validation: not performed (structural check failed)"]

    if not text:
        # Nothing to judge; the structural result stands
        return structural, ["AI meaning validation: not performed (empty message text)"]

    if judge is None:
        check = MeaningCheck(error="No meaning judge configured")
    else:
        check = judge.check_meaning(text, expectation.meaning, context.originating_question)

    return check.matched, _meaning_evidence(check)


# =============================================================================
# Entry point
# =============================================================================


def evaluate(
    response: Any,
    expectation: Expectation,
    context: CaseContext,
    judge: MeaningChecker | None = None,
) -> Verdict:
    """Evaluate a raw Responses API body against an expectation.

    Args:
        response: Decoded response body.
        expectation: The case's expectation descriptor.
        context: Context of the executing case.
        judge: Meaning checker for message expectations with a meaning.

    Returns:
        Verdict with the outcome and evidence lines.
    """
    items = get_output_items(response)
    if items is None:
        logger.warning("Response has no output array")
        return Verdict(passed=False, evidence=["No output array found"])

    evidence = []
    tools = called_tool_names(response)
    texts = message_texts(response)
    if tools:
        evidence.append(f"Called tools: {', '.join(tools)}")
    if texts:
        evidence.append(f"Message text: {' | '.join(preview(t) for t in texts)}")

    if isinstance(expectation, ToolCallExpectation):
        passed = match_tool_call(items, expectation)
    elif isinstance(expectation, MessageExpectation):
        passed, meaning_evidence = match_message(items, expectation, context, judge)
        evidence.extend(meaning_evidence)
    else:
        logger.error(f"Unrecognized expectation type: {expectation.type}")
        evidence.append(f"Unrecognized expectation type: {expectation.type}")
        passed = False

    if not tools and not texts:
        evidence.append("No tool calls or message text found")

    return Verdict(passed=passed, evidence=evidence)
