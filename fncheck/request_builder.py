"""Request payload builders for the Responses and Chat Completions endpoints."""

import copy
import logging
from typing import Any

from .config import ToolStructure
from .models import ChatMessage


logger = logging.getLogger(__name__)

JUDGE_MAX_TOKENS = 10


def build_messages(
    messages: list[ChatMessage],
    system_prompt: str | None = None,
) -> list[dict[str, str]]:
    """Convert test case messages to wire format, prepending the system prompt.

    Always returns a new list; the test case's messages are never modified.

    Args:
        messages: Messages from the test case.
        system_prompt: Optional system prompt; blank prompts are ignored.

    Returns:
        List of ``{"role", "content"}`` dicts.
    """
    wire_messages = [{"role": m.role, "content": m.content} for m in messages]
    if system_prompt and system_prompt.strip():
        wire_messages.insert(0, {"role": "system", "content": system_prompt})
    return wire_messages


def _normalize_properties(node: Any) -> Any:
    if isinstance(node, dict):
        normalized = {}
        for key, value in node.items():
            if key == "properties" and not value:
                # [] or null would reach the API as an array/null; it requires an object
                normalized[key] = {}
            else:
                normalized[key] = _normalize_properties(value)
        return normalized
    if isinstance(node, list):
        return [_normalize_properties(item) for item in node]
    return node


def normalize_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return a deep copy of ``tools`` where every empty ``properties`` is ``{}``.

    Args:
        tools: Tool schemas as loaded from the structure file.

    Returns:
        Normalized copy of the tool schemas.
    """
    return _normalize_properties(copy.deepcopy(tools))


def build_primary_request(
    messages: list[ChatMessage],
    model: str,
    structure: ToolStructure,
    system_prompt: str | None = None,
) -> dict[str, Any]:
    """Build the Responses API payload for one test case.

    Args:
        messages: Messages from the test case.
        model: Model under test.
        structure: Tool definitions and parallel tool call policy.
        system_prompt: Optional system prompt to prepend.

    Returns:
        Request payload ready to be JSON encoded.
    """
    payload = {
        "model": model,
        "input": build_messages(messages, system_prompt),
        "tools": normalize_tools(structure.tools),
        "stream": False,
        "parallel_tool_calls": structure.parallel_tool_calls,
    }
    logger.debug(
        f"Built primary request: model={model}, {len(payload['input'])} message(s), "
        f"{len(payload['tools'])} tool(s)"
    )
    return payload


def build_judge_request(
    judge_prompt: list[dict[str, str]],
    judge_model: str,
    max_tokens: int = JUDGE_MAX_TOKENS,
) -> dict[str, Any]:
    """Build the Chat Completions payload for a meaning check.

    Args:
        judge_prompt: System and user messages for the judge.
        judge_model: Model that classifies the answer.
        max_tokens: Output cap; the judge only needs to say YES or NO.

    Returns:
        Request payload with zero temperature.
    """
    return {
        "model": judge_model,
        "messages": [dict(message) for message in judge_prompt],
        "max_tokens": max_tokens,
        "temperature": 0,
    }
