"""Tests for the test case loader."""

import json
import logging

import pytest

from conftest import function_call_item, make_case, response_body
from fncheck.exceptions import ConfigurationError
from fncheck.loader import load_test_cases, validate_test_case
from fncheck.matchers import evaluate
from fncheck.models import CaseContext, Expectation, MessageExpectation, TestCase, ToolCallExpectation


def _write_json(tmp_path, data, name="cases.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _case(name="password_reminder", **overrides):
    data = {
        "name": name,
        "messages": [{"role": "user", "content": "I forgot my password, a@b.com"}],
        "expected_output": {
            "type": "toolcall",
            "tool": "password_reminder",
            "arguments": {"email": "a@b.com"},
        },
    }
    data.update(overrides)
    return data


class TestLoadTestCases:
    """File formats and structural validation."""

    def test_list_format(self, tmp_path):
        path = _write_json(tmp_path, [_case(), _case("greeting", expected_output={"type": "message"})])

        cases = load_test_cases(path)

        assert [tc.name for tc in cases] == ["password_reminder", "greeting"]
        assert isinstance(cases[0].expected_output, ToolCallExpectation)
        assert cases[0].expected_output.arguments == {"email": "a@b.com"}
        assert isinstance(cases[1].expected_output, MessageExpectation)

    def test_mapping_format(self, tmp_path):
        path = _write_json(tmp_path, {"test_cases": [_case()]})

        assert len(load_test_cases(path)) == 1

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "cases.yaml"
        path.write_text(
            """
test_cases:
  - name: off_topic
    messages:
      - role: user
        content: What is the capital of France?
    expected_output:
      type: message
      meaning: Declines off-topic questions
""",
            encoding="utf-8",
        )

        cases = load_test_cases(path)

        assert cases[0].expected_output.meaning == "Declines off-topic questions"
        assert cases[0].last_user_message() == "What is the capital of France?"

    def test_empty_arguments_list_becomes_mapping(self, tmp_path):
        path = _write_json(
            tmp_path,
            [_case(expected_output={"type": "toolcall", "tool": "transfer_operator", "arguments": []})],
        )

        assert load_test_cases(path)[0].expected_output.arguments == {}

    def test_unknown_expectation_type_is_kept(self, tmp_path):
        path = _write_json(tmp_path, [_case(expected_output={"type": "image", "size": 3})])

        expectation = load_test_cases(path)[0].expected_output

        assert type(expectation) is Expectation
        assert expectation.type == "image"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="file not found"):
            load_test_cases(tmp_path / "nope.json")

    def test_unparsable_file(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text('[{"name": "x", ', encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Failed to parse"):
            load_test_cases(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="empty"):
            load_test_cases(path)

    def test_scalar_document_rejected(self, tmp_path):
        path = _write_json(tmp_path, "just a string")

        with pytest.raises(ConfigurationError, match="expected list or dict"):
            load_test_cases(path)

    def test_mapping_without_cases_rejected(self, tmp_path):
        path = _write_json(tmp_path, {"something": []})

        with pytest.raises(ConfigurationError, match="No 'test_cases' list"):
            load_test_cases(path)

    @pytest.mark.parametrize("missing", ["name", "messages", "expected_output"])
    def test_missing_required_field(self, tmp_path, missing):
        data = _case()
        del data[missing]
        path = _write_json(tmp_path, [_case("first"), data])

        with pytest.raises(ConfigurationError, match=f"Invalid test case at index 1: missing {missing}"):
            load_test_cases(path)

    def test_expectation_without_type_rejected(self, tmp_path):
        path = _write_json(tmp_path, [_case(expected_output={"tool": "x"})])

        with pytest.raises(ConfigurationError, match="index 0"):
            load_test_cases(path)

    def test_invalid_role_rejected(self, tmp_path):
        path = _write_json(tmp_path, [_case(messages=[{"role": "robot", "content": "hi"}])])

        with pytest.raises(ConfigurationError):
            load_test_cases(path)

    def test_duplicate_names_rejected(self, tmp_path):
        path = _write_json(tmp_path, [_case("dup"), _case("dup")])

        with pytest.raises(ConfigurationError, match="Duplicate test case name 'dup' at index 1"):
            load_test_cases(path)

    def test_json_exponent_stays_a_number(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text(
            '[{"name": "pay", "messages": [{"role": "user", "content": "Pay it"}],'
            ' "expected_output": {"type": "toolcall", "tool": "pay", "arguments": {"amount": 1e5}}}]',
            encoding="utf-8",
        )

        expectation = load_test_cases(path)[0].expected_output
        verdict = evaluate(
            response_body(function_call_item("pay", '{"amount": 100000.0}')),
            expectation,
            CaseContext(test_case=make_case("ctx", {"type": "message"})),
        )

        assert expectation.arguments == {"amount": 100000.0}
        assert isinstance(expectation.arguments["amount"], float)
        assert verdict.passed

    def test_tab_indented_json(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text(json.dumps([_case()], indent="\t"), encoding="utf-8")

        assert [tc.name for tc in load_test_cases(path)] == ["password_reminder"]

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_bytes(b'[{"name": "\xff\xfe", "messages": [], "expected_output": {"type": "message"}}]')

        with pytest.raises(ConfigurationError, match="not valid UTF-8"):
            load_test_cases(path)

    def test_directory_path(self, tmp_path):
        directory = tmp_path / "cases.json"
        directory.mkdir()

        with pytest.raises(ConfigurationError, match="Failed to load test cases"):
            load_test_cases(directory)

    def test_authoring_warnings_are_logged(self, tmp_path, caplog):
        path = _write_json(tmp_path, [_case(messages=[{"role": "assistant", "content": "hello"}])])

        with caplog.at_level(logging.WARNING, logger="fncheck.loader"):
            cases = load_test_cases(path)

        assert len(cases) == 1
        assert "has no user messages" in caplog.text


class TestValidateTestCase:
    """Non-fatal authoring checks."""

    def test_clean_case_has_no_issues(self, password_case: TestCase):
        assert validate_test_case(password_case) == []

    def test_no_messages(self):
        case = TestCase(name="empty", messages=[], expected_output={"type": "message"})

        assert validate_test_case(case) == ["Test case 'empty' has no messages"]

    def test_blank_tool_name(self):
        case = TestCase(
            name="blank",
            messages=[{"role": "user", "content": "hi"}],
            expected_output={"type": "toolcall", "tool": "  "},
        )

        assert validate_test_case(case) == ["Test case 'blank' expects a tool call with an empty tool name"]
