"""Tests for output validation and the single repair round-trip."""

import json
from unittest.mock import MagicMock

import pytest

from patchpilot_core.errors import SchemaValidationError
from patchpilot_core.schema import ReviewOutput
from patchpilot_core.validator import extract_fenced_block, parse_and_validate, validate_output

VALID = {
    "comments": [{"path": "src/a.js", "line": 2, "body": "Off by one", "suggestion": "i < n"}],
    "tests": [{"path": "tests/a.test.js", "content": "test('a', () => {})"}],
    "docs": [{"path": "README.md", "content": "## Usage", "append": True}],
}
VALID_JSON = json.dumps(VALID)


def _repair(text=None):
    repair = MagicMock()
    repair.return_value = text
    return repair


class TestValidateOutput:
    def test_valid_json_needs_no_repair(self):
        repair = _repair()
        output = validate_output(VALID_JSON, repair)
        assert isinstance(output, ReviewOutput)
        assert output.comments[0].line == 2
        assert output.docs[0].append is True
        repair.assert_not_called()

    def test_json_fenced_block_recovered_without_repair(self):
        repair = _repair()
        raw = f"Here is my review:\n```json\n{VALID_JSON}\n```\nHope it helps."
        output = validate_output(raw, repair)
        assert output.tests[0].path == "tests/a.test.js"
        repair.assert_not_called()

    def test_unlabelled_fence_recovered(self):
        repair = _repair()
        output = validate_output(f"```\n{VALID_JSON}\n```", repair)
        assert len(output.comments) == 1
        repair.assert_not_called()

    def test_prose_triggers_exactly_one_repair(self):
        repair = _repair(VALID_JSON)
        output = validate_output("I found a few issues, mostly style.", repair)
        assert output.comments[0].body == "Off by one"
        repair.assert_called_once_with()

    def test_prose_after_repair_fails(self):
        repair = _repair("Sorry, here it is again in prose.")
        with pytest.raises(SchemaValidationError) as excinfo:
            validate_output("Not JSON at all.", repair)
        repair.assert_called_once_with()
        assert [r.split(":")[0] for r in excinfo.value.reasons] == ["direct", "fenced", "repair"]

    def test_repair_response_is_not_fence_extracted(self):
        repair = _repair(f"```json\n{VALID_JSON}\n```")
        with pytest.raises(SchemaValidationError):
            validate_output("prose", repair)

    def test_schema_mismatch_in_valid_json_goes_to_repair(self):
        repair = _repair(VALID_JSON)
        validate_output(json.dumps({"comments": []}), repair)
        repair.assert_called_once()

    def test_whole_number_float_line_needs_no_repair(self):
        repair = _repair()
        raw = json.dumps({"comments": [{"path": "src/a.py", "line": 2.0, "body": "x"}], "tests": [], "docs": []})
        output = validate_output(raw, repair)
        assert output.comments[0].line == 2
        repair.assert_not_called()

    def test_oversized_integer_goes_to_repair(self):
        repair = _repair("nope")
        with pytest.raises(SchemaValidationError) as excinfo:
            validate_output("1" * 5000, repair)
        repair.assert_called_once_with()
        assert [r.split(":")[0] for r in excinfo.value.reasons] == ["direct", "fenced", "repair"]

    def test_deeply_nested_array_goes_to_repair(self):
        repair = _repair(VALID_JSON)
        output = validate_output("[" * 100000, repair)
        assert isinstance(output, ReviewOutput)
        repair.assert_called_once_with()

    def test_repair_errors_propagate(self):
        repair = MagicMock(side_effect=RuntimeError("service down"))
        with pytest.raises(RuntimeError):
            validate_output("prose", repair)


class TestSchema:
    def test_missing_required_comment_field(self):
        data = {**VALID, "comments": [{"path": "src/a.js", "line": 1}]}
        assert not parse_and_validate(json.dumps(data)).ok

    def test_string_line_is_rejected(self):
        data = {**VALID, "comments": [{"path": "src/a.js", "line": "2", "body": "x"}]}
        assert not parse_and_validate(json.dumps(data)).ok

    def test_fractional_line_is_accepted(self):
        data = {**VALID, "comments": [{"path": "src/a.js", "line": 1.5, "body": "x"}]}
        assert parse_and_validate(json.dumps(data)).ok

    def test_boolean_line_is_rejected(self):
        data = {**VALID, "comments": [{"path": "src/a.js", "line": True, "body": "x"}]}
        assert not parse_and_validate(json.dumps(data)).ok

    def test_more_than_hundred_comments_rejected(self):
        comments = [{"path": "src/a.js", "body": f"c{i}"} for i in range(101)]
        result = parse_and_validate(json.dumps({**VALID, "comments": comments}))
        assert not result.ok
        assert "schema mismatch" in result.error

    def test_hundred_comments_accepted(self):
        comments = [{"path": "src/a.js", "body": f"c{i}"} for i in range(100)]
        assert parse_and_validate(json.dumps({**VALID, "comments": comments})).ok

    def test_optional_fields_and_unknown_keys(self):
        data = {
            "comments": [{"path": "src/a.js", "start_line": 1, "body": "x", "severity": "major"}],
            "tests": [],
            "docs": [{"path": "docs/a.md", "content": "a"}],
            "summary": "ignored",
        }
        result = parse_and_validate(json.dumps(data))
        assert result.ok
        assert result.output.comments[0].line is None
        assert result.output.comments[0].start_line == 1
        assert result.output.docs[0].append is None

    def test_non_object_rejected(self):
        assert not parse_and_validate("[]").ok

    def test_none_rejected(self):
        assert parse_and_validate(None).error == "no content"


class TestExtractFencedBlock:
    def test_prefers_json_fence(self):
        text = "```python\nprint(1)\n```\n```json\n{}\n```"
        assert extract_fenced_block(text).strip() == "{}"

    def test_falls_back_to_any_fence(self):
        assert extract_fenced_block("```\n{\"a\": 1}\n```").strip() == '{"a": 1}'

    def test_no_fence(self):
        assert extract_fenced_block("nothing here") is None
