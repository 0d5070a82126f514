"""Tests for parsing, extraction and repair of LLM replies."""

import asyncio
import json

import pytest

from mergepilot.conflict.models import Suggestion
from mergepilot.core.errors import InvalidResponseError
from mergepilot.model.schemas import DiffAnalysis, ShellCommands
from mergepilot.model.validator import ResponseValidator, extract_json
from mergepilot.prompt.builder import PromptBuilder

VALID = json.dumps({"merged_code": "x = 1", "reason": "kept ours"})


@pytest.fixture
def validator(make_client):
    def _make(replies=()):
        client = make_client(replies)
        return ResponseValidator(Suggestion, client, PromptBuilder()), client
    return _make


def validate(validator, raw):
    return asyncio.run(validator.validate(raw))


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"a": 1}') == '{"a": 1}'

    def test_surrounded_by_prose(self):
        text = 'Here you go:\n```json\n{"a": {"b": 2}}\n```\nDone.'
        assert extract_json(text) == '{"a": {"b": 2}}'

    def test_braces_inside_strings(self):
        text = 'x {"code": "if (a) { b(); }", "q": "\\"}"} y'
        assert extract_json(text) == (
            '{"code": "if (a) { b(); }", "q": "\\"}"}'
        )

    def test_no_object(self):
        assert extract_json("no json here") is None
        assert extract_json('{"never": "closed"') is None


def test_strict_parse(validator):
    v, client = validator()

    suggestion = validate(v, VALID)

    assert suggestion == Suggestion(merged_code="x = 1", reason="kept ours")
    assert client.prompts == []


def test_extra_keys_ignored(validator):
    v, _ = validator()
    raw = json.dumps({"merged_code": "a", "reason": "b", "confidence": 0.9})

    assert validate(v, raw).merged_code == "a"


def test_extracted_from_prose(validator):
    """A fenced reply is recovered without asking the model again."""
    v, client = validator()

    suggestion = validate(v, f"Sure!\n```json\n{VALID}\n```")

    assert suggestion.reason == "kept ours"
    assert client.prompts == []


def test_one_repair_round_trip(validator):
    v, client = validator([VALID])

    suggestion = validate(v, '{"merged_code": "x = 1"}')

    assert suggestion.merged_code == "x = 1"
    assert len(client.prompts) == 1
    repair_prompt = client.prompts[0]
    assert '{"merged_code": "x = 1"}' in repair_prompt
    assert "reason" in repair_prompt
    assert '"required"' in repair_prompt


def test_repair_reply_may_have_prose(validator):
    v, _ = validator([f"Fixed: {VALID}"])

    assert validate(v, "garbage").merged_code == "x = 1"


def test_invalid_after_repair_raises(validator):
    v, client = validator(["still garbage"])

    with pytest.raises(InvalidResponseError) as exc_info:
        validate(v, "garbage")

    assert exc_info.value.raw == "garbage"
    assert len(client.prompts) == 1


def test_non_string_fields_rejected(validator):
    v, client = validator(["nope"])

    with pytest.raises(InvalidResponseError):
        validate(v, json.dumps({"merged_code": 5, "reason": "r"}))

    assert len(client.prompts) == 1


def test_shell_commands_schema():
    parsed = ShellCommands.model_validate_json('{"commands": "ls"}')
    assert parsed.commands == ["ls"]
    assert parsed.explanation == ""


def test_diff_analysis_schema():
    parsed = DiffAnalysis.model_validate({
        "summary": "s",
        "errors": "off by one",
        "improvements": None,
    })
    assert parsed.errors == ["off by one"]
    assert parsed.improvements == []
    assert parsed.requirements_evaluation == ""

    with pytest.raises(ValueError):
        DiffAnalysis.model_validate({"errors": []})
