"""Tests for JSON extraction from provider responses."""

import pytest

from src.sitegen.agents.parsing import content_to_text, extract_json, strip_json_blocks
from src.sitegen.core.exceptions import ParseError

pytestmark = pytest.mark.unit


class TestContentToText:
    def test_plain_string_unchanged(self):
        assert content_to_text("hello") == "hello"

    def test_joins_text_parts_and_skips_others(self):
        content = [
            {"type": "text", "text": "first"},
            {"type": "tool_use", "id": "t1", "input": {}},
            "second",
            {"type": "text", "text": "third"},
        ]
        assert content_to_text(content) == "first\nsecond\nthird"


class TestExtractJson:
    def test_json_fence(self):
        text = 'Sure!\n```json\n{"a": 1}\n```\nAnything else?'
        assert extract_json(text) == {"a": 1}

    def test_first_json_fence_wins(self):
        text = '```json\n{"a": 1}\n```\n```json\n{"a": 2}\n```'
        assert extract_json(text) == {"a": 1}

    def test_untagged_fence(self):
        assert extract_json('```\n{"b": true}\n```') == {"b": True}

    def test_bare_object_inside_prose(self):
        assert extract_json('The answer is {"c": [1, 2]} as requested.') == {"c": [1, 2]}

    def test_content_parts(self):
        content = [{"type": "text", "text": '```json\n{"d": "x"}\n```'}]
        assert extract_json(content) == {"d": "x"}

    def test_skips_invalid_fence_for_later_candidate(self):
        text = '```json\n{not json}\n```\n```\n{"ok": 1}\n```'
        assert extract_json(text) == {"ok": 1}

    def test_empty_content(self):
        with pytest.raises(ParseError, match="empty"):
            extract_json("   ")

    def test_array_is_not_an_object(self):
        with pytest.raises(ParseError):
            extract_json("[1, 2, 3]")

    def test_no_json(self):
        with pytest.raises(ParseError) as exc_info:
            extract_json("I could not do that.")
        assert exc_info.value.details["preview"] == "I could not do that."


def test_strip_json_blocks():
    text = 'Great, thanks.\n\n```json\n{"company": {}}\n```'
    assert strip_json_blocks(text) == "Great, thanks."
