"""Tests for discovery chat profile extraction."""

import json

import pytest

from src.sitegen.agents.extraction import (
    PROFILE_SECTIONS,
    completed_sections,
    deep_merge,
    extract_profile,
    merge_extraction,
    profile_completeness,
    section_fill,
)
from src.sitegen.core.exceptions import ParseError

pytestmark = pytest.mark.unit


def turn(reply: str, facts: dict | None = None) -> str:
    if facts is None:
        return reply
    return f"{reply}\n\n```json\n{json.dumps(facts)}\n```"


class TestDeepMerge:
    def test_nested_mappings_merge(self):
        merged = deep_merge(
            {"company": {"name": "Summit", "address": {"city": "Austin"}}},
            {"company": {"address": {"zip": "78701"}}},
        )
        assert merged == {"company": {"name": "Summit", "address": {"city": "Austin", "zip": "78701"}}}

    def test_empty_values_never_erase_known_facts(self):
        merged = deep_merge({"company": {"name": "Summit"}}, {"company": {"name": ""}})
        assert merged["company"]["name"] == "Summit"
        merged = deep_merge({"company": {"name": "Summit"}}, {"company": {"name": None}})
        assert merged["company"]["name"] == "Summit"

    def test_scalars_overwrite(self):
        assert deep_merge({"team": {"size": 4}}, {"team": {"size": 6}}) == {"team": {"size": 6}}

    def test_scalar_does_not_replace_known_section(self, capturing_logger):
        merged = deep_merge({"company": {"name": "Summit", "city": "Austin"}}, {"company": "Summit"})
        assert merged == {"company": {"name": "Summit", "city": "Austin"}}
        assert capturing_logger.calls[0].kwargs["key"] == "company"

    def test_target_is_not_mutated(self):
        prior = {"company": {"name": "Summit"}}
        deep_merge(prior, {"company": {"phone": "555"}})
        assert prior == {"company": {"name": "Summit"}}


class TestCompleteness:
    def test_section_fill_counts_leaves(self):
        assert section_fill({"a": "x", "b": "", "c": {"d": "y", "e": None}}) == 0.5

    def test_section_fill_non_mapping(self):
        assert section_fill(None) == 0.0
        assert section_fill("text") == 0.0

    def test_empty_profile(self):
        assert profile_completeness({}) == 0
        assert completed_sections({}) == []

    def test_sections_below_threshold_do_not_count(self):
        profile = {
            "company": {"name": "Summit", "phone": "555"},
            "brand": {"a": "x", "b": "", "c": "", "d": "", "e": "", "f": ""},
        }
        # company counts fully, brand (1/6) stays under the threshold
        assert profile_completeness(profile) == 50
        assert completed_sections(profile) == ["company"]

    def test_sections_follow_canonical_order(self):
        profile = {name: {"value": "x"} for name in reversed(PROFILE_SECTIONS)}
        assert completed_sections(profile) == list(PROFILE_SECTIONS)
        assert profile_completeness(profile) == 100


class TestExtractProfile:
    def test_unknown_sections_are_dropped(self):
        facts = extract_profile(turn("ok", {"company": {"name": "Summit"}, "weather": "sunny"}))
        assert facts == {"company": {"name": "Summit"}}

    def test_no_json_raises(self):
        with pytest.raises(ParseError):
            extract_profile("Just chatting")


class TestMergeExtraction:
    def test_merges_new_facts(self):
        result = merge_extraction(
            {"company": {"name": "Summit"}},
            turn("Great!", {"company": {"city": "Austin"}, "team": {"size": 12}}),
        )
        assert result.profile == {"company": {"name": "Summit", "city": "Austin"}, "team": {"size": 12}}
        assert result.completeness == 100
        assert result.completed_sections == ["company", "team"]
        assert result.warning is None

    def test_reply_without_json_keeps_profile(self):
        prior = {"company": {"name": "Summit"}}
        result = merge_extraction(prior, "What services do you offer?")
        assert result.profile == prior
        assert result.warning is None

    def test_malformed_json_keeps_prior_state_with_warning(self):
        prior = {"company": {"name": "Summit"}}
        result = merge_extraction(prior, "Noted. ```json\n{company: broken\n```")

        assert result.profile == prior
        assert result.completed_sections == ["company"]
        assert result.warning is not None
        assert result.warning.startswith("Profile extraction skipped")

    def test_prior_is_not_mutated(self):
        prior = {"company": {"name": "Summit"}}
        merge_extraction(prior, turn("ok", {"company": {"name": "Summit Roofing"}}))
        assert prior == {"company": {"name": "Summit"}}

    def test_none_evidence(self):
        result = merge_extraction({}, None)
        assert result.profile == {}
        assert result.completeness == 0
