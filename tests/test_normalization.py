"""
Tests for rater payload normalization and the rater prompt
"""

import json
from datetime import date

import pytest

from tracker.analyzer import (
    PayloadParseError,
    build_rater_prompt,
    normalize_payload,
    parse_rater_body,
)
from tracker.models import OpinionPayload


class TestParseRaterBody:
    """Test decoding of rater bodies."""

    def test_full_payload(self, payload_factory):
        parsed = parse_rater_body(json.dumps(payload_factory()))

        assert parsed.strengths == ["Clear pricing"]
        assert parsed.content_recommendations == ["Add case studies"]
        assert parsed.technical_issues == ["Slow page load"]
        assert parsed.competitive_insights == "Strong against larger suites"
        assert parsed.visibility.score == 60
        assert parsed.sentiment.score == 0.5
        assert parsed.mentions.count == 3
        assert parsed.mentions.contexts == ["Example Planner is a planning tool"]

    def test_invalid_json_raises(self):
        with pytest.raises(PayloadParseError):
            parse_rater_body("Sure! Here is my analysis: {")

    def test_non_object_raises(self):
        with pytest.raises(PayloadParseError):
            parse_rater_body("[1, 2, 3]")

    def test_empty_object_is_zero_opinion(self):
        assert parse_rater_body("{}") == OpinionPayload.default()


class TestNormalizePayload:
    """Test field coercion and defaults."""

    def test_missing_fields_default(self):
        parsed = normalize_payload({"strengths": ["Fast"]})

        assert parsed.strengths == ["Fast"]
        assert parsed.weaknesses == []
        assert parsed.competitive_insights == ""
        assert parsed.visibility.score == 0
        assert parsed.sentiment.assessment == ""
        assert parsed.mentions.count == 0

    def test_scores_are_clamped(self):
        parsed = normalize_payload({
            "sentiment": {"score": 3},
            "visibility": {"score": 140},
        })

        assert parsed.sentiment.score == 1.0
        assert parsed.visibility.score == 100.0

        parsed = normalize_payload({
            "sentiment": {"score": -7},
            "visibility": {"score": -5},
        })

        assert parsed.sentiment.score == -1.0
        assert parsed.visibility.score == 0.0

    def test_numeric_strings_accepted(self):
        parsed = normalize_payload({"visibility": {"score": "85"}, "mentions": {"count": "4"}})

        assert parsed.visibility.score == 85.0
        assert parsed.mentions.count == 4

    @pytest.mark.parametrize("value", [True, None, "high", [1], {"a": 1}, float("nan")])
    def test_non_numeric_scores_are_zero(self, value):
        parsed = normalize_payload({"visibility": {"score": value}})

        assert parsed.visibility.score == 0.0

    def test_negative_mentions_floor_at_zero(self):
        assert normalize_payload({"mentions": {"count": -2}}).mentions.count == 0

    def test_fractional_mentions_truncated(self):
        parsed = normalize_payload({"mentions": {"count": 3.7}})

        assert parsed.mentions.count == 3
        assert isinstance(parsed.mentions.count, int)

    def test_blank_entries_never_become_findings(self):
        parsed = normalize_payload({
            "strengths": ["", "Clear pricing", "   "],
            "mentions": {"contexts": ["", "pricing page"]},
        })

        assert parsed.strengths == ["Clear pricing"]
        assert parsed.mentions.contexts == ["pricing page"]

    def test_list_entries_filtered(self):
        parsed = normalize_payload({"keywords": ["seo", 42, None, "  ", "planning"]})

        assert parsed.keywords == ["seo", "planning"]

    def test_wrong_section_types(self):
        parsed = normalize_payload({
            "sentiment": "positive",
            "strengths": "Fast",
            "competitiveInsights": ["not", "a", "string"],
        })

        assert parsed.sentiment.score == 0.0
        assert parsed.strengths == []
        assert parsed.competitive_insights == ""

    def test_non_dict_is_zero_opinion(self):
        assert normalize_payload(None) == OpinionPayload.default()


class TestRaterPrompt:
    """Test prompt rendering."""

    def test_includes_date_and_content(self, sample_content):
        prompt = build_rater_prompt(sample_content, today=date(2024, 5, 1))

        assert "Current Date: 2024-05-01" in prompt
        assert '"title": "Example Planner"' in prompt
        assert '"fullText":' in prompt
        assert '"metaTags":' in prompt

    def test_schema_braces_rendered(self, sample_content):
        prompt = build_rater_prompt(sample_content)

        assert '"contentRecommendations": ["recommendation1"' in prompt
        assert '"sentiment": {' in prompt
        assert "{{" not in prompt
