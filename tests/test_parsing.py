"""Tests for response parsing helpers and plain-text formatters."""

from ai_court.core.data_models import Favorability, Message, RoleType, VerdictAnalysis
from ai_court.utils.formatters import format_round_header, format_transcript, format_usage, format_verdict
from ai_court.utils.parsing import (
    coerce_score, coerce_string_list, extract_json_from_response, extract_tagged_sections
)


class TestExtractJson:

    def test_plain_object(self):
        assert extract_json_from_response('{"ruling": "x"}') == {"ruling": "x"}

    def test_fenced_block(self):
        assert extract_json_from_response('Result:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_object_inside_prose(self):
        assert extract_json_from_response('The verdict is {"a": 1} as shown.') == {"a": 1}

    def test_non_object(self):
        assert extract_json_from_response("[1, 2]") is None
        assert extract_json_from_response("") is None


class TestCoercion:

    def test_coerce_score(self):
        assert coerce_score("85") == 85
        assert coerce_score(float("nan")) == 50
        assert coerce_score(0.5, low=0, high=1) == 0.5
        assert coerce_score(101) == 100

    def test_coerce_string_list(self):
        assert coerce_string_list(None) == []
        assert coerce_string_list(("a ", " b")) == ["a", "b"]


class TestTaggedSections:

    def test_all_tags(self):
        text = "[Ruling] Plaintiff wins.\n[Reasoning] Civil Act 536.\n[Recommendation] Pay within 30 days."
        assert extract_tagged_sections(text) == {
            "ruling": "Plaintiff wins.",
            "reasoning": "Civil Act 536.",
            "recommendation": "Pay within 30 days.",
        }

    def test_emphasis_and_case(self):
        text = "**[ruling]** Dismissed **[RECOMMENDATION]** Settle"
        assert extract_tagged_sections(text) == {"ruling": "Dismissed", "recommendation": "Settle"}

    def test_no_tags(self):
        assert extract_tagged_sections("Just prose.") == {}


class TestFormatters:

    def test_round_header(self):
        assert format_round_header(7) == "[ Round 7/7 | Final verdict | Judge ]"

    def test_transcript(self):
        messages = [
            Message(role=RoleType.JUDGE, content="Court is in session.", round_number=1),
            Message(role=RoleType.USER, content="Hello"),
        ]
        assert format_transcript(messages) == "Judge (round 1): Court is in session.\n\nUser: Hello"
        assert format_transcript([]) == "(empty transcript)"

    def test_verdict(self):
        analysis = VerdictAnalysis(
            ruling="Partial win",
            confidence=62.4,
            favorability=Favorability.DEFENDANT,
            key_factors=["Notice was late"],
            recommendation="Settle.",
        )
        text = format_verdict(analysis)
        assert "Ruling: Partial win" in text
        assert "Confidence: 62%" in text
        assert "Favorability: Defendant favored" in text
        assert "  - Notice was late" in text
        assert "Recommendation: Settle." in text

    def test_usage(self):
        assert format_usage({"trial": 0, "document": None}) == "trial: 0 left | document: unlimited"
